"""Tiered positional index and TF-IDF search engine package."""

from .posting import Token, PostingsDoc
from .index_builder import TieredIndex, build_tiered_index
from .codec import load_index, save_index, load_vsm, save_vsm
from .vsm import VectorSpaceModel, build_vsm
from .intersect import positional_intersect
from .retrieval import SearchEngine, SearchSettings, SearchHit
from .tokenizer import normalize_line, tokenize, stem_token
