"""
Two-phase ranked retrieval over the title and body vector space models.

Phase A scores the query against every title vector and keeps the top
`result_count_title` documents. Phase B re-scores only those candidates
against their body vectors and returns the top `result_count_doc`.

Ties: ids sharing a similarity value keep the order in which they were scored
(ascending document id in phase A, phase-A rank order in phase B).
"""

from collections import Counter
from dataclasses import dataclass
from pathlib import Path

from .codec import load_index, load_vsm
from .errors import IndexNotLoadedError
from .index_builder import TieredIndex
from .intersect import DEFAULT_PROXIMITY, positional_intersect
from .posting import Token
from .query import FreeTextQuery, ProximityQuery, parse_query
from .tokenizer import Stemmer, stem_token, tokenize
from .utils import get_logger
from .vsm import Vector, VectorSpaceModel, build_vsm, cosine_similarity, normalize_vector

DEFAULT_RESULT_COUNT_TITLE = 25
DEFAULT_RESULT_COUNT_DOC = 10

logger = get_logger("RETRIEVAL")

# similarity -> document ids with that similarity, in scoring order
SimilarityTable = dict[float, list[int]]


@dataclass
class SearchSettings:
    """Runtime-tunable result counts; result_count_doc never exceeds result_count_title."""

    result_count_title: int = DEFAULT_RESULT_COUNT_TITLE
    result_count_doc: int = DEFAULT_RESULT_COUNT_DOC

    def __post_init__(self) -> None:
        if self.result_count_title <= 0 or self.result_count_doc <= 0:
            raise ValueError("result counts must be positive")
        if self.result_count_doc > self.result_count_title:
            self.result_count_doc = self.result_count_title

    def set_result_counts(self, title: int | None = None, doc: int | None = None) -> None:
        """
        Update either count. The doc count is applied first, then the title
        count, then the doc count is clamped down to the title count.
        """
        for value in (title, doc):
            if value is not None and value <= 0:
                raise ValueError(f"result counts must be positive, got {value}")
        if doc is not None:
            self.result_count_doc = doc
        if title is not None:
            self.result_count_title = title
        if self.result_count_doc > self.result_count_title:
            self.result_count_doc = self.result_count_title


@dataclass
class SearchHit:
    doc_id: int
    title: str
    score: float


def query_vector(text: str, stemmer: Stemmer = stem_token) -> Vector:
    """Raw stem counts of the query text, normalized to unit length."""
    counts = Counter(stemmer(term) for term in tokenize(text))
    vector = {stem: float(n) for stem, n in counts.items()}
    return normalize_vector(vector)


def similarity(
    model: VectorSpaceModel,
    query: Vector,
    ids: list[int] | None = None,
) -> SimilarityTable:
    """
    Score the query against the given documents (all of them when `ids` is
    None) and group the ids by similarity.
    """
    table: SimilarityTable = {}
    for doc_id in model.doc_ids() if ids is None else ids:
        sim = cosine_similarity(model.vector(doc_id), query)
        table.setdefault(sim, []).append(doc_id)
    return table


def get_top_documents(k: int, table: SimilarityTable) -> list[int]:
    """
    The ids of the k most similar documents. Whole similarity groups are
    consumed in descending order before any lower group is touched.
    """
    result: list[int] = []
    for sim in sorted(table, reverse=True):
        for doc_id in table[sim]:
            if len(result) == k:
                return result
            result.append(doc_id)
    return result


class SearchEngine:
    """
    Everything a query needs: both vsms, the titles, the runtime settings and,
    when available, the tiered index for term and proximity lookups.
    """

    def __init__(
        self,
        title_vsm: VectorSpaceModel,
        body_vsm: VectorSpaceModel,
        titles: list[str],
        *,
        index: TieredIndex | None = None,
        settings: SearchSettings | None = None,
        stemmer: Stemmer = stem_token,
    ) -> None:
        self.title_vsm = title_vsm
        self.body_vsm = body_vsm
        self.titles = titles
        self.index = index
        self.settings = settings or SearchSettings()
        self.stemmer = stemmer

        if len(titles) != len(title_vsm):
            logger.warning(
                f"{len(titles)} titles loaded for {len(title_vsm)} title vectors"
            )

    @classmethod
    def from_index(
        cls,
        index: TieredIndex,
        *,
        settings: SearchSettings | None = None,
        stemmer: Stemmer = stem_token,
    ) -> "SearchEngine":
        title_vsm, body_vsm = build_vsm(index)
        return cls(title_vsm, body_vsm, index.titles, index=index, settings=settings, stemmer=stemmer)

    @classmethod
    def load(
        cls,
        title_vsm_path: Path,
        body_vsm_path: Path,
        index_path: Path | None = None,
        *,
        settings: SearchSettings | None = None,
    ) -> "SearchEngine":
        """Load saved vsms; titles come from the title vsm file."""
        title_vsm, titles = load_vsm(title_vsm_path)
        body_vsm, _ = load_vsm(body_vsm_path)
        index = load_index(index_path) if index_path is not None else None
        return cls(title_vsm, body_vsm, titles, index=index, settings=settings)

    def title(self, doc_id: int) -> str:
        if 0 <= doc_id < len(self.titles):
            return self.titles[doc_id]
        return ""

    def query_vector(self, text: str) -> Vector:
        return query_vector(text, self.stemmer)

    def search(self, text: str) -> list[SearchHit]:
        """Rank documents for a free-text query."""
        query = self.query_vector(text)
        logger.debug(f"Query vector: {query}")

        title_table = similarity(self.title_vsm, query)
        candidates = get_top_documents(self.settings.result_count_title, title_table)
        logger.debug(f"{len(candidates)} title candidates: {candidates}")

        body_table = similarity(self.body_vsm, query, candidates)
        scores = {doc_id: sim for sim, ids in body_table.items() for doc_id in ids}
        return [
            SearchHit(doc_id, self.title(doc_id), scores[doc_id])
            for doc_id in get_top_documents(self.settings.result_count_doc, body_table)
        ]

    def _require_index(self) -> TieredIndex:
        if self.index is None:
            raise IndexNotLoadedError(
                "Term and proximity queries need the tiered index; load it with the vsms"
            )
        return self.index

    def lookup(self, term: str) -> Token | None:
        """The body-tier token for a single query term, or None if it never occurs."""
        index = self._require_index()
        words = tokenize(term)
        if len(words) != 1:
            return None
        return index.body_terms.get(self.stemmer(words[0]))

    def intersect(
        self,
        term_a: str,
        term_b: str,
        proximity: int = DEFAULT_PROXIMITY,
    ) -> Token | None:
        """Positions of term_a within `proximity` words of term_b, per document."""
        tok_a = self.lookup(term_a)
        tok_b = self.lookup(term_b)
        if tok_a is None or tok_b is None:
            return None
        return positional_intersect(tok_a, tok_b, proximity)

    def run(self, text: str) -> list[SearchHit] | Token | None:
        """Parse a prompt query and answer it with search() or intersect()."""
        query = parse_query(text)
        if isinstance(query, ProximityQuery):
            return self.intersect(query.term_a, query.term_b, query.proximity)
        if isinstance(query, FreeTextQuery):
            return self.search(query.text)
        raise TypeError(f"unsupported query type {type(query).__name__}")
