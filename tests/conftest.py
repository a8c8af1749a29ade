"""Shared test fixtures."""

from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures.corpus import CAT_RECORD, DOG_RECORD, write_corpus  # noqa: E402
from tiersearch.index_builder import build_tiered_index  # noqa: E402


@pytest.fixture
def identity_stemmer():
    return lambda word: word


@pytest.fixture
def corpus_manifest(tmp_path: Path) -> Path:
    """Two documents: 0 = 'The Cat', 1 = 'A Dog'."""
    return write_corpus(tmp_path / "corpus", {"cat.txt": CAT_RECORD, "docs/dog.txt": DOG_RECORD})


@pytest.fixture
def tiered_index(corpus_manifest: Path):
    return build_tiered_index(corpus_manifest)
