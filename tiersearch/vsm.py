"""
Vector space model: one weighted term vector per document.

Weights are TF-IDF:
    IDF(t)    = log10(N / df(t))
    TF(t, d)  = 1 + log10(tf(t, d))   if tf(t, d) > 0 else 0
    w(t, d)   = IDF(t) * TF(t, d)
Zero weights are never stored. Each vector is normalized to unit length once.
"""

import math
from dataclasses import dataclass, field
from typing import Iterator

from .errors import DuplicateDocumentError, MissingDocumentError
from .posting import TermDictionary
from .utils import get_logger

logger = get_logger("VSM")

Vector = dict[str, float]


@dataclass
class DocVector:
    normalized: bool = False
    components: Vector = field(default_factory=dict)


class VectorSpaceModel:
    """Document vectors keyed by document id."""

    def __init__(self) -> None:
        self._vectors: dict[int, DocVector] = {}

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, doc_id: int) -> bool:
        return doc_id in self._vectors

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VectorSpaceModel):
            return NotImplemented
        return self._vectors == other._vectors

    def __iter__(self) -> Iterator[tuple[int, DocVector]]:
        """Iterate (doc_id, DocVector) pairs in ascending id order."""
        for doc_id in self.doc_ids():
            yield doc_id, self._vectors[doc_id]

    def doc_ids(self) -> list[int]:
        return sorted(self._vectors)

    def add_doc(self, doc_id: int) -> DocVector:
        if doc_id in self._vectors:
            raise DuplicateDocumentError(f"The vsm already has a vector for doc {doc_id}")
        doc = DocVector()
        self._vectors[doc_id] = doc
        return doc

    def get_doc(self, doc_id: int) -> DocVector:
        doc = self._vectors.get(doc_id)
        if doc is None:
            raise MissingDocumentError(f"The vsm doesn't contain a vector for doc {doc_id}")
        return doc

    def vector(self, doc_id: int) -> Vector:
        return self.get_doc(doc_id).components

    def set_component(self, doc_id: int, component: str, value: float) -> None:
        """Set a component's weight; a weight of 0.0 removes the component."""
        components = self.vector(doc_id)
        if value == 0.0:
            components.pop(component, None)
        else:
            components[component] = value

    def normalize(self) -> None:
        """Normalize every vector that has not been normalized yet."""
        for doc in self._vectors.values():
            if not doc.normalized:
                doc.normalized = True
                normalize_vector(doc.components)


def normalize_vector(vector: Vector) -> Vector:
    """
    Scale a vector to unit Euclidean length in place, dropping components that
    become exactly 0.0. An empty vector is left empty.
    """
    euc = math.sqrt(sum(w * w for w in vector.values()))
    if euc == 0.0:
        return vector
    for key in list(vector):
        value = vector[key] / euc
        if value == 0.0:
            del vector[key]
        else:
            vector[key] = value
    return vector


def cosine_similarity(doc: Vector, query: Vector) -> float:
    """
    Dot product over the query's components only; both vectors are expected
    to be normalized already.
    """
    return sum((doc.get(c, 0.0) * w for c, w in query.items()), 0.0)


def build_tier_vsm(dictionary: TermDictionary, doc_count: int) -> VectorSpaceModel:
    """Build and normalize the vectors for one index tier."""
    model = VectorSpaceModel()
    for doc_id in range(doc_count):
        model.add_doc(doc_id)

    # components are inserted in stem order
    for stem in sorted(dictionary):
        token = dictionary[stem]
        idf = token.weight_idf(doc_count)
        for doc_id in token.postings:
            model.set_component(doc_id, stem, idf * token.weight_tf(doc_id))

    model.normalize()
    return model


def build_vsm(index) -> tuple[VectorSpaceModel, VectorSpaceModel]:
    """Build (title_vsm, body_vsm) from a TieredIndex."""
    title_vsm = build_tier_vsm(index.title_terms, index.doc_count)
    logger.info(f"Title vsm built: {len(title_vsm)} vectors")
    body_vsm = build_tier_vsm(index.body_terms, index.doc_count)
    logger.info(f"Body vsm built: {len(body_vsm)} vectors")
    return title_vsm, body_vsm


def format_vector(vector: Vector, per_line: int = 2) -> str:
    """Render components as fixed-width 'stem : weight' cells, per_line per row."""
    per_line = max(1, per_line)
    cells = [f"{key:>20s} : {vector[key]:<10f}" for key in sorted(vector)]
    rows = [" ".join(cells[i : i + per_line]) for i in range(0, len(cells), per_line)]
    return "\n".join(rows)
