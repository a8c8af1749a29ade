"""
Term and posting data structures.

A Token is one dictionary entry: the stem, every surface spelling seen for it,
and a positional postings list {doc_id: [positions, ascending]}.
Frequencies are never stored; they are derived from the postings.
"""

import math
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Iterator

from .errors import (
    DuplicateDocumentError,
    DuplicatePositionError,
    EmptyPostingsError,
    MissingDocumentError,
)


@dataclass
class PostingsDoc:
    """
    One document's entry in a token's postings list.
    - doc_id: document identifier
    - locations: ascending word positions of the token in that document
    """

    doc_id: int
    locations: list[int] = field(default_factory=list)

    @property
    def frequency(self) -> int:
        return len(self.locations)


@dataclass
class Token:
    stem: str
    variants: set[str] = field(default_factory=set)
    postings: dict[int, list[int]] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"Token(stem={self.stem!r}, variants={sorted(self.variants)!r}, "
            f"docs={len(self.postings)}, freq={self.total_frequency()})"
        )

    def add_variant(self, word: str) -> None:
        self.variants.add(word)

    def add_document(self, doc_id: int) -> list[int]:
        """Start an empty position list for a document; the document must be new."""
        if doc_id in self.postings:
            raise DuplicateDocumentError(
                f"Token '{self.stem}' already has postings for document {doc_id}"
            )
        positions: list[int] = []
        self.postings[doc_id] = positions
        return positions

    def add_position(self, doc_id: int, position: int) -> None:
        """Insert a position into a document's list, keeping it sorted."""
        positions = self.postings.get(doc_id)
        if positions is None:
            raise MissingDocumentError(
                f"Token '{self.stem}' has no postings for document {doc_id}"
            )
        i = bisect_left(positions, position)
        if i < len(positions) and positions[i] == position:
            raise DuplicatePositionError(
                f"Token '{self.stem}' already occurs at {position} in document {doc_id}"
            )
        positions.insert(i, position)

    def remove_document(self, doc_id: int) -> None:
        self.postings.pop(doc_id, None)

    def doc_ids(self) -> list[int]:
        """Document ids in ascending order."""
        return sorted(self.postings)

    def postings_docs(self) -> Iterator[PostingsDoc]:
        """Iterate the postings as PostingsDoc records, ascending by document id."""
        for doc_id in self.doc_ids():
            yield PostingsDoc(doc_id, list(self.postings[doc_id]))

    @property
    def document_count(self) -> int:
        """Number of documents containing the token (its document frequency)."""
        return len(self.postings)

    def total_frequency(self) -> int:
        return sum(len(p) for p in self.postings.values())

    def frequency_in(self, doc_id: int) -> int:
        """Occurrences of the token in one document; 0 if it does not occur there."""
        return len(self.postings.get(doc_id, ()))

    def weight_idf(self, total_docs: int) -> float:
        """IDF = log10(N / df)."""
        if not self.postings:
            raise EmptyPostingsError(
                f"The token '{self.stem}' has no postings to compute IDF"
            )
        return math.log10(total_docs / len(self.postings))

    def weight_tf(self, doc_id: int) -> float:
        """TF = 1 + log10(tf) when the token occurs in the document, else 0."""
        freq = self.frequency_in(doc_id)
        if freq == 0:
            return 0.0
        return 1 + math.log10(freq)


# stem -> Token; one per index tier
TermDictionary = dict[str, Token]
