"""
Query parsing.

Two query forms are accepted:
  - free text, ranked with the vector space model:   apple orange tree
  - proximity, answered from the positional index:   apple /3 orange
A proximity query may also be given as two bare terms (`parse_proximity`),
in which case the distance defaults to 1.
"""

from dataclasses import dataclass, field

from .errors import InvalidQueryError
from .intersect import DEFAULT_PROXIMITY
from .tokenizer import is_letter_or_digit

PROXIMITY_MARKER = "/"


@dataclass
class FreeTextQuery:
    text: str
    terms: list[str] = field(default_factory=list)


@dataclass
class ProximityQuery:
    term_a: str
    term_b: str
    proximity: int = DEFAULT_PROXIMITY


def _is_marker(term: str) -> bool:
    return PROXIMITY_MARKER in term


def _check_term(query: str, term: str) -> None:
    if not term or not is_letter_or_digit(term[0]):
        raise InvalidQueryError(query, f"term {term!r} must start with a letter or digit")


def _parse_marker(query: str, marker: str) -> int:
    digits = marker[len(PROXIMITY_MARKER) :]
    if not marker.startswith(PROXIMITY_MARKER) or not (digits.isascii() and digits.isdecimal()):
        raise InvalidQueryError(query, f"proximity must be written as /N, got {marker!r}")
    return int(digits)


def parse_proximity(query: str) -> ProximityQuery:
    """
    Parse `t1 /N t2`, or `t1 t2` with N taken as 1.
    The marker must sit between the two terms.
    """
    terms = query.strip().lower().split()
    if len(terms) == 2:
        for term in terms:
            if _is_marker(term):
                raise InvalidQueryError(query, "proximity must be between two terms")
            _check_term(query, term)
        return ProximityQuery(terms[0], terms[1], DEFAULT_PROXIMITY)

    if len(terms) == 3:
        if _is_marker(terms[0]) or _is_marker(terms[2]):
            raise InvalidQueryError(query, "proximity must be between two terms")
        _check_term(query, terms[0])
        _check_term(query, terms[2])
        return ProximityQuery(terms[0], terms[2], _parse_marker(query, terms[1]))

    raise InvalidQueryError(query, "a proximity query needs exactly two terms")


def parse_query(query: str) -> FreeTextQuery | ProximityQuery:
    """Classify and validate a query typed at the search prompt."""
    text = query.strip().lower()
    terms = text.split()
    if not terms:
        raise InvalidQueryError(query, "query is empty")
    if any(_is_marker(t) for t in terms):
        if len(terms) != 3:
            raise InvalidQueryError(query, "a proximity query is written t1 /N t2")
        return parse_proximity(text)
    return FreeTextQuery(text=text, terms=terms)
