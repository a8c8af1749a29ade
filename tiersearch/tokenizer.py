"""
Line normalizer and tokenizer for corpus records and queries.

Indexing and querying must produce identical term streams, so every path that
turns text into terms goes through normalize_line/tokenize here.
Stemming uses NLTK's Porter stemmer.
"""

import string
from typing import Callable

from nltk.stem import PorterStemmer

_STEMMER = PorterStemmer()

_LETTERS_AND_DIGITS = frozenset(string.ascii_letters + string.digits)
_DIGITS = frozenset(string.digits)

Stemmer = Callable[[str], str]


def is_letter_or_digit(c: str) -> bool:
    """ASCII letters and digits only; accented letters do not count."""
    return c in _LETTERS_AND_DIGITS


def normalize_line(line: str) -> str:
    """
    Lowercase a line and strip characters that cannot be part of a term.

    Rules, per character:
      - letters, digits and spaces are kept
      - '-' is kept between two letters/digits; if another '-' follows it
        becomes a space; otherwise it is dropped
      - ',' is kept between two digits, otherwise dropped
      - an apostrophe is dropped so contractions merge ("don't" -> "dont")
      - anything else becomes a space
    """
    line = line.lower()
    out: list[str] = []
    last = len(line) - 1

    for i, c in enumerate(line):
        if is_letter_or_digit(c) or c == " ":
            out.append(c)
        elif c == "-":
            # A hyphen at either end of the line has no pair of neighbours
            if 0 < i < last:
                prev_c, next_c = line[i - 1], line[i + 1]
                if is_letter_or_digit(prev_c) and is_letter_or_digit(next_c):
                    out.append("-")
                elif next_c == "-":
                    out.append(" ")
        elif c == ",":
            if 0 < i < last and line[i - 1] in _DIGITS and line[i + 1] in _DIGITS:
                out.append(",")
        elif c != "'":
            out.append(" ")

    return "".join(out)


def tokenize(text: str) -> list[str]:
    """Normalize text and split it into terms, discarding empty tokens."""
    if not text:
        return []
    return normalize_line(text).split()


def stem_token(word: str) -> str:
    """
    Return the Porter stem of a single word.

    If the stem ends with a hyphen, the hyphens are removed and the word is
    stemmed again.
    """
    if not word:
        return ""
    stemmed = _STEMMER.stem(word)
    if stemmed.endswith("-"):
        return stem_token(stemmed.replace("-", ""))
    return stemmed

