"""
Text serialization for the tiered index and for vector space models.

Token record (one line):
    <stem> [ <variant> <variant> ... ] <docs> { [ <id gap> <freq> <pos gap> ... ] ... }

Document ids and positions are stored as gaps: each value is the difference
from the previous one in the same field, the first relative to 0.

Tiered index file:
    <doc count>
    <title>                     (doc count lines, in document-id order)
    <title-tier token records>
    -
    <body-tier token records>

VSM file:
    <doc count>
    <id> <true|false> <component count> <stem> <weight> ...   (doc count lines)
    <title>                     (optional, in document-id order)
"""

from pathlib import Path

from .errors import ContractViolationError, IndexFormatError, VsmFormatError
from .index_builder import TieredIndex
from .posting import TermDictionary, Token
from .utils import get_logger
from .vsm import VectorSpaceModel

TIER_SEPARATOR = "-"

logger = get_logger("CODEC")


def encode_token(token: Token) -> str:
    """Serialize a token as a single gap-encoded record line."""
    parts = [token.stem, "["]
    parts.extend(sorted(token.variants))
    parts.extend(["]", str(len(token.postings)), "{"])

    prev_doc = 0
    for doc_id in token.doc_ids():
        positions = token.postings[doc_id]
        parts.extend(["[", str(doc_id - prev_doc), str(len(positions))])
        prev_doc = doc_id
        prev_pos = 0
        for pos in positions:
            parts.append(str(pos - prev_pos))
            prev_pos = pos
        parts.append("]")

    parts.append("}")
    return " ".join(parts)


class _Cursor:
    """Walks the space-separated fields of one record, raising on bad structure."""

    def __init__(self, line: str, path=None, line_no: int | None = None) -> None:
        self.fields = line.split(" ")
        self.pos = 0
        self.path = path
        self.line_no = line_no

    def error(self, message: str) -> IndexFormatError:
        return IndexFormatError(message, self.path, self.line_no)

    def next(self) -> str:
        if self.pos >= len(self.fields):
            raise self.error("record ends unexpectedly")
        field = self.fields[self.pos]
        self.pos += 1
        return field

    def expect(self, literal: str) -> None:
        field = self.next()
        if field != literal:
            raise self.error(f"expected '{literal}' at field {self.pos}, got {field!r}")

    def next_int(self) -> int:
        field = self.next()
        try:
            value = int(field)
        except ValueError:
            raise self.error(f"expected an integer at field {self.pos}, got {field!r}") from None
        if value < 0:
            raise self.error(f"negative value {value} at field {self.pos}")
        return value

    def at_end(self) -> bool:
        return self.pos == len(self.fields)


def decode_token(line: str, path=None, line_no: int | None = None) -> Token:
    """Rebuild a token from a record line written by encode_token."""
    cur = _Cursor(line, path, line_no)

    stem = cur.next()
    if not stem or stem in ("[", "]", "{", "}"):
        raise cur.error("record has no stem")
    token = Token(stem=stem)

    cur.expect("[")
    while True:
        field = cur.next()
        if field == "]":
            break
        if not field or field in ("[", "{", "}"):
            raise cur.error(f"bad variant {field!r}")
        token.add_variant(field)

    doc_count = cur.next_int()
    cur.expect("{")
    doc_id = 0
    for i in range(doc_count):
        cur.expect("[")
        gap = cur.next_int()
        if i > 0 and gap == 0:
            raise cur.error("document ids must be strictly increasing")
        doc_id += gap
        positions = token.add_document(doc_id)

        position = 0
        for k in range(cur.next_int()):
            pos_gap = cur.next_int()
            if k > 0 and pos_gap == 0:
                raise cur.error("positions must be strictly increasing")
            position += pos_gap
            positions.append(position)
        cur.expect("]")
    cur.expect("}")

    if not cur.at_end():
        raise cur.error("trailing data after record")
    return token


def _read_tier(lines: list[str], start: int, path, stop: str | None) -> tuple[TermDictionary, int]:
    """Decode token records from lines[start:] up to `stop` (or the end)."""
    terms: TermDictionary = {}
    i = start
    while i < len(lines):
        line = lines[i]
        if stop is not None and line == stop:
            return terms, i + 1
        token = decode_token(line, path, i + 1)
        if token.stem in terms:
            raise IndexFormatError(f"duplicate term '{token.stem}'", path, i + 1)
        terms[token.stem] = token
        i += 1

    if stop is not None:
        raise IndexFormatError(f"missing tier separator line '{stop}'", path)
    return terms, i


def _read_count(line: str | None, path, error_cls) -> int:
    if line is None:
        raise error_cls("file is empty", path, 1)
    try:
        count = int(line.strip())
    except ValueError:
        raise error_cls(f"first line must be the document count, got {line!r}", path, 1) from None
    if count < 0:
        raise error_cls(f"negative document count {count}", path, 1)
    return count


def dumps_index(index: TieredIndex) -> str:
    lines = [str(index.doc_count)]
    lines.extend(index.titles)
    lines.extend(encode_token(index.title_terms[s]) for s in sorted(index.title_terms))
    lines.append(TIER_SEPARATOR)
    lines.extend(encode_token(index.body_terms[s]) for s in sorted(index.body_terms))
    return "\n".join(lines) + "\n"


def loads_index(text: str, path=None) -> TieredIndex:
    lines = text.splitlines()
    count = _read_count(lines[0] if lines else None, path, IndexFormatError)
    if len(lines) < 1 + count:
        raise IndexFormatError(f"expected {count} titles", path)

    index = TieredIndex(titles=lines[1 : 1 + count])
    index.title_terms, next_line = _read_tier(lines, 1 + count, path, TIER_SEPARATOR)
    index.body_terms, _ = _read_tier(lines, next_line, path, None)

    for _, terms in index.tiers():
        for token in terms.values():
            for doc_id in token.postings:
                if doc_id >= count:
                    raise IndexFormatError(
                        f"term '{token.stem}' refers to unknown document {doc_id}", path
                    )
    return index


def save_index(path: Path, index: TieredIndex) -> None:
    """Write the tiered index to disk."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps_index(index))
    logger.info(
        f"Tiered index saved to {path}: {index.doc_count} documents, "
        f"{len(index.title_terms)} title terms, {len(index.body_terms)} body terms"
    )


def load_index(path: Path) -> TieredIndex:
    """Read a tiered index written by save_index."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        index = loads_index(f.read(), path)
    logger.info(f"Tiered index loaded from {path}: {index.doc_count} documents")
    return index


def dumps_vsm(model: VectorSpaceModel, titles: list[str] | None = None) -> str:
    lines = [str(len(model))]
    for doc_id, doc in model:
        fields = [str(doc_id), "true" if doc.normalized else "false", str(len(doc.components))]
        for stem in sorted(doc.components):
            fields.extend([stem, repr(doc.components[stem])])
        lines.append(" ".join(fields))
    if titles:
        lines.extend(titles)
    return "\n".join(lines) + "\n"


def loads_vsm(text: str, path=None) -> tuple[VectorSpaceModel, list[str]]:
    lines = text.splitlines()
    count = _read_count(lines[0] if lines else None, path, VsmFormatError)
    if len(lines) < 1 + count:
        raise VsmFormatError(f"expected {count} document vectors", path)

    model = VectorSpaceModel()
    for line_no in range(2, 2 + count):
        fields = lines[line_no - 1].split()
        if len(fields) < 3:
            raise VsmFormatError("vector line is too short", path, line_no)
        try:
            doc_id = int(fields[0])
            n_components = int(fields[2])
        except ValueError:
            raise VsmFormatError("vector id and component count must be integers", path, line_no) from None
        if fields[1] not in ("true", "false"):
            raise VsmFormatError(f"bad normalization flag {fields[1]!r}", path, line_no)
        if len(fields) != 3 + 2 * n_components:
            raise VsmFormatError(
                f"declares {n_components} components but has {(len(fields) - 3) / 2:g}",
                path,
                line_no,
            )

        try:
            doc = model.add_doc(doc_id)
        except ContractViolationError:
            raise VsmFormatError(f"duplicate vector for document {doc_id}", path, line_no) from None
        doc.normalized = fields[1] == "true"
        for k in range(n_components):
            stem, raw_weight = fields[3 + 2 * k], fields[4 + 2 * k]
            try:
                weight = float(raw_weight)
            except ValueError:
                raise VsmFormatError(f"bad weight {raw_weight!r}", path, line_no) from None
            model.set_component(doc_id, stem, weight)

    return model, lines[1 + count :]


def save_vsm(path: Path, model: VectorSpaceModel, titles: list[str] | None = None) -> None:
    """Write a vsm to disk, with the document titles appended when given."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps_vsm(model, titles))
    logger.info(f"Vsm saved to {path}: {len(model)} vectors")


def load_vsm(path: Path) -> tuple[VectorSpaceModel, list[str]]:
    """Read a vsm file; returns the model and any titles stored after it."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        model, titles = loads_vsm(f.read(), path)
    logger.info(f"Vsm loaded from {path}: {len(model)} vectors, {len(titles)} titles")
    return model, titles
