"""
Index builder: constructs the two-tier (title / body) positional index from a
corpus of structured text records.

Corpus manifest format:
    <entry count>
    <relative path>      (one line per entry, relative to the manifest's directory)

Corpus record format (one file per entry):
    .T
    Title lines, concatenated, terminated by the .A marker line
    .A
    Authors (ignored)
    .B
    Bibliography (ignored)
    .W
    Body text, to the end of the file
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from .errors import ManifestFormatError, RecordFormatError
from .posting import TermDictionary, Token
from .tokenizer import Stemmer, stem_token, tokenize
from .utils import get_logger

# Filename of the manifest written when the corpus is given as a directory
MANIFEST_FILENAME = "corpus.dat"

# Progress is logged roughly once per 1/PROGRESS_STEPS of the corpus
PROGRESS_STEPS = 10

TITLE_MARKER = ".T"
TITLE_END_MARKER = ".A"
SKIPPED_MARKERS = (".A", ".B")
BODY_MARKER = ".W"

logger = get_logger("INDEX_BUILDER")


@dataclass
class CorpusRecord:
    title: str
    body_lines: list[str] = field(default_factory=list)


@dataclass
class TieredIndex:
    """
    Titles in document-id order plus the two term dictionaries.
    Document ids are positions in `titles`.
    """

    titles: list[str] = field(default_factory=list)
    title_terms: TermDictionary = field(default_factory=dict)
    body_terms: TermDictionary = field(default_factory=dict)

    @property
    def doc_count(self) -> int:
        return len(self.titles)

    def tiers(self) -> tuple[tuple[str, TermDictionary], tuple[str, TermDictionary]]:
        return (("title", self.title_terms), ("body", self.body_terms))


def clean_title(raw_title: str) -> str:
    """Title as displayed and saved: trimmed, with periods removed."""
    return raw_title.strip().replace(".", "")


def read_manifest(manifest_path: Path) -> list[Path]:
    """
    Read a corpus manifest and return the absolute paths of its entries, in
    order. Entry paths are resolved against the manifest's directory.
    """
    manifest_path = Path(manifest_path)
    with open(manifest_path, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    if not lines:
        raise ManifestFormatError("manifest is empty", manifest_path)
    try:
        count = int(lines[0].strip())
    except ValueError:
        raise ManifestFormatError(
            f"first line must be the entry count, got {lines[0]!r}", manifest_path, 1
        ) from None
    if count < 0:
        raise ManifestFormatError(f"negative entry count {count}", manifest_path, 1)
    if len(lines) - 1 < count:
        raise ManifestFormatError(
            f"manifest declares {count} entries but lists {len(lines) - 1}",
            manifest_path,
        )

    base = manifest_path.parent
    entries: list[Path] = []
    for line_no, line in enumerate(lines[1 : count + 1], start=2):
        rel = line.strip()
        if not rel:
            raise ManifestFormatError("blank entry path", manifest_path, line_no)
        entries.append(base / rel)
    return entries


def parse_record(path: Path) -> CorpusRecord:
    """
    Parse one corpus record into its title and body lines.
    A missing title gives an empty title; an unterminated title is an error.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        lines = f.read().splitlines()

    title: str | None = None
    body: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line == TITLE_MARKER:
            if title is not None:
                raise RecordFormatError("record has more than one title", path, i + 1)
            parts: list[str] = []
            i += 1
            while i < len(lines) and lines[i] != TITLE_END_MARKER:
                parts.append(lines[i])
                i += 1
            if i == len(lines):
                raise RecordFormatError(
                    f"title is not terminated by a '{TITLE_END_MARKER}' line", path
                )
            title = " ".join(parts)
            continue
        if line == BODY_MARKER:
            body = lines[i + 1 :]
            break
        # .A/.B markers and the lines under them are not indexed
        i += 1

    if title is None:
        logger.warning(f"No title section in {path}; using an empty title")
        title = ""
    return CorpusRecord(title=title, body_lines=body)


def index_terms(
    terms: Iterable[str],
    dictionary: TermDictionary,
    doc_id: int,
    position: int,
    stemmer: Stemmer = stem_token,
) -> int:
    """
    Add each term of a segment to a dictionary, starting at `position` and
    advancing by one per term. Returns the next free position.
    """
    for word in terms:
        stem = stemmer(word)
        token = dictionary.get(stem)
        if token is None:
            token = Token(stem=stem, variants={word})
            dictionary[stem] = token
        else:
            token.add_variant(word)

        if doc_id not in token.postings:
            token.add_document(doc_id)
        token.add_position(doc_id, position)
        position += 1
    return position


def add_record(
    index: TieredIndex,
    record: CorpusRecord,
    stemmer: Stemmer = stem_token,
) -> int:
    """Index one record as the next document of `index`; returns its id."""
    doc_id = index.doc_count
    index_terms(tokenize(record.title), index.title_terms, doc_id, 0, stemmer)
    index.titles.append(clean_title(record.title))

    position = 1
    for line in record.body_lines:
        position = index_terms(tokenize(line), index.body_terms, doc_id, position, stemmer)
    return doc_id


def build_tiered_index(
    manifest_path: Path,
    *,
    stemmer: Stemmer = stem_token,
) -> TieredIndex:
    """
    Build the tiered index for every entry listed in a manifest.
    Documents get ids in manifest order, starting at 0.
    """
    entries = read_manifest(manifest_path)
    total = len(entries)
    index = TieredIndex()
    if total == 0:
        logger.warning(f"Manifest {manifest_path} lists no documents")
        return index

    step = math.ceil(total / PROGRESS_STEPS)
    for i, entry in enumerate(entries):
        if i % step == 0:
            logger.info("%8d of %6d files read. Please wait..." % (i, total))
        add_record(index, parse_record(entry), stemmer)

    logger.info(
        f"Indexed {index.doc_count} documents: {len(index.title_terms)} title terms, "
        f"{len(index.body_terms)} body terms"
    )
    return index


def list_corpus_files(root: Path) -> list[Path]:
    """Every file under `root`, recursively, sorted by path (manifest excluded)."""
    root = Path(root)
    return sorted(
        (p for p in root.rglob("*") if p.is_file() and p.name != MANIFEST_FILENAME),
        key=lambda p: str(p),
    )


def write_manifest(
    root: Path,
    files: list[Path],
    filename: str = MANIFEST_FILENAME,
) -> Path:
    """Write a manifest listing `files` relative to `root`; returns its path."""
    root = Path(root)
    if not files:
        raise ManifestFormatError("the corpus given is empty", root)
    manifest_path = root / filename
    with open(manifest_path, "w", encoding="utf-8") as f:
        f.write(f"{len(files)}\n")
        for path in files:
            f.write(Path(path).relative_to(root).as_posix() + "\n")
    logger.info(f"Manifest with {len(files)} entries written to {manifest_path}")
    return manifest_path


def resolve_manifest(
    corpus: Path,
    list_files: Callable[[Path], list[Path]] = list_corpus_files,
) -> Path:
    """
    Return the manifest for a corpus argument: the path itself for a file,
    or a freshly generated manifest when the corpus is a directory.
    """
    corpus = Path(corpus)
    if corpus.is_dir():
        return write_manifest(corpus, list_files(corpus))
    if not corpus.exists():
        raise FileNotFoundError(f"Corpus not found: {corpus}")
    return corpus
