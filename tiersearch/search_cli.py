"""
Interactive query shell.

Usage (from repo root, after building the index and vsms):
    python -m tiersearch.search_cli \
        --title-vsm data/title.vsm \
        --body-vsm data/body.vsm \
        --index data/index.txt

Free-text queries are ranked with the vector space models. Queries of the form
`t1 /N t2` list the positions where t1 occurs within N words of t2; these, and
the !term/!near commands, need --index.
Pass --queries FILE to read the queries from a file instead of the keyboard.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Iterable

from .errors import InvalidQueryError, SearchEngineError
from .intersect import DEFAULT_PROXIMITY
from .posting import Token
from .query import parse_proximity
from .retrieval import (
    DEFAULT_RESULT_COUNT_DOC,
    DEFAULT_RESULT_COUNT_TITLE,
    SearchEngine,
    SearchHit,
    SearchSettings,
)
from .utils import LOG_LEVELS, configure_logging, get_logger
from .vsm import format_vector

CMD_EXIT = "!exit"
CMD_HELP = "!help"
CMD_USAGE = "!usage"
CMD_TITLE = "!title"
CMD_SYSTEM = "!system"
CMD_VECTOR = "!vector"
CMD_TERM = "!term"
CMD_NEAR = "!near"

USAGE = {
    CMD_HELP: "!help",
    CMD_EXIT: "!exit",
    CMD_USAGE: "!usage <cmd>",
    CMD_TITLE: "!title <id> [id]",
    CMD_SYSTEM: "!system [restitle] [resdoc]",
    CMD_VECTOR: "!vector [<d|t> <id> [cpl]] [q <query>]",
    CMD_TERM: "!term <term>",
    CMD_NEAR: "!near <t1> [/N] <t2>",
}

# Positions printed per line for proximity results
POSITIONS_PER_LINE = 10

logger = get_logger("SEARCH_CLI")


class _UsageError(Exception):
    pass


def print_help() -> None:
    print(
        "\n" + "-" * 64 +
        "\nQuerying:"
        "\n    Type any number of terms, separated by spaces, for a ranked search."
        "\n    Type '<t1> /N <t2>' to find t1 within N words of t2."
        "\n\nSpecial Commands: (Prefix with !)"
        "\n    help   : Displays this information"
        "\n    exit   : Exits the querying interface"
        "\n    usage  : Print usage information for any command here"
        "\n    vector : Print the range of document vectors, a vector's"
        "\n             components, or a query vectorized"
        "\n    title  : Print document titles"
        "\n    system : Tune the system's parameters or view them"
        "\n    term   : Show how often a term occurs in each document"
        "\n    near   : Proximity query; the distance defaults to 1"
        "\n" + "-" * 64
    )


def print_usage(cmd: str) -> None:
    usage = USAGE.get(cmd if cmd.startswith("!") else "!" + cmd)
    if usage is None:
        print(f"Unknown command '{cmd}'!")
    else:
        print(f"Usage: {usage}")


def print_hits(hits: list[SearchHit]) -> None:
    if not hits:
        print("  No results were found for the query.")
        return
    print(f"  {'Doc':>5s} : Title")
    for hit in hits:
        print(f"  {hit.doc_id:5d} : {hit.title}")


def print_positions(engine: SearchEngine, result: Token | None) -> None:
    if result is None:
        print("  No results were found for the query.")
        return
    for doc in result.postings_docs():
        print(f"  Document {doc.doc_id} '{engine.title(doc.doc_id)}':")
        locations = [f"{pos:->7d}" for pos in doc.locations]
        for i in range(0, len(locations), POSITIONS_PER_LINE):
            print("    " + " ".join(locations[i : i + POSITIONS_PER_LINE]))


def _cmd_title(engine: SearchEngine, args: list[str]) -> None:
    if not 1 <= len(args) <= 2:
        raise _UsageError
    try:
        start = int(args[0])
        end = int(args[1]) if len(args) == 2 else start
    except ValueError:
        raise _UsageError from None
    if start < 0 or end < start or end >= len(engine.titles):
        raise _UsageError
    for doc_id in range(start, end + 1):
        print(f"Document {doc_id} Title: '{engine.titles[doc_id]}'")


def _cmd_system(engine: SearchEngine, args: list[str]) -> None:
    settings = engine.settings
    if not args:
        print("Current System Parameters:")
        print("  Result Generation:")
        print(f"    Phase 1|T Top-K: {settings.result_count_title}")
        print(f"    Phase 2|D Top-K: {settings.result_count_doc}")
        return
    if len(args) > 2:
        raise _UsageError
    try:
        title = int(args[0])
        doc = int(args[1]) if len(args) == 2 else None
        settings.set_result_counts(title=title, doc=doc)
    except ValueError:
        raise _UsageError from None


def _cmd_vector(engine: SearchEngine, args: list[str]) -> None:
    if not args:
        print(f"Valid Vectors: 0-{len(engine.title_vsm) - 1}")
        return
    kind = args[0].lower()
    if kind == "q":
        if len(args) < 2:
            raise _UsageError
        print("Query Vector")
        print(format_vector(engine.query_vector(" ".join(args[1:]))))
        return
    if kind not in ("d", "t") or not 2 <= len(args) <= 3:
        raise _UsageError
    try:
        doc_id = int(args[1])
        per_line = int(args[2]) if len(args) == 3 else 2
    except ValueError:
        raise _UsageError from None
    model, label = (engine.body_vsm, "Document") if kind == "d" else (engine.title_vsm, "Title")
    if doc_id not in model or per_line <= 0:
        raise _UsageError
    doc = model.get_doc(doc_id)
    state = "normalized" if doc.normalized else "not normalized"
    print(f"{label} Vector {doc_id}: {len(doc.components)} components, {state}")
    print(format_vector(doc.components, per_line))


def _cmd_term(engine: SearchEngine, args: list[str]) -> None:
    if len(args) != 1:
        raise _UsageError
    token = engine.lookup(args[0])
    if token is None:
        print("  No results were found for the query.")
        return
    for doc in token.postings_docs():
        print(f"  Document {doc.doc_id} '{engine.title(doc.doc_id)}' has {doc.frequency} match(es)")


def _cmd_near(engine: SearchEngine, args: list[str]) -> None:
    query = parse_proximity(" ".join(args))
    print_positions(engine, engine.intersect(query.term_a, query.term_b, query.proximity))


COMMANDS: dict[str, Callable[[SearchEngine, list[str]], None]] = {
    CMD_TITLE: _cmd_title,
    CMD_SYSTEM: _cmd_system,
    CMD_VECTOR: _cmd_vector,
    CMD_TERM: _cmd_term,
    CMD_NEAR: _cmd_near,
}


def handle_line(engine: SearchEngine, line: str) -> bool:
    """
    Process one line typed at the prompt. Returns False once the user asks
    to exit.
    """
    raw = line.strip()
    if not raw:
        return True
    parts = raw.split()
    cmd = parts[0].lower()

    if cmd == CMD_EXIT:
        return False
    if cmd == CMD_HELP:
        print_help()
        return True
    if cmd == CMD_USAGE:
        if len(parts) != 2:
            print("Invalid usage! ", end="")
            print_usage(CMD_USAGE)
        else:
            print_usage(parts[1].lower())
        return True

    try:
        if cmd in COMMANDS:
            try:
                COMMANDS[cmd](engine, parts[1:])
            except _UsageError:
                print("Invalid usage! ", end="")
                print_usage(cmd)
            return True
        if cmd.startswith("!"):
            print_usage(cmd)
            return True

        result = engine.run(raw)
        if isinstance(result, list):
            print_hits(result)
        else:
            print_positions(engine, result)
    except InvalidQueryError as e:
        logger.debug(str(e))
        print(f"  The query '{raw}' is invalid.")
    except SearchEngineError as e:
        print(f"  {e}")
    return True


def run_search_loop(engine: SearchEngine, lines: Iterable[str] | None = None) -> None:
    """
    Read queries until !exit, end of input or Ctrl+C. `lines` replaces
    interactive input when given; each line read from it is echoed after the
    prompt.
    """
    print("-" * 64)
    print(f"Type '{CMD_HELP}' for help, or '{CMD_EXIT}' to exit")

    source = iter(lines) if lines is not None else None
    while True:
        try:
            if source is None:
                line = input("\nQuery > ")
            else:
                line = next(source)
                print(f"\nQuery > {line}")
        except (EOFError, KeyboardInterrupt, StopIteration):
            print()
            break
        if not handle_line(engine, line):
            break


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Query a tiered index and its vector space models.")
    parser.add_argument(
        "--title-vsm",
        type=Path,
        default=Path("data/title.vsm"),
        help="Path to the title vsm file (titles are stored in it).",
    )
    parser.add_argument(
        "--body-vsm",
        type=Path,
        default=Path("data/body.vsm"),
        help="Path to the body vsm file.",
    )
    parser.add_argument(
        "--index",
        type=Path,
        default=None,
        help="Path to the tiered index; enables term and proximity queries.",
    )
    parser.add_argument(
        "--result-count-title",
        type=int,
        default=DEFAULT_RESULT_COUNT_TITLE,
        help="Candidates kept after ranking titles.",
    )
    parser.add_argument(
        "--result-count-doc",
        type=int,
        default=DEFAULT_RESULT_COUNT_DOC,
        help="Results shown after ranking document bodies.",
    )
    parser.add_argument(
        "--queries",
        type=Path,
        default=None,
        help="Read queries from this file, one per line, instead of the keyboard.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level for the package loggers.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the package logs to this file.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level, args.log_file)

    try:
        settings = SearchSettings(args.result_count_title, args.result_count_doc)
        engine = SearchEngine.load(args.title_vsm, args.body_vsm, args.index, settings=settings)
        lines = args.queries.read_text(encoding="utf-8").splitlines() if args.queries else None
    except (SearchEngineError, OSError, ValueError) as e:
        print(f"ERR: {e}", file=sys.stderr)
        return 1

    run_search_loop(engine, lines)
    return 0


if __name__ == "__main__":
    sys.exit(main())
