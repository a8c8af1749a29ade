"""
Build the tiered index and the title/body vector space models for a corpus.

Usage:
    python build_index.py CORPUS
    python build_index.py --from-index

CORPUS is a manifest file (entry count, then one relative path per line) or a
directory; for a directory a corpus.dat manifest is generated inside it.

Output (defaults, all under data/):
  - data/index.txt   (tiered index, gap-encoded)
  - data/title.vsm   (title vsm, document titles appended)
  - data/body.vsm    (body vsm)
  - Analytics table printed to console
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from tiersearch.codec import load_index, save_index, save_vsm
from tiersearch.errors import SearchEngineError
from tiersearch.index_builder import build_tiered_index, resolve_manifest
from tiersearch.utils import LOG_LEVELS, configure_logging
from tiersearch.vsm import build_vsm


def get_data_dir() -> Path:
    return Path(__file__).resolve().parent / "data"


def main(argv: list[str] | None = None) -> int:
    import argparse
    parser = argparse.ArgumentParser(description="Build the tiered index and vector space models")
    parser.add_argument(
        "corpus",
        type=Path,
        nargs="?",
        default=None,
        help="Corpus manifest file, or a directory of corpus records",
    )
    parser.add_argument(
        "--index",
        type=Path,
        default=None,
        help="Path of the tiered index (default: data/index.txt)",
    )
    parser.add_argument(
        "--title-vsm",
        type=Path,
        default=None,
        help="Output path for the title vsm (default: data/title.vsm)",
    )
    parser.add_argument(
        "--body-vsm",
        type=Path,
        default=None,
        help="Output path for the body vsm (default: data/body.vsm)",
    )
    parser.add_argument(
        "--from-index",
        action="store_true",
        help="Load the tiered index from --index instead of building it from a corpus",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level for the package loggers",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the package logs to this file",
    )
    args = parser.parse_args(argv)

    if args.corpus is None and not args.from_index:
        parser.error("a corpus is required unless --from-index is given")
    configure_logging(args.log_level, args.log_file)

    data_dir = get_data_dir()
    index_path = args.index or data_dir / "index.txt"
    title_vsm_path = args.title_vsm or data_dir / "title.vsm"
    body_vsm_path = args.body_vsm or data_dir / "body.vsm"
    for path in (index_path, title_vsm_path, body_vsm_path):
        path.parent.mkdir(parents=True, exist_ok=True)

    try:
        if args.from_index:
            print("Reading Tiered Index... Please Wait...")
            index = load_index(index_path)
        else:
            manifest = resolve_manifest(args.corpus)
            print("Generating Tiered Index...")
            index = build_tiered_index(manifest)
            print("Saving Tiered Index to Disk...")
            save_index(index_path, index)

        print("Generating Vector Space Model...")
        title_vsm, body_vsm = build_vsm(index)
        print("Saving Vector Space Model to Disk...")
        save_vsm(title_vsm_path, title_vsm, index.titles)
        save_vsm(body_vsm_path, body_vsm)
    except (SearchEngineError, OSError) as e:
        print(f"ERR: {e}", file=sys.stderr)
        return 1

    print("\n" + "=" * 50)
    print("TIERED INDEX ANALYTICS")
    print("=" * 50)
    print()
    print("| Metric                      | Value |")
    print("|-----------------------------|-------|")
    print(f"| Number of indexed documents | {index.doc_count} |")
    print(f"| Number of title terms       | {len(index.title_terms)} |")
    print(f"| Number of body terms        | {len(index.body_terms)} |")
    print(f"| Size of index (KB)          | {index_path.stat().st_size / 1024:.2f} |")
    print(f"| Size of title vsm (KB)      | {title_vsm_path.stat().st_size / 1024:.2f} |")
    print(f"| Size of body vsm (KB)       | {body_vsm_path.stat().st_size / 1024:.2f} |")
    print()
    print("=" * 50)
    print(f"\nIndex saved to: {index_path}")
    print(f"Vsms saved to: {title_vsm_path}, {body_vsm_path}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
