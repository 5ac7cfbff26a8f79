from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, Optional

from slovo.config import get_settings
from slovo.errors import MalformedSnapshot
from slovo.runtime import create_runtime
from slovo.tools.common import add_verbose_argument, configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rebuild the word store from a YAML snapshot.",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Snapshot path (default: SLOVO_SNAPSHOT_PATH)",
    )
    parser.add_argument(
        "--merge",
        action="store_true",
        help="Keep words that are not in the snapshot instead of replacing the whole store.",
    )
    add_verbose_argument(parser)
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    settings = get_settings()
    source = args.input or settings.snapshot_path
    if not source.exists():
        print(f"Snapshot not found: {source}")
        return 1

    with create_runtime(settings) as runtime:
        try:
            count = runtime.cache.restore_snapshot(source, replace=not args.merge)
        except MalformedSnapshot as exc:
            print(str(exc))
            return 1
        total = runtime.cache.count()
    print(f"Restored {count} words from {source} ({total} words in store)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
