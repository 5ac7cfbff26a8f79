from __future__ import annotations

import argparse
from typing import Iterable, Optional

from slovo.config import get_settings
from slovo.errors import StoreError
from slovo.runtime import create_runtime
from slovo.tools.common import add_verbose_argument, configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Delete every word from the store and empty the snapshot.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation.",
    )
    parser.add_argument(
        "--keep-snapshot",
        action="store_true",
        help="Leave the snapshot file as it is; the next start restores the words from it.",
    )
    add_verbose_argument(parser)
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    if not args.yes:
        answer = input("This removes all words and definitions. Continue? [y/N] ")
        if answer.strip().lower() not in {"y", "yes", "д", "да"}:
            print("Aborted")
            return 1

    with create_runtime(get_settings()) as runtime:
        try:
            removed = runtime.cache.clear()
        except StoreError as exc:
            print(f"Clear failed: {exc}")
            return 1
        if not args.keep_snapshot:
            runtime.cache.export_snapshot()
    print(f"Removed {removed} words")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
