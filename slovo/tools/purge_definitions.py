"""Drop every cached definition so the next lookup re-fetches it.

Occurrence offsets are kept. Run after changing how dictionary pages are
transformed.
"""

from __future__ import annotations

import argparse
from typing import Iterable, Optional

from slovo.config import get_settings
from slovo.errors import StoreError
from slovo.runtime import create_runtime
from slovo.tools.common import add_verbose_argument, configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--no-dump",
        action="store_true",
        help="Do not rewrite the snapshot afterwards.",
    )
    add_verbose_argument(parser)
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    with create_runtime(get_settings()) as runtime:
        try:
            purged = runtime.cache.purge_definitions()
        except StoreError as exc:
            print(f"Purge failed: {exc}")
            return 1
        total = runtime.cache.count()
        if not args.no_dump:
            runtime.cache.export_snapshot()

    print(f"Purged {purged} definitions; {total} words keep their offsets")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
