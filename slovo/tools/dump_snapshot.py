from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, Optional

from slovo.config import get_settings
from slovo.runtime import create_runtime
from slovo.tools.common import add_verbose_argument, configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export every stored word to the YAML snapshot.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Snapshot path (default: SLOVO_SNAPSHOT_PATH)",
    )
    add_verbose_argument(parser)
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    settings = get_settings()
    output = args.output or settings.snapshot_path
    with create_runtime(settings) as runtime:
        count = runtime.cache.export_snapshot(output)
    print(f"Dumped {count} words to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
