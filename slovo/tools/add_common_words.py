from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, Optional

from slovo.config import get_settings
from slovo.runtime import create_runtime
from slovo.services.pipeline import load_common_words
from slovo.tools.common import add_verbose_argument, configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch definitions for a list of common Russian words.",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Comma or newline separated word list (default: SLOVO_COMMON_WORDS)",
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of words to fetch")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Concurrent lookups (default: %(default)s)",
    )
    add_verbose_argument(parser)
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    settings = get_settings()
    source = args.file or settings.common_words_path
    words = sorted(load_common_words(source))
    if not words:
        print(f"No words found in {source}")
        return 1

    with create_runtime(settings) as runtime:
        pending = []
        for word in words:
            record = runtime.cache.get(word)
            if record is None or not record.is_fetched:
                pending.append(word)
        if args.limit is not None:
            pending = pending[: args.limit]
        print(f"{len(words)} words in list, {len(pending)} to fetch")

        workers = max(1, min(args.workers, settings.max_workers))
        results = runtime.pipeline.fetch_definitions(pending, workers=workers)
        if not runtime.cache.read_only:
            runtime.cache.export_snapshot()

    summary = {"found": 0, "not_found": 0, "error": 0}
    for word, result in results.items():
        summary[result.status] = summary.get(result.status, 0) + 1
        if result.error:
            print(f"  {word}: {result.error}")
    print("Status summary:", summary)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
