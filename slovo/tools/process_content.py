from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from slovo.config import Settings, get_settings
from slovo.errors import PageError
from slovo.runtime import create_runtime
from slovo.services.pages import PageLoader
from slovo.services.pipeline import ContentPipeline, ProcessedContent, load_common_words
from slovo.tools.common import add_verbose_argument, configure_logging


def body_contents(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    if soup.body is None:
        return html
    return soup.body.decode_contents()


def _default_output(source: Path) -> Path:
    return source.with_name(f"{source.stem}-processed{source.suffix or '.html'}")


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Wrap Russian words of an HTML file and optionally fetch their definitions.",
    )
    parser.add_argument("input", type=Path, nargs="?", help="HTML file to process")
    parser.add_argument("--url", help="Load the page to process from this address instead of a file")
    parser.add_argument(
        "--output",
        type=Path,
        help="Where to write the processed HTML (default: <input>-processed.html)",
    )
    parser.add_argument(
        "--no-fetch",
        action="store_true",
        help="Do not fetch definitions, only record the words.",
    )
    parser.add_argument(
        "--no-db",
        action="store_true",
        help="Skip every database operation (implies --no-fetch).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Concurrent lookups when fetching (default: %(default)s)",
    )
    add_verbose_argument(parser)
    args = parser.parse_args(argv)
    if (args.input is None) == (args.url is None):
        parser.error("give either an input file or --url")
    if args.url and args.output is None:
        parser.error("--output is required with --url")
    return args


def _report(processed: ProcessedContent) -> None:
    print(f"Unique Russian words: {len(processed.words)}")
    if processed.results:
        found = sum(1 for result in processed.results.values() if result.found)
        print(f"Definitions available: {found}/{len(processed.results)}")
    for word in processed.failed:
        print(f"  failed: {word}: {processed.results[word].error}")


def _read_source(args: argparse.Namespace, pages: PageLoader) -> str:
    if args.url:
        return pages.load(args.url)
    return args.input.read_text(encoding="utf-8")


def _process_without_store(args: argparse.Namespace, settings: Settings) -> ProcessedContent:
    pages = PageLoader(timeout=settings.request_timeout, user_agent=settings.user_agent)
    try:
        html = _read_source(args, pages)
    finally:
        pages.close()
    pipeline = ContentPipeline(common_words=load_common_words(settings.common_words_path))
    return pipeline.process(html)


def _process_with_store(args: argparse.Namespace, settings: Settings) -> ProcessedContent:
    workers = max(1, min(args.workers, settings.max_workers))
    with create_runtime(settings) as runtime:
        html = _read_source(args, runtime.pages)
        processed = runtime.pipeline.process(html, not args.no_fetch, workers=workers)
        if not runtime.cache.read_only:
            runtime.cache.export_snapshot()
    return processed


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    output = args.output or _default_output(args.input)
    settings = get_settings()

    try:
        if args.no_db:
            processed = _process_without_store(args, settings)
        else:
            processed = _process_with_store(args, settings)
    except PageError as exc:
        print(str(exc))
        return 1

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(body_contents(processed.html), encoding="utf-8")
    _report(processed)
    print(f"Saved processed HTML to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
