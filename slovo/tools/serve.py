from __future__ import annotations

import argparse
from typing import Iterable, Optional

import uvicorn

from slovo.config import get_settings
from slovo.main import create_app
from slovo.runtime import create_runtime
from slovo.tools.common import add_verbose_argument, configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the definition API.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: %(default)s)")
    add_verbose_argument(parser)
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    settings = get_settings()
    with create_runtime(settings) as runtime:
        app = create_app(runtime)
        print(f"Serving {runtime.cache.count()} words ({runtime.cache.store.name} backend)")
        print(f"API URL: http://{args.host}:{args.port}/")
        uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
