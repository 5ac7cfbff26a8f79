from __future__ import annotations

import argparse
import logging


def add_verbose_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if not verbose else logging.DEBUG,
        format="%(levelname)s %(message)s",
    )
