"""Collect Russian words mentioned inside stored definitions.

Definitions of inflected forms point at their lemma ("inflection of
му́жество"); those words are added to the store without offsets or
definition so a later ``add_common_words``-style run can fetch them.
"""

from __future__ import annotations

import argparse
import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from slovo.config import get_settings
from slovo.runtime import create_runtime
from slovo.services.cache import DefinitionCache
from slovo.services.tokenizer import STRESS_MARK, normalize_word
from slovo.tools.common import add_verbose_argument, configure_logging


# Hyphenated compounds and stress marks are part of the word here.
DEFINITION_WORD_PATTERN = re.compile(
    f"[а-яёА-ЯЁ][а-яёА-ЯЁ{STRESS_MARK}\\-]*[а-яёА-ЯЁ{STRESS_MARK}]"
)

MIN_WORD_LENGTH = 2


def strip_stress(word: str) -> str:
    return word.replace(STRESS_MARK, "")


def words_in_definition(definition: str) -> List[str]:
    text = BeautifulSoup(definition, "html.parser").get_text(" ")
    found: List[str] = []
    for match in DEFINITION_WORD_PATTERN.finditer(text):
        word = normalize_word(strip_stress(match.group(0)))
        if len(word) >= MIN_WORD_LENGTH and word not in found:
            found.append(word)
    return found


def augment(cache: DefinitionCache) -> List[str]:
    added: List[str] = []
    for record in cache.get_all():
        if not record.has_definition:
            continue
        for word in words_in_definition(record.definition):
            if word == record.word or word in added:
                continue
            if cache.get(word) is not None:
                continue
            if cache.put(word):
                added.append(word)
    return added


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
        total = runtime.cache.count()
        added = augment(runtime.cache)
        if added and not args.no_dump and not runtime.cache.read_only:
            runtime.cache.export_snapshot()

    print(f"Words in store: {total}")
    print(f"New words added: {len(added)}")
    if added:
        print(", ".join(added))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
