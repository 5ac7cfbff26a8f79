"""Cyrillic word detection for mixed-script text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple


STRESS_MARK = "\u0301"

# U+0482..U+0489 are the thousands sign and combining titlo marks, not letters.
_CYRILLIC_LETTERS = "\u0400-\u0481\u048a-\u04ff"

WORD_PATTERN = re.compile(f"[{_CYRILLIC_LETTERS}][{_CYRILLIC_LETTERS}{STRESS_MARK}]*")


@dataclass(frozen=True)
class TokenMatch:
    text: str
    normalized: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def normalize_word(word: str) -> str:
    return (word or "").strip().lower()


def tokenize(text: str) -> List[TokenMatch]:
    if not text:
        return []
    return [
        TokenMatch(text=match.group(0), normalized=normalize_word(match.group(0)), start=match.start())
        for match in WORD_PATTERN.finditer(text)
    ]


def split_text(text: str) -> List[Tuple[str, Optional[TokenMatch]]]:
    """Split text into literal runs and matched tokens, in order.

    Literal runs carry ``None`` in the second slot. Joining the first slots
    gives back the input unchanged.
    """
    parts: List[Tuple[str, Optional[TokenMatch]]] = []
    position = 0
    for token in tokenize(text):
        if token.start > position:
            parts.append((text[position:token.start], None))
        parts.append((token.text, token))
        position = token.end
    if position < len(text):
        parts.append((text[position:], None))
    return parts


def contains_cyrillic(text: str) -> bool:
    return bool(text) and WORD_PATTERN.search(text) is not None
