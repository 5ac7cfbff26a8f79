from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from slovo.database import Base


DEFAULT_LANG = "ru"

# Stored when the dictionary page exists but has no section for the language.
NO_DEFINITION = ""


class WordEntry(Base):
    __tablename__ = "words"

    word: Mapped[str] = mapped_column(String(255), primary_key=True)
    lang: Mapped[str] = mapped_column(String(8), primary_key=True, default=DEFAULT_LANG)
    occurrence_offsets: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    definition: Mapped[Optional[str]] = mapped_column(Text)


@dataclass
class WordRecord:
    word: str
    offsets: List[int] = field(default_factory=list)
    definition: Optional[str] = None
    lang: str = DEFAULT_LANG

    @property
    def is_fetched(self) -> bool:
        return self.definition is not None

    @property
    def has_definition(self) -> bool:
        return bool(self.definition)

    @classmethod
    def from_entry(cls, entry: WordEntry) -> "WordRecord":
        return cls(
            word=entry.word,
            offsets=decode_offsets(entry.occurrence_offsets),
            definition=entry.definition,
            lang=entry.lang,
        )


def merge_offsets(existing: Iterable[int], incoming: Iterable[int]) -> List[int]:
    return sorted({int(value) for value in existing} | {int(value) for value in incoming})


def encode_offsets(offsets: Iterable[int]) -> str:
    return json.dumps([int(value) for value in offsets])


def decode_offsets(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    return [int(value) for value in json.loads(raw)]
