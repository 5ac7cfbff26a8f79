from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from slovo.database import Database
from slovo.errors import StoreError
from slovo.models import (
    DEFAULT_LANG,
    WordEntry,
    WordRecord,
    decode_offsets,
    encode_offsets,
    merge_offsets,
)


LOGGER = logging.getLogger(__name__)


def _copy(record: WordRecord) -> WordRecord:
    return WordRecord(word=record.word, offsets=list(record.offsets), definition=record.definition, lang=record.lang)


class WordStore:
    """Persistence interface used by the definition cache.

    Words handed to a store are already normalized. ``upsert`` merges
    offsets and keeps an existing definition when the new one is ``None``.
    """

    name = "abstract"
    read_only = False

    def initialize(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def fetch(self, word: str, lang: str = DEFAULT_LANG) -> Optional[WordRecord]:
        raise NotImplementedError

    def upsert(
        self,
        word: str,
        offsets: Sequence[int],
        definition: Optional[str],
        lang: str = DEFAULT_LANG,
    ) -> WordRecord:
        raise NotImplementedError

    def all_records(self) -> List[WordRecord]:
        raise NotImplementedError

    def insert_many(self, records: Iterable[WordRecord], *, replace: bool = False) -> int:
        raise NotImplementedError

    def purge_definitions(self) -> int:
        raise NotImplementedError

    def clear(self) -> int:
        raise NotImplementedError


class SqlWordStore(WordStore):
    """Writable store backed by any SQLAlchemy database (SQLite by default)."""

    name = "sql"

    def __init__(self, database: Database) -> None:
        self.database = database

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with self.database.session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to {action}: {exc}") from exc

    def initialize(self) -> None:
        try:
            self.database.initialize()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to initialize database: {exc}") from exc

    def close(self) -> None:
        self.database.close()

    def count(self) -> int:
        with self._transaction("count words") as session:
            return session.execute(select(func.count()).select_from(WordEntry)).scalar_one()

    def _get_entry(self, session: Session, word: str, lang: str) -> Optional[WordEntry]:
        stmt = (
            select(WordEntry)
            .where(WordEntry.word == word)
            .where(WordEntry.lang == lang)
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    def fetch(self, word: str, lang: str = DEFAULT_LANG) -> Optional[WordRecord]:
        with self._transaction(f"read {word!r}") as session:
            entry = self._get_entry(session, word, lang)
            return WordRecord.from_entry(entry) if entry is not None else None

    def upsert(
        self,
        word: str,
        offsets: Sequence[int],
        definition: Optional[str],
        lang: str = DEFAULT_LANG,
    ) -> WordRecord:
        with self._transaction(f"store {word!r}") as session:
            entry = self._get_entry(session, word, lang)
            if entry is None:
                entry = WordEntry(
                    word=word,
                    lang=lang,
                    occurrence_offsets=encode_offsets(merge_offsets([], offsets)),
                    definition=definition,
                )
                session.add(entry)
            else:
                merged = merge_offsets(decode_offsets(entry.occurrence_offsets), offsets)
                entry.occurrence_offsets = encode_offsets(merged)
                if definition is not None:
                    entry.definition = definition
            session.flush()
            return WordRecord.from_entry(entry)

    def all_records(self) -> List[WordRecord]:
        with self._transaction("export words") as session:
            stmt = select(WordEntry).order_by(WordEntry.word.asc(), WordEntry.lang.asc())
            return [WordRecord.from_entry(entry) for entry in session.execute(stmt).scalars()]

    def insert_many(self, records: Iterable[WordRecord], *, replace: bool = False) -> int:
        inserted = 0
        with self._transaction("insert words") as session:
            if replace:
                session.execute(delete(WordEntry))
            for record in records:
                session.merge(
                    WordEntry(
                        word=record.word,
                        lang=record.lang,
                        occurrence_offsets=encode_offsets(record.offsets),
                        definition=record.definition,
                    )
                )
                inserted += 1
        return inserted

    def purge_definitions(self) -> int:
        with self._transaction("purge definitions") as session:
            result = session.execute(update(WordEntry).values(definition=None))
            return result.rowcount or 0

    def clear(self) -> int:
        with self._transaction("clear words") as session:
            result = session.execute(delete(WordEntry))
            return result.rowcount or 0


class SnapshotWordStore(WordStore):
    """Read-only in-memory store, filled once from the snapshot file.

    Used where the filesystem is not writable: lookups work, writes are
    refused by the cache before they reach this class.
    """

    name = "snapshot"
    read_only = True

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], WordRecord] = {}
        self._lock = threading.Lock()

    def initialize(self) -> None:
        return None

    def close(self) -> None:
        with self._lock:
            self._records.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def fetch(self, word: str, lang: str = DEFAULT_LANG) -> Optional[WordRecord]:
        with self._lock:
            record = self._records.get((word, lang))
        if record is None:
            return None
        return _copy(record)

    def upsert(
        self,
        word: str,
        offsets: Sequence[int],
        definition: Optional[str],
        lang: str = DEFAULT_LANG,
    ) -> WordRecord:
        raise StoreError(f"Cannot store {word!r}: snapshot store is read-only")

    def all_records(self) -> List[WordRecord]:
        with self._lock:
            keys = sorted(self._records)
            return [_copy(self._records[key]) for key in keys]

    def insert_many(self, records: Iterable[WordRecord], *, replace: bool = False) -> int:
        loaded = {(record.word, record.lang): _copy(record) for record in records}
        with self._lock:
            if replace:
                self._records.clear()
            self._records.update(loaded)
        return len(loaded)

    def purge_definitions(self) -> int:
        raise StoreError("Cannot purge definitions: snapshot store is read-only")

    def clear(self) -> int:
        raise StoreError("Cannot clear words: snapshot store is read-only")
