from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from slovo.errors import MalformedSnapshot
from slovo.models import DEFAULT_LANG, WordRecord, merge_offsets
from slovo.services.tokenizer import normalize_word
from slovo.snapshot import dump_records, load_records
from slovo.storage import WordStore


LOGGER = logging.getLogger(__name__)


class _KeyedLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


def _collapse_duplicates(records: Iterable[WordRecord]) -> List[WordRecord]:
    merged: "OrderedDict[tuple, WordRecord]" = OrderedDict()
    for record in records:
        word = normalize_word(record.word)
        if not word:
            continue
        key = (word, record.lang)
        existing = merged.get(key)
        if existing is None:
            merged[key] = WordRecord(
                word=word,
                offsets=merge_offsets([], record.offsets),
                definition=record.definition,
                lang=record.lang,
            )
            continue
        existing.offsets = merge_offsets(existing.offsets, record.offsets)
        if record.definition is not None:
            existing.definition = record.definition
    return list(merged.values())


class DefinitionCache:
    """Word -> occurrences/definition store with snapshot bootstrap.

    The cache is the only component that writes to the store. Writes for
    the same word are serialized so concurrent ``put`` calls never lose an
    offset merge.
    """

    def __init__(
        self,
        store: WordStore,
        snapshot_path: Optional[Path] = None,
        *,
        lang: str = DEFAULT_LANG,
    ) -> None:
        self.store = store
        self.snapshot_path = snapshot_path
        self.lang = lang
        self._locks = _KeyedLocks()
        self._initialized = False

    @property
    def read_only(self) -> bool:
        return self.store.read_only

    def initialize(self) -> None:
        if self._initialized:
            return
        self.store.initialize()
        self._initialized = True
        if self.store.count() > 0:
            return
        if self.snapshot_path is None or not self.snapshot_path.exists():
            LOGGER.info("Word store is empty and no snapshot was found; starting empty")
            return
        try:
            restored = self.restore_snapshot(self.snapshot_path, replace=False)
        except MalformedSnapshot as exc:
            LOGGER.warning("%s; starting with an empty word store", exc)
            return
        LOGGER.info("Restored %d words from %s", restored, self.snapshot_path)

    def close(self) -> None:
        if not self._initialized:
            return
        self.store.close()
        self._initialized = False

    def get(self, word: str) -> Optional[WordRecord]:
        normalized = normalize_word(word)
        if not normalized:
            return None
        return self.store.fetch(normalized, self.lang)

    def put(
        self,
        word: str,
        offsets: Iterable[int] = (),
        definition: Optional[str] = None,
    ) -> bool:
        normalized = normalize_word(word)
        if not normalized:
            raise ValueError("Cannot store an empty word")
        if self.store.read_only:
            LOGGER.warning("Ignoring write for %r: word store is read-only", normalized)
            return False
        with self._locks.get(normalized):
            self.store.upsert(normalized, list(offsets), definition, self.lang)
        return True

    def get_all(self) -> List[WordRecord]:
        return self.store.all_records()

    def count(self) -> int:
        return self.store.count()

    def purge_definitions(self) -> int:
        purged = self.store.purge_definitions()
        LOGGER.info("Purged definitions of %d words", purged)
        return purged

    def clear(self) -> int:
        removed = self.store.clear()
        LOGGER.info("Removed %d words", removed)
        return removed

    def export_snapshot(self, path: Optional[Path] = None) -> int:
        target = path or self.snapshot_path
        if target is None:
            raise ValueError("No snapshot path configured")
        return dump_records(self.get_all(), target)

    def restore_snapshot(self, path: Optional[Path] = None, *, replace: bool = True) -> int:
        source = path or self.snapshot_path
        if source is None:
            raise ValueError("No snapshot path configured")
        records = _collapse_duplicates(load_records(source))
        return self.store.insert_many(records, replace=replace)
