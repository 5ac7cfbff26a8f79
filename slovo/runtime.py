"""Assembles store, cache, fetcher and pipeline from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from slovo.config import Settings, get_settings
from slovo.database import Database
from slovo.services.cache import DefinitionCache
from slovo.services.fetcher import DefinitionFetcher
from slovo.services.pages import PageLoader
from slovo.services.pipeline import ContentPipeline, load_common_words
from slovo.storage import SnapshotWordStore, SqlWordStore, WordStore


LOGGER = logging.getLogger(__name__)


def create_store(settings: Settings) -> WordStore:
    if settings.storage_backend == "snapshot":
        return SnapshotWordStore()
    return SqlWordStore(Database(settings.database_url))


@dataclass
class Runtime:
    settings: Settings
    cache: DefinitionCache
    fetcher: DefinitionFetcher
    pipeline: ContentPipeline
    pages: PageLoader

    def initialize(self) -> "Runtime":
        self.cache.initialize()
        LOGGER.info(
            "Word store ready (%s backend, %d words)",
            self.cache.store.name,
            self.cache.count(),
        )
        return self

    def close(self) -> None:
        self.fetcher.close()
        self.pages.close()
        self.cache.close()

    def __enter__(self) -> "Runtime":
        return self.initialize()

    def __exit__(self, *exc_info) -> None:
        self.close()


def create_runtime(
    settings: Optional[Settings] = None,
    *,
    store: Optional[WordStore] = None,
    session: Optional[requests.Session] = None,
) -> Runtime:
    settings = settings or get_settings()
    cache = DefinitionCache(store or create_store(settings), settings.snapshot_path)
    fetcher = DefinitionFetcher(
        cache,
        base_url=settings.dictionary_url,
        section_id=settings.section,
        timeout=settings.request_timeout,
        request_delay=settings.request_delay,
        user_agent=settings.user_agent,
        session=session,
    )
    pipeline = ContentPipeline(
        cache,
        fetcher,
        common_words=load_common_words(settings.common_words_path),
    )
    pages = PageLoader(
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
        session=session,
    )
    return Runtime(settings=settings, cache=cache, fetcher=fetcher, pipeline=pipeline, pages=pages)
