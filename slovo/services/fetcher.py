from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional
from urllib.parse import quote

import requests

from slovo.config import DEFAULT_DICTIONARY_URL, DEFAULT_SECTION, DEFAULT_USER_AGENT
from slovo.errors import RetrievalError
from slovo.models import NO_DEFINITION
from slovo.services.cache import DefinitionCache
from slovo.services.tokenizer import normalize_word
from slovo.services.wiktionary import process_wiktionary


LOGGER = logging.getLogger(__name__)

STATUS_FOUND = "found"
STATUS_NOT_FOUND = "not_found"
STATUS_ERROR = "error"


@dataclass
class DefinitionResult:
    word: str
    status: str
    html: Optional[str] = None
    error: Optional[str] = None
    from_cache: bool = False

    @property
    def found(self) -> bool:
        return self.status == STATUS_FOUND

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "status": self.status,
            "html": self.html,
            "error": self.error,
            "cached": self.from_cache,
        }


class DefinitionFetcher:
    """Cache-first lookup of a word's dictionary section.

    Only an authoritative "no section for this language" answer is cached
    as a negative result; retrieval failures are returned and forgotten.
    Network requests are spaced at least ``request_delay`` seconds apart.
    """

    def __init__(
        self,
        cache: DefinitionCache,
        *,
        base_url: str = DEFAULT_DICTIONARY_URL,
        section_id: str = DEFAULT_SECTION,
        timeout: float = 30.0,
        request_delay: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.section_id = section_id
        self.timeout = timeout
        self.request_delay = request_delay
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", user_agent)
        self._sleep = sleep
        self._clock = clock
        self._throttle_lock = threading.Lock()
        self._last_request: Optional[float] = None

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def build_url(self, word: str) -> str:
        return f"{self.base_url}/{quote(word, safe='')}"

    def _throttle(self) -> None:
        with self._throttle_lock:
            now = self._clock()
            if self._last_request is not None:
                wait = self._last_request + self.request_delay - now
                if wait > 0:
                    LOGGER.debug("Waiting %.2fs before next dictionary request", wait)
                    self._sleep(wait)
                    now = self._clock()
            self._last_request = now

    def retrieve(self, word: str) -> str:
        url = self.build_url(word)
        self._throttle()
        LOGGER.info("Fetching %s", url)
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RetrievalError(word, url, str(exc)) from exc
        if response.status_code != 200:
            raise RetrievalError(
                word,
                url,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    def fetch_definition(self, word: str, offsets: Iterable[int] = ()) -> DefinitionResult:
        normalized = normalize_word(word)
        if not normalized:
            return DefinitionResult(word=word, status=STATUS_ERROR, error="empty word")
        offsets = list(offsets)

        record = self.cache.get(normalized)
        if record is not None and record.is_fetched:
            LOGGER.debug("Cache hit for %r", normalized)
            if offsets:
                self.cache.put(normalized, offsets)
            if record.has_definition:
                return DefinitionResult(word=normalized, status=STATUS_FOUND, html=record.definition, from_cache=True)
            return DefinitionResult(word=normalized, status=STATUS_NOT_FOUND, from_cache=True)

        try:
            page = self.retrieve(normalized)
        except RetrievalError as exc:
            LOGGER.warning("%s", exc)
            return DefinitionResult(word=normalized, status=STATUS_ERROR, error=str(exc))

        body = process_wiktionary(page, self.section_id)
        if body is None:
            LOGGER.info("No %s section for %r", self.section_id, normalized)
            self.cache.put(normalized, offsets, NO_DEFINITION)
            return DefinitionResult(word=normalized, status=STATUS_NOT_FOUND)

        self.cache.put(normalized, offsets, body)
        LOGGER.info("Stored definition for %r", normalized)
        return DefinitionResult(word=normalized, status=STATUS_FOUND, html=body)
