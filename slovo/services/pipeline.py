from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from slovo.errors import StoreError
from slovo.services.cache import DefinitionCache
from slovo.services.fetcher import STATUS_ERROR, DefinitionFetcher, DefinitionResult
from slovo.services.tokenizer import contains_cyrillic, normalize_word, split_text


LOGGER = logging.getLogger(__name__)

WORD_CLASS = "russian-word"
WORD_LANG = "ru"

SKIPPED_TAGS = {"script", "style", "textarea"}

Offsets = Dict[str, List[int]]


@dataclass
class ProcessedContent:
    html: str
    words: List[str]
    offsets: Offsets = field(default_factory=dict)
    results: Dict[str, DefinitionResult] = field(default_factory=dict)

    @property
    def failed(self) -> List[str]:
        return [word for word, result in self.results.items() if result.status == STATUS_ERROR]


def load_common_words(path: Optional[Path]) -> Set[str]:
    """Read a comma or newline separated word list; a missing file gives an empty set."""
    if path is None or not path.exists():
        return set()
    text = path.read_text(encoding="utf-8")
    chunks = text.replace("\n", ",").split(",")
    return {normalize_word(chunk) for chunk in chunks if normalize_word(chunk)}


def _text_nodes(root: Tag) -> List[NavigableString]:
    nodes: List[NavigableString] = []
    for node in root.find_all(string=True):
        if isinstance(node, PreformattedString):
            continue
        if any(parent.name in SKIPPED_TAGS for parent in node.parents):
            continue
        if not node.strip():
            continue
        nodes.append(node)
    return nodes


class ContentPipeline:
    """Wrap Russian words of an HTML document and look up their definitions."""

    def __init__(
        self,
        cache: Optional[DefinitionCache] = None,
        fetcher: Optional[DefinitionFetcher] = None,
        *,
        common_words: Optional[Iterable[str]] = None,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.common_words = {normalize_word(word) for word in common_words or ()}

    def _marker(self, soup: BeautifulSoup, text: str, normalized: str) -> Tag:
        span = soup.new_tag(
            "span",
            attrs={"class": WORD_CLASS, "data-lang": WORD_LANG, "data-word": normalized},
        )
        if normalized in self.common_words:
            span["data-common"] = "true"
        span.string = text
        return span

    def wrap_words(self, document: Union[str, bytes]) -> Tuple[BeautifulSoup, Offsets]:
        soup = BeautifulSoup(document or "", "html.parser")
        for script in soup.find_all("script"):
            script.decompose()

        offsets: Offsets = OrderedDict()
        root = soup.body or soup
        for node in _text_nodes(root):
            if not contains_cyrillic(node):
                continue
            parts = split_text(str(node))
            replacement = []
            for text, token in parts:
                if token is None:
                    replacement.append(NavigableString(text))
                    continue
                offsets.setdefault(token.normalized, []).append(token.start)
                replacement.append(self._marker(soup, text, token.normalized))
            node.replace_with(*replacement)
        return soup, offsets

    def process(
        self,
        document: Union[str, bytes],
        fetch_definitions: bool = False,
        *,
        workers: int = 1,
    ) -> ProcessedContent:
        soup, offsets = self.wrap_words(document)
        words = list(offsets)
        LOGGER.info("Found %d unique Russian words", len(words))

        results: Dict[str, DefinitionResult] = {}
        if fetch_definitions:
            results = self.fetch_definitions(words, offsets, workers=workers)
            failed = {word: offsets[word] for word, result in results.items() if result.status == STATUS_ERROR}
            if failed and self.cache is not None:
                # Failed lookups still record their occurrences.
                self.record_words(failed)
        elif self.cache is not None:
            self.record_words(offsets)

        return ProcessedContent(html=str(soup), words=words, offsets=dict(offsets), results=results)

    def record_words(self, offsets: Offsets) -> int:
        """Store occurrences without touching definitions."""
        if self.cache is None:
            raise RuntimeError("ContentPipeline has no cache configured")
        stored = 0
        for word, positions in offsets.items():
            try:
                if self.cache.put(word, positions):
                    stored += 1
            except StoreError as exc:
                LOGGER.warning("Could not record %r: %s", word, exc)
        return stored

    def _fetch_one(self, word: str, offsets: Offsets) -> DefinitionResult:
        try:
            return self.fetcher.fetch_definition(word, offsets.get(word, ()))
        except StoreError as exc:
            LOGGER.warning("Could not store definition for %r: %s", word, exc)
            return DefinitionResult(word=word, status=STATUS_ERROR, error=str(exc))

    def fetch_definitions(
        self,
        words: Iterable[str],
        offsets: Optional[Offsets] = None,
        *,
        workers: int = 1,
    ) -> Dict[str, DefinitionResult]:
        if self.fetcher is None:
            raise RuntimeError("ContentPipeline has no fetcher configured")
        offsets = offsets or {}
        ordered = list(OrderedDict.fromkeys(normalize_word(word) for word in words if normalize_word(word)))

        results: Dict[str, DefinitionResult] = OrderedDict()
        if workers <= 1 or len(ordered) <= 1:
            for word in ordered:
                results[word] = self._fetch_one(word, offsets)
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="slovo-fetch") as executor:
                futures = [(word, executor.submit(self._fetch_one, word, offsets)) for word in ordered]
                for word, future in futures:
                    results[word] = future.result()

        failed = sum(1 for result in results.values() if result.status == STATUS_ERROR)
        if failed:
            LOGGER.warning("%d of %d definitions could not be loaded", failed, len(results))
        return results
