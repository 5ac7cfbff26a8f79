"""Exception hierarchy shared by the storage, snapshot and fetch layers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class SlovoError(Exception):
    """Base class for every error raised by slovo itself."""


class RetrievalError(SlovoError):
    """The dictionary page could not be fetched.

    Covers transport failures and non-success HTTP statuses. Never cached:
    the next lookup for the same word goes back to the network.
    """

    def __init__(
        self,
        word: str,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.word = word
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url} for {word!r}: {reason}")


class StoreError(SlovoError):
    """Reading from or writing to the word store failed."""


class MalformedSnapshot(SlovoError):
    """The snapshot file is unreadable or does not have the expected shape."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Malformed snapshot {self.path}: {reason}")


class PageError(SlovoError):
    """A reading page could not be loaded from its URL."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load page {url}: {reason}")


class InvalidPageUrl(PageError):
    def __init__(self, url: str) -> None:
        super().__init__(url, "not an http(s) URL")
