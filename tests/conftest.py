from __future__ import annotations

from typing import Dict, List, Optional, Union

import pytest
import requests

from slovo.database import Database
from slovo.services.cache import DefinitionCache
from slovo.services.fetcher import DefinitionFetcher
from slovo.storage import SqlWordStore


WIKTIONARY_PAGE = """<!DOCTYPE html>
<html><head><title>мужества - Wiktionary</title></head>
<body>
<div class="mw-content-ltr mw-parser-output" lang="en" dir="ltr">
<div class="mw-heading mw-heading2"><h2 id="Bulgarian">Bulgarian</h2><span class="mw-editsection">[<a href="#">edit</a>]</span></div>
<p>Bulgarian content</p>
<div class="mw-heading mw-heading2"><h2 id="Russian">Russian</h2><span class="mw-editsection">[<a href="#">edit</a>]</span></div>
<div class="mw-heading mw-heading3"><h3 id="Pronunciation">Pronunciation</h3><span class="mw-editsection">[<a href="#">edit</a>]</span></div>
<ul><li>IPA: <span class="IPA">[ˈmuʐɨstvə]</span></li></ul>
<div class="mw-heading mw-heading3"><h3 id="Noun">Noun</h3><span class="mw-editsection">[<a href="#">edit</a>]</span></div>
<p><span class="headword-line"><strong class="Cyrl headword" lang="ru">му́жества</strong></span></p>
<ol><li>inflection of <i class="Cyrl mention" lang="ru"><a href="/wiki/мужество">му́жество</a></i></li></ol>
<div class="mw-heading mw-heading3"><h3 id="Anagrams">Anagrams</h3></div>
<ul><li>мужатся</li></ul>
<div class="mw-heading mw-heading2"><h2 id="Ukrainian">Ukrainian</h2></div>
<p>Ukrainian content</p>
</div>
</body></html>
"""

PAGE_WITHOUT_RUSSIAN = """<html><body><div class="mw-parser-output">
<div class="mw-heading mw-heading2"><h2 id="Serbo-Croatian">Serbo-Croatian</h2></div>
<p>not russian</p>
</div></body></html>"""


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests.Session; replies are consumed per URL or in order."""

    def __init__(self, replies: Optional[List[Union[FakeResponse, Exception]]] = None) -> None:
        self.headers: Dict[str, str] = {}
        self.replies = list(replies or [])
        self.calls: List[str] = []
        self.closed = False

    def get(self, url: str, timeout: float = None) -> FakeResponse:
        self.calls.append(url)
        if not self.replies:
            raise requests.ConnectionError("no reply configured")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "words-dump.yaml"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'words.db'}"


@pytest.fixture
def cache(database_url, snapshot_path):
    cache = DefinitionCache(SqlWordStore(Database(database_url)), snapshot_path)
    cache.initialize()
    yield cache
    cache.close()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fetcher(cache, session, sleeps):
    return DefinitionFetcher(
        cache,
        base_url="https://dictionary.test/wiki",
        request_delay=1.0,
        session=session,
        sleep=sleeps.append,
        clock=lambda: 100.0,
    )
