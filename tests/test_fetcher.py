import requests

from slovo.models import NO_DEFINITION
from slovo.services.fetcher import (
    STATUS_ERROR,
    STATUS_FOUND,
    STATUS_NOT_FOUND,
    DefinitionFetcher,
)

from conftest import PAGE_WITHOUT_RUSSIAN, WIKTIONARY_PAGE, FakeResponse, FakeSession


def test_build_url_quotes_the_word(fetcher):
    assert fetcher.build_url("мужества") == (
        "https://dictionary.test/wiki/%D0%BC%D1%83%D0%B6%D0%B5%D1%81%D1%82%D0%B2%D0%B0"
    )
    assert fetcher.build_url("a/b") == "https://dictionary.test/wiki/a%2Fb"


def test_miss_fetches_transforms_and_caches(fetcher, session, cache):
    session.replies.append(FakeResponse(200, WIKTIONARY_PAGE))

    result = fetcher.fetch_definition("Мужества", [4])

    assert result.status == STATUS_FOUND
    assert not result.from_cache
    assert "<details" in result.html
    assert len(session.calls) == 1
    record = cache.get("мужества")
    assert record.definition == result.html
    assert record.offsets == [4]


def test_hit_skips_network_and_merges_offsets(fetcher, session, cache):
    cache.put("книга", [1], "<p>book</p>")

    result = fetcher.fetch_definition("книга", [7])

    assert result.status == STATUS_FOUND
    assert result.from_cache
    assert result.html == "<p>book</p>"
    assert session.calls == []
    assert cache.get("книга").offsets == [1, 7]


def test_word_without_definition_is_fetched(fetcher, session, cache):
    cache.put("книга", [1])
    session.replies.append(FakeResponse(200, WIKTIONARY_PAGE))

    result = fetcher.fetch_definition("книга")

    assert result.status == STATUS_FOUND
    assert len(session.calls) == 1
    assert cache.get("книга").offsets == [1]


def test_missing_section_is_cached_as_negative(fetcher, session, cache):
    session.replies.append(FakeResponse(200, PAGE_WITHOUT_RUSSIAN))

    first = fetcher.fetch_definition("тест")
    second = fetcher.fetch_definition("тест")

    assert first.status == STATUS_NOT_FOUND
    assert not first.from_cache
    assert second.status == STATUS_NOT_FOUND
    assert second.from_cache
    assert len(session.calls) == 1
    assert cache.get("тест").definition == NO_DEFINITION


def test_retrieval_failures_are_not_cached(fetcher, session, cache):
    session.replies.extend(
        [
            requests.ConnectionError("connection reset"),
            FakeResponse(503, "busy"),
            FakeResponse(200, WIKTIONARY_PAGE),
        ]
    )

    first = fetcher.fetch_definition("тест", [1])
    second = fetcher.fetch_definition("тест", [2])

    assert first.status == STATUS_ERROR
    assert "connection reset" in first.error
    assert second.status == STATUS_ERROR
    assert "HTTP 503" in second.error
    record = cache.get("тест")
    assert record is None or record.definition is None

    third = fetcher.fetch_definition("тест", [3])
    assert third.status == STATUS_FOUND
    assert len(session.calls) == 3


def test_http_404_is_a_retrieval_error(fetcher, session, cache):
    session.replies.append(FakeResponse(404, "Wiktionary does not yet have an entry"))
    result = fetcher.fetch_definition("абракадабра")
    assert result.status == STATUS_ERROR
    assert cache.get("абракадабра") is None


def test_network_requests_are_spaced(fetcher, session, cache, sleeps):
    cache.put("кэш", [], "<p>cached</p>")
    session.replies.extend(
        [FakeResponse(200, PAGE_WITHOUT_RUSSIAN), FakeResponse(200, PAGE_WITHOUT_RUSSIAN)]
    )

    fetcher.fetch_definition("один")
    fetcher.fetch_definition("кэш")
    assert sleeps == []
    fetcher.fetch_definition("два")
    assert sleeps == [1.0]


def test_no_wait_once_delay_has_passed(cache):
    ticks = iter([0.0, 5.0])
    sleeps = []
    session = FakeSession(
        [FakeResponse(200, PAGE_WITHOUT_RUSSIAN), FakeResponse(200, PAGE_WITHOUT_RUSSIAN)]
    )
    fetcher = DefinitionFetcher(
        cache,
        request_delay=1.0,
        session=session,
        sleep=sleeps.append,
        clock=lambda: next(ticks),
    )
    fetcher.fetch_definition("раз")
    fetcher.fetch_definition("два")
    assert sleeps == []


def test_empty_word_is_an_error(fetcher, session):
    result = fetcher.fetch_definition("   ")
    assert result.status == STATUS_ERROR
    assert session.calls == []


def test_close_only_closes_owned_session(fetcher, session, cache):
    fetcher.close()
    assert not session.closed

    owned = DefinitionFetcher(cache)
    owned.close()
