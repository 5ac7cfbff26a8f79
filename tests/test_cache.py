import threading

import pytest

from slovo.database import Database
from slovo.errors import StoreError
from slovo.models import NO_DEFINITION, WordRecord
from slovo.services.cache import DefinitionCache
from slovo.snapshot import dump_records
from slovo.storage import SnapshotWordStore, SqlWordStore


def test_get_missing_word_returns_none(cache):
    assert cache.get("книга") is None
    assert cache.get("") is None


def test_put_normalizes_the_key(cache):
    assert cache.put("  Книга ", [3])
    record = cache.get("КНИГА")
    assert record.word == "книга"
    assert record.offsets == [3]
    assert record.definition is None
    assert not record.is_fetched


def test_put_merges_offsets_and_keeps_definition(cache):
    cache.put("дом", [5, 1, 5], None)
    cache.put("дом", [1, 9], "<div>def</div>")
    record = cache.get("дом")
    assert sorted(record.offsets) == [1, 5, 9]
    assert record.definition == "<div>def</div>"

    cache.put("дом", [2], None)
    record = cache.get("дом")
    assert record.definition == "<div>def</div>"
    assert sorted(record.offsets) == [1, 2, 5, 9]


def test_no_definition_marker_is_fetched_but_empty(cache):
    cache.put("абв", [], NO_DEFINITION)
    record = cache.get("абв")
    assert record.is_fetched
    assert not record.has_definition


def test_put_rejects_empty_word(cache):
    with pytest.raises(ValueError):
        cache.put("   ", [1])


def test_get_all_and_count(cache):
    cache.put("яблоко", [1])
    cache.put("арбуз", [2], "<p>melon</p>")
    assert cache.count() == 2
    assert [record.word for record in cache.get_all()] == ["арбуз", "яблоко"]


def test_purge_definitions_keeps_offsets(cache):
    cache.put("кот", [1, 2], "<p>cat</p>")
    cache.put("пёс", [4], NO_DEFINITION)
    assert cache.purge_definitions() == 2
    for word, offsets in (("кот", [1, 2]), ("пёс", [4])):
        record = cache.get(word)
        assert record.definition is None
        assert record.offsets == offsets


def test_clear_removes_everything(cache):
    cache.put("кот", [1])
    cache.put("пёс", [2])
    assert cache.clear() == 2
    assert cache.count() == 0


def test_concurrent_puts_do_not_lose_offsets(cache):
    def worker(start):
        for offset in range(start, start + 10):
            cache.put("слово", [offset])

    threads = [threading.Thread(target=worker, args=(start,)) for start in (0, 100, 200, 300)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    record = cache.get("слово")
    expected = [offset for start in (0, 100, 200, 300) for offset in range(start, start + 10)]
    assert sorted(record.offsets) == expected


def test_initialize_restores_empty_store_from_snapshot(database_url, snapshot_path):
    dump_records(
        [
            WordRecord(word="книга", offsets=[0, 8], definition="<p>book</p>"),
            WordRecord(word="ещё", offsets=[], definition=NO_DEFINITION),
        ],
        snapshot_path,
    )
    cache = DefinitionCache(SqlWordStore(Database(database_url)), snapshot_path)
    cache.initialize()
    try:
        assert cache.count() == 2
        assert cache.get("книга").definition == "<p>book</p>"
        assert cache.get("ещё").definition == NO_DEFINITION
    finally:
        cache.close()


def test_initialize_does_not_restore_non_empty_store(database_url, snapshot_path):
    first = DefinitionCache(SqlWordStore(Database(database_url)), snapshot_path)
    first.initialize()
    first.put("свой", [1])
    first.close()

    dump_records([WordRecord(word="чужой", offsets=[2])], snapshot_path)
    second = DefinitionCache(SqlWordStore(Database(database_url)), snapshot_path)
    second.initialize()
    try:
        assert second.get("чужой") is None
        assert second.get("свой") is not None
    finally:
        second.close()


def test_malformed_snapshot_starts_empty(database_url, snapshot_path, caplog):
    snapshot_path.write_text("word: [unclosed\n", encoding="utf-8")
    cache = DefinitionCache(SqlWordStore(Database(database_url)), snapshot_path)
    with caplog.at_level("WARNING"):
        cache.initialize()
    try:
        assert cache.count() == 0
        assert "Malformed snapshot" in caplog.text
    finally:
        cache.close()


def test_restore_merges_duplicate_spellings(cache, snapshot_path):
    snapshot_path.write_text(
        "- {word: Дом, offsets: [1], definition: null}\n"
        "- {word: дом, offsets: [2], definition: '<p>house</p>'}\n",
        encoding="utf-8",
    )
    assert cache.restore_snapshot() == 1
    record = cache.get("дом")
    assert record.offsets == [1, 2]
    assert record.definition == "<p>house</p>"


def test_snapshot_backend_is_read_only(snapshot_path, caplog):
    dump_records([WordRecord(word="мир", offsets=[3], definition="<p>world</p>")], snapshot_path)
    cache = DefinitionCache(SnapshotWordStore(), snapshot_path)
    cache.initialize()

    assert cache.read_only
    assert cache.get("Мир").definition == "<p>world</p>"
    with caplog.at_level("WARNING"):
        assert cache.put("мир", [4], "<p>changed</p>") is False
    assert cache.get("мир").definition == "<p>world</p>"
    assert "read-only" in caplog.text

    with pytest.raises(StoreError):
        cache.purge_definitions()
    with pytest.raises(StoreError):
        cache.clear()


def test_snapshot_store_hands_out_copies():
    store = SnapshotWordStore()
    store.insert_many([WordRecord(word="мир", offsets=[3], definition="<p>world</p>")])

    (record,) = store.all_records()
    record.offsets.append(99)
    record.definition = "changed"

    (again,) = store.all_records()
    assert again.offsets == [3]
    assert again.definition == "<p>world</p>"
    assert store.fetch("мир").offsets == [3]
