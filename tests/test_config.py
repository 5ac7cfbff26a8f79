import pytest

from slovo.config import BASE_DIR, DEFAULT_DICTIONARY_URL, load_settings


def test_defaults():
    settings = load_settings({})
    data_dir = (BASE_DIR / "data").resolve()
    assert settings.data_dir == data_dir
    assert settings.database_url == f"sqlite:///{data_dir / 'words.db'}"
    assert settings.storage_backend == "sql"
    assert settings.snapshot_path == data_dir / "words-dump.yaml"
    assert settings.common_words_path == data_dir / "1000words.txt"
    assert settings.dictionary_url == DEFAULT_DICTIONARY_URL
    assert settings.section == "Russian"
    assert settings.request_delay == 1.0
    assert settings.max_workers == 4


def test_environment_overrides(tmp_path):
    settings = load_settings(
        {
            "SLOVO_DATA_DIR": str(tmp_path),
            "SLOVO_STORAGE_BACKEND": " Snapshot ",
            "SLOVO_DICTIONARY_URL": "https://ru.wiktionary.org/wiki/",
            "SLOVO_SECTION": "ru",
            "SLOVO_REQUEST_DELAY": "0.5",
            "SLOVO_MAX_WORKERS": "2",
        }
    )
    assert settings.data_dir == tmp_path.resolve()
    assert settings.snapshot_path == tmp_path.resolve() / "words-dump.yaml"
    assert settings.storage_backend == "snapshot"
    assert settings.dictionary_url == "https://ru.wiktionary.org/wiki"
    assert settings.section == "ru"
    assert settings.request_delay == 0.5
    assert settings.max_workers == 2


def test_relative_paths_resolve_against_project():
    settings = load_settings({"SLOVO_SNAPSHOT_PATH": "dumps/words.yaml"})
    assert settings.snapshot_path == (BASE_DIR / "dumps" / "words.yaml").resolve()


@pytest.mark.parametrize(
    "environ",
    [
        {"SLOVO_STORAGE_BACKEND": "redis"},
        {"SLOVO_REQUEST_DELAY": "-1"},
        {"SLOVO_MAX_WORKERS": "0"},
    ],
)
def test_invalid_settings_are_rejected(environ):
    with pytest.raises(ValueError):
        load_settings(environ)
