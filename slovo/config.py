from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional


BASE_DIR = Path(__file__).resolve().parent.parent

STORAGE_BACKENDS = ("sql", "snapshot")

DEFAULT_DICTIONARY_URL = "https://en.wiktionary.org/wiki"
DEFAULT_SECTION = "Russian"
DEFAULT_USER_AGENT = "slovo/0.1 (personal reading aid)"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    database_url: str
    storage_backend: str
    snapshot_path: Path
    dictionary_url: str = DEFAULT_DICTIONARY_URL
    section: str = DEFAULT_SECTION
    request_delay: float = 1.0
    request_timeout: float = 30.0
    max_workers: int = 4
    common_words_path: Optional[Path] = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.storage_backend!r}; "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        if self.request_delay < 0:
            raise ValueError("request_delay must not be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


def _resolve_path(value: str) -> Path:
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = BASE_DIR / candidate
    return candidate.resolve()


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    data_dir_value = env.get("SLOVO_DATA_DIR")
    data_dir = _resolve_path(data_dir_value) if data_dir_value else (BASE_DIR / "data").resolve()

    snapshot_value = env.get("SLOVO_SNAPSHOT_PATH")
    snapshot_path = _resolve_path(snapshot_value) if snapshot_value else data_dir / "words-dump.yaml"

    common_value = env.get("SLOVO_COMMON_WORDS")
    common_words_path = _resolve_path(common_value) if common_value else data_dir / "1000words.txt"

    return Settings(
        data_dir=data_dir,
        database_url=env.get("SLOVO_DATABASE_URL", f"sqlite:///{data_dir / 'words.db'}"),
        storage_backend=env.get("SLOVO_STORAGE_BACKEND", "sql").strip().lower(),
        snapshot_path=snapshot_path,
        dictionary_url=env.get("SLOVO_DICTIONARY_URL", DEFAULT_DICTIONARY_URL).rstrip("/"),
        section=env.get("SLOVO_SECTION", DEFAULT_SECTION),
        request_delay=float(env.get("SLOVO_REQUEST_DELAY", "1.0")),
        request_timeout=float(env.get("SLOVO_REQUEST_TIMEOUT", "30")),
        max_workers=int(env.get("SLOVO_MAX_WORKERS", "4")),
        common_words_path=common_words_path,
        user_agent=env.get("SLOVO_USER_AGENT", DEFAULT_USER_AGENT),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
