"""YAML snapshot of the word store.

The snapshot is a plain list of mappings, one per word::

    - word: книга
      offsets: [4, 17]
      definition: <div class="wiktionary-entry">...</div>

``definition: null`` means the word was never fetched, ``definition: ''``
means the dictionary had no entry for it. Both survive a round trip.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from slovo.errors import MalformedSnapshot
from slovo.models import DEFAULT_LANG, WordRecord, merge_offsets


LOGGER = logging.getLogger(__name__)


def record_to_dict(record: WordRecord) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "word": record.word,
        "offsets": list(record.offsets),
        "definition": record.definition,
    }
    if record.lang != DEFAULT_LANG:
        payload["lang"] = record.lang
    return payload


def record_from_dict(item: Any, *, path: Path, index: int) -> WordRecord:
    if not isinstance(item, dict):
        raise MalformedSnapshot(path, f"entry {index} is not a mapping")
    word = item.get("word")
    if not isinstance(word, str) or not word.strip():
        raise MalformedSnapshot(path, f"entry {index} has no word")

    offsets = item.get("offsets")
    if offsets is None:
        # Older dumps used "indices".
        offsets = item.get("indices", [])
    if not isinstance(offsets, list) or not all(
        isinstance(value, int) and not isinstance(value, bool) for value in offsets
    ):
        raise MalformedSnapshot(path, f"entry {index} ({word}) has invalid offsets")

    definition = item.get("definition", item.get("wiktionary"))
    if definition is not None and not isinstance(definition, str):
        raise MalformedSnapshot(path, f"entry {index} ({word}) has a non-text definition")

    lang = item.get("lang") or DEFAULT_LANG
    return WordRecord(word=word, offsets=list(offsets), definition=definition, lang=str(lang))


def dump_records(records: Iterable[WordRecord], path: Path) -> int:
    payload = [record_to_dict(record) for record in records]
    path.parent.mkdir(parents=True, exist_ok=True)
    # The previous snapshot stays intact until the new one is complete.
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as fh:
        tmp_path = Path(fh.name)
        try:
            yaml.safe_dump(
                payload,
                fh,
                allow_unicode=True,
                sort_keys=False,
                default_flow_style=None,
                width=120,
            )
        except BaseException:
            fh.close()
            tmp_path.unlink()
            raise
    tmp_path.replace(path)
    LOGGER.info("Dumped %d words to %s", len(payload), path)
    return len(payload)


def load_records(path: Path) -> List[WordRecord]:
    """Read a snapshot; repeated entries for one word are merged."""
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise MalformedSnapshot(path, f"cannot read file: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise MalformedSnapshot(path, f"not UTF-8 text: {exc}") from exc
    except yaml.YAMLError as exc:
        raise MalformedSnapshot(path, f"invalid YAML: {exc}") from exc

    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedSnapshot(path, "top level is not a list")

    merged: Dict[Tuple[str, str], WordRecord] = {}
    for index, item in enumerate(data):
        record = record_from_dict(item, path=path, index=index)
        key = (record.word, record.lang)
        existing = merged.get(key)
        if existing is None:
            merged[key] = record
            continue
        LOGGER.debug("Merging repeated snapshot entry for %r", record.word)
        existing.offsets = merge_offsets(existing.offsets, record.offsets)
        if record.definition is not None:
            existing.definition = record.definition
    return list(merged.values())
