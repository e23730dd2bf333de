"""JSON document store for race, rider and broadcaster data.

Every document is a flat JSON file read fully into memory, mutated by the
caller, and rewritten wholesale (2-space indent, trailing newline). No
concurrent writers are assumed.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

RACE_DATA = "race-data"
RIDERS = "riders"
RIDERS_WOMEN = "riders-women"
BROADCASTERS = "broadcasters"

EMPTY_DOCUMENTS = {
    RACE_DATA: {"lastUpdated": None, "races": []},
    RIDERS: {"lastUpdated": None, "riders": []},
    RIDERS_WOMEN: {"lastUpdated": None, "riders": []},
    BROADCASTERS: {
        "officialChannels": {},
        "trustedChannels": {},
        "emergingChannels": [],
        "blockedChannels": [],
        "licensedBroadcasters": {},
    },
}


def utc_now_iso() -> str:
    """ISO-8601 timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def dump_json(doc) -> str:
    return json.dumps(doc, indent=2, ensure_ascii=False) + "\n"


class DataStore:
    """Load/save named JSON documents. Subclasses decide where they live."""

    def load(self, name: str) -> dict:
        raise NotImplementedError

    def save(self, name: str, doc: dict) -> None:
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        raise NotImplementedError

    def _empty(self, name: str) -> dict:
        return copy.deepcopy(EMPTY_DOCUMENTS.get(name, {}))


class JsonFileStore(DataStore):
    """Documents stored as ``<data_dir>/<name>.json``."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def load(self, name: str) -> dict:
        path = self.path_for(name)
        if not path.exists():
            logger.warning("Data file not found at %s, starting empty", path)
            return self._empty(name)
        return json.loads(path.read_text(encoding="utf-8"))

    def save(self, name: str, doc: dict) -> None:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_json(doc), encoding="utf-8")
        logger.debug("Wrote %s", path)


class MemoryStore(DataStore):
    """In-memory store for tests and dry runs."""

    def __init__(self, documents: Optional[dict] = None):
        self.documents = copy.deepcopy(documents) if documents else {}

    def exists(self, name: str) -> bool:
        return name in self.documents

    def load(self, name: str) -> dict:
        if name not in self.documents:
            return self._empty(name)
        return copy.deepcopy(self.documents[name])

    def save(self, name: str, doc: dict) -> None:
        # Round-trip through JSON so tests catch non-serializable values
        self.documents[name] = json.loads(dump_json(doc))


# ── Typed helpers ──


def riders_document_name(gender: str = "men") -> str:
    return RIDERS_WOMEN if gender == "women" else RIDERS


def load_race_data(store: DataStore) -> dict:
    doc = store.load(RACE_DATA)
    doc.setdefault("races", [])
    return doc


def save_race_data(store: DataStore, doc: dict) -> None:
    doc["lastUpdated"] = utc_now_iso()
    store.save(RACE_DATA, doc)


def load_riders(store: DataStore, gender: str = "men") -> dict:
    doc = store.load(riders_document_name(gender))
    doc.setdefault("riders", [])
    return doc


def save_riders(store: DataStore, doc: dict, gender: str = "men") -> None:
    doc["lastUpdated"] = utc_now_iso()
    store.save(riders_document_name(gender), doc)


def load_broadcasters(store: DataStore) -> dict:
    return store.load(BROADCASTERS)


def save_broadcasters(store: DataStore, doc: dict) -> None:
    doc["lastUpdated"] = utc_now_iso()
    store.save(BROADCASTERS, doc)
