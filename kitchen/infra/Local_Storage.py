"""Key-value persistence modelled on browser local storage.

Every logical collection is stored under a primary key, mirrored to a
`<key>_backup` shadow key and stamped with `<key>_timestamp`. Loading prefers
the primary key and falls back to the backup when the primary is missing or
holds the literal "null". A `<key>_initialized` sentinel remembers that
first-run sample data was already seeded.

Write failures never propagate: they are logged, published as
`storage.write_failed`, and the caller keeps working in memory.
"""
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from kitchen.domain.errors import StorageWriteFailure
from kitchen.events.Event_Bus import GLOBAL_EVENT_BUS, STORAGE_WRITE_FAILED

logger = logging.getLogger(__name__)


class KeyValueStorage:
    """Base class: subclasses implement the raw string get/set/remove."""

    def __init__(self, event_bus=None):
        self._event_bus = event_bus or GLOBAL_EVENT_BUS

    def set_event_bus(self, bus):
        self._event_bus = bus
        return self

    # --- raw access (subclass responsibility) -----------------------------
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_items(self, items: Dict[str, str]) -> None:
        '''Writes several keys at once; raises StorageWriteFailure on failure.'''
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    # --- collections ----------------------------------------------------------
    def load_collection(self, key: str, default: Any = None) -> Any:
        """Load JSON under `key`, falling back to `<key>_backup`, then to `default`."""
        for candidate in (key, f"{key}_backup"):
            raw = self.get_item(candidate)
            if raw is None or raw == "null":
                continue
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                logger.error(f"Corrupt JSON under '{candidate}': {e}")
        return default

    def save_collection(self, key: str, value: Any) -> bool:
        """Persist `value` under key, backup and timestamp. Returns False on failure."""
        try:
            data = json.dumps(value, ensure_ascii=False)
            self.set_items({
                key: data,
                f"{key}_backup": data,
                f"{key}_timestamp": datetime.now().isoformat(),
            })
            return True
        except (StorageWriteFailure, TypeError, ValueError) as e:
            logger.error(f"Could not save '{key}': {e}")
            self._event_bus.publish(STORAGE_WRITE_FAILED, {"key": key, "error": str(e)})
            return False

    def has_collection(self, key: str) -> bool:
        return self.load_collection(key) is not None

    def is_initialized(self, key: str) -> bool:
        return self.get_item(f"{key}_initialized") == "true"

    def mark_initialized(self, key: str) -> None:
        try:
            self.set_item(f"{key}_initialized", "true")
        except StorageWriteFailure as e:
            logger.error(f"Could not mark '{key}' initialized: {e}")
            self._event_bus.publish(STORAGE_WRITE_FAILED, {"key": f"{key}_initialized", "error": str(e)})


class InMemoryStorage(KeyValueStorage):
    """Volatile storage; `fail_writes` simulates an exhausted quota."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, event_bus=None):
        super().__init__(event_bus)
        self.items: Dict[str, str] = dict(initial or {})
        self.fail_writes = False

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_items(self, items: Dict[str, str]) -> None:
        if self.fail_writes:
            raise StorageWriteFailure("Storage quota exceeded")
        self.items.update(items)

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """All keys live in one JSON object file, rewritten atomically on every write."""

    def __init__(self, path: Path, event_bus=None):
        super().__init__(event_bus)
        self.path = Path(path)
        self._items = self._read_file()

    def _read_file(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return {str(k): v for k, v in data.items() if isinstance(v, str)} if isinstance(data, dict) else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read storage file {self.path}: {e}")
            return {}

    def _atomic_write(self, items: Dict[str, str]):
        os.makedirs(self.path.parent, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".storage_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(items, tmp, indent=2, ensure_ascii=False)
            shutil.move(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_items(self, items: Dict[str, str]) -> None:
        updated = dict(self._items)
        updated.update(items)
        try:
            self._atomic_write(updated)
        except OSError as e:
            raise StorageWriteFailure(str(e)) from e
        self._items = updated

    def remove_item(self, key: str) -> None:
        if key not in self._items:
            return
        updated = dict(self._items)
        updated.pop(key)
        try:
            self._atomic_write(updated)
        except OSError as e:
            raise StorageWriteFailure(str(e)) from e
        self._items = updated
