"""
Local key-value persistence backends.

Values are whole JSON documents (collection snapshots or single entities);
``set`` always replaces the full document under a key.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from tracker.core.errors import PersistenceError

log = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, document: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStorage:
    """Process-local storage; documents are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def set(self, key: str, document: Any) -> None:
        self._data[key] = copy.deepcopy(document)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """All keys live in one JSON file, rewritten atomically on every change."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
        return data if isinstance(data, dict) else {}

    def save(self, db: dict) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(db, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            log.warning("Failed to write %s: %s", self.path, exc)
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc

    def get(self, key: str) -> Any | None:
        return self.load().get(key)

    def set(self, key: str, document: Any) -> None:
        db = self.load()
        db[key] = document
        self.save(db)

    def delete(self, key: str) -> None:
        db = self.load()
        if key in db:
            del db[key]
            self.save(db)

    def keys(self) -> list[str]:
        return list(self.load())
