from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    pass


class StateStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """Keeps documents in a dict; survives nothing but the process."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        # serialize on write so callers never share references with the store
        self._data[key] = json.dumps(copy.deepcopy(value), ensure_ascii=False)


class JsonFileStore:
    """One JSON file per key under ``root``, replaced whole on every write."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def _file(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._file(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to read %s: %s", path, e)
            raise PersistenceError(f"Cannot read {key}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._file(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write %s: %s", path, e)
            raise PersistenceError(f"Cannot write {key}") from e
