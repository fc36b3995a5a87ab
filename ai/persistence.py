"""
persistence.py  –  Key-value persistence for learned AI data.

The AI sub-systems only need two calls:

    load(key)          → previously saved value, or None
    save(key, value)   → best-effort write

JsonFileStore keeps one '<key>.json' file per key in a data directory
(Q-table, learned patterns, player metrics, decision history).
InMemoryStore satisfies the same contract for tests and throw-away
sessions.

Reads that fail (missing / corrupt file) return None; writes that fail
are logged and swallowed so a broken disk never stops a game.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Default data directory lives in the project root
_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")


class KeyValueStore(Protocol):
    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any) -> None: ...


class JsonFileStore:
    """One JSON file per key under *directory*."""

    def __init__(self, directory: str | None = None):
        self.directory = directory or _DATA_DIR

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def load(self, key: str) -> Any | None:
        path = self._path(key)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            os.makedirs(self.directory, exist_ok=True)
            tmp = path + ".tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to save %s: %s", key, exc)


class InMemoryStore:
    """Dict-backed store; values are deep-copied in and out."""

    def __init__(self, initial: dict | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def load(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return list(self._data)


def safe_load(store: KeyValueStore | None, key: str) -> Any | None:
    """Load *key*, treating any store failure as "no data"."""
    if store is None:
        return None
    try:
        return store.load(key)
    except Exception as exc:
        logger.warning("Load of %s failed: %s", key, exc)
        return None


def safe_save(store: KeyValueStore | None, key: str, value: Any) -> None:
    """Save *key*, logging (not raising) on failure."""
    if store is None:
        return
    try:
        store.save(key, value)
    except Exception as exc:
        logger.warning("Save of %s failed: %s", key, exc)
