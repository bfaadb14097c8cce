"""Persisted key/value store with atomic bulk commit.

MemoryStore keeps everything in a dict and is what tests inject.
JsonFileStore adds durability: every commit rewrites the whole JSON file
through a temp file + os.replace, so a crash never leaves a torn file.
"""

import json
import logging
import os
import tempfile
import threading

from versionwatch.core.errors import StorageError

logger = logging.getLogger(__name__)


class Editor:
    """Batches changes; nothing is visible to readers until commit()."""

    def __init__(self, store: 'MemoryStore'):
        self._store = store
        self._puts: dict[str, object] = {}
        self._removes: set[str] = set()

    def put(self, key: str, value) -> 'Editor':
        self._puts[key] = value
        return self

    def remove(self, key: str) -> 'Editor':
        self._removes.add(key)
        self._puts.pop(key, None)
        return self

    def commit(self):
        """Apply removals, then puts, as one atomic step."""
        self._store._apply(dict(self._puts), set(self._removes))


class MemoryStore:
    """In-memory store. Same commit contract as JsonFileStore, no file."""

    def __init__(self, data: dict | None = None):
        self._data: dict[str, object] = dict(data or {})
        self._lock = threading.RLock()

    def get(self, key: str, default=None):
        with self._lock:
            return self._data.get(key, default)

    def snapshot(self) -> dict[str, object]:
        """Consistent copy of every key, taken between commits."""
        with self._lock:
            return dict(self._data)

    def edit(self) -> Editor:
        return Editor(self)

    def _apply(self, puts: dict, removes: set):
        with self._lock:
            data = dict(self._data)
            for key in removes:
                data.pop(key, None)
            data.update(puts)
            self._persist(data)
            self._data = data

    def _persist(self, data: dict):
        pass


class JsonFileStore(MemoryStore):
    """Store backed by a single JSON file."""

    def __init__(self, path: str):
        super().__init__(self._load(path))
        self.path = path

    @staticmethod
    def _load(path: str) -> dict:
        if not os.path.isfile(path):
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read store %s, starting empty: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store %s does not hold a JSON object, starting empty", path)
            return {}
        return data

    def _persist(self, data: dict):
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.store-', suffix='.tmp', dir=directory)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Failed to commit store {self.path}: {e}") from e
        logger.debug("Committed %d keys to %s", len(data), self.path)
