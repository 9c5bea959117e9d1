"""
File-backed JSON collections with serialized read-modify-write.

Each collection is one JSON document on disk. Every mutation reads the whole
document, transforms it and rewrites it atomically, all while holding a lock
shared by every JsonCollection pointing at the same file, so concurrent
writers within the process queue instead of overwriting each other.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
import threading
from typing import Any, Callable

from ..utils.logging import log_event


logger = logging.getLogger(__name__)

_LOCKS: dict[str, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock


class JsonCollection:
    """One JSON document on disk.

    Attributes:
        path: File holding the document
        default: Factory for the value returned when the file is missing or unreadable
    """

    def __init__(self, path: Path, default: Callable[[], Any]):
        self.path = Path(path)
        self.default = default
        self._lock = _lock_for(self.path)

    def read(self) -> Any:
        with self._lock:
            return self._read_unlocked()

    def write(self, data: Any) -> None:
        with self._lock:
            self._write_unlocked(data)

    def update(self, fn: Callable[[Any], Any]) -> Any:
        """Apply ``fn`` to the current document and persist its return value.

        The whole cycle runs under the collection lock.
        """
        with self._lock:
            current = self._read_unlocked()
            updated = fn(current)
            self._write_unlocked(updated)
            return updated

    def _read_unlocked(self) -> Any:
        if not self.path.exists():
            return self.default()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            log_event(
                logger,
                f"Unreadable store file {self.path.name}, starting empty",
                level=logging.WARNING,
                event="store_read_failed",
                path=str(self.path),
                error=str(exc),
            )
            return self.default()

    def _write_unlocked(self, data: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
