# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.store",
#   "purpose": "Key-value persistence contract with in-memory and JSON-file backends",
#   "sections": [
#     {"id": "keyvaluestore", "name": "KeyValueStore", "anchor": "class-keyvaluestore", "kind": "class"},
#     {"id": "inmemorystore", "name": "InMemoryStore", "anchor": "class-inmemorystore", "kind": "class"},
#     {"id": "jsonfilestore", "name": "JsonFileStore", "anchor": "class-jsonfilestore", "kind": "class"},
#     {"id": "atomic-write", "name": "atomic_write", "anchor": "function-atomic-write", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Persistent key-value store used by the resolution engine.

The engine depends only on :class:`KeyValueStore`: ``get`` returns a string,
bool, int or ``None`` when the key is absent, ``set`` overwrites.  Two
implementations are provided:

- :class:`InMemoryStore` for tests and embedding hosts that persist elsewhere.
- :class:`JsonFileStore`, a single JSON document rewritten atomically under a
  cross-process file lock on every ``set`` so that a crash never leaves a
  half-written file behind and concurrent writers never drop each other's keys.

Both guard their state with a :class:`threading.Lock`, so a reader on another
thread sees either the previous or the new value of a key.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, TextIO, Union, runtime_checkable

from filelock import FileLock, Timeout

from .errors import StoreError

__all__ = [
    "StoreValue",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "atomic_write",
    "get_str",
    "get_bool",
    "get_int",
]

logger = logging.getLogger(__name__)

StoreValue = Union[str, bool, int]


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal persistence contract; an absent key reads as ``None``."""

    def get(self, key: str) -> Optional[StoreValue]: ...

    def set(self, key: str, value: StoreValue) -> None: ...


def get_str(store: KeyValueStore, key: str) -> Optional[str]:
    value = store.get(key)
    if isinstance(value, str):
        return value
    return None


def get_bool(store: KeyValueStore, key: str) -> bool:
    """Read a flag; anything but a stored ``True`` reads as ``False``."""

    return store.get(key) is True


def get_int(store: KeyValueStore, key: str) -> int:
    value = store.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


class InMemoryStore:
    """Process-local store backed by a dict."""

    def __init__(self, initial: Optional[Dict[str, StoreValue]] = None) -> None:
        self._data: Dict[str, StoreValue] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[StoreValue]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: StoreValue) -> None:
        with self._lock:
            self._data[key] = value

    def snapshot(self) -> Dict[str, StoreValue]:
        with self._lock:
            return dict(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.snapshot()!r})"


@contextmanager
def atomic_write(path: Path) -> Iterator[TextIO]:
    """Write to a temporary sibling file and atomically replace ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp.{uuid.uuid4().hex}")
    try:
        with tmp.open("w", encoding="utf-8") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


class JsonFileStore:
    """Store persisted as one JSON object on disk.

    The file is read at construction.  Every ``set`` takes a
    :class:`filelock.FileLock` on ``<path>.lock``, re-reads the document,
    merges the new value and rewrites it atomically, so stores opened on the
    same file by other processes never erase each other's keys.  A missing
    file is an empty store; a corrupt file raises
    :class:`~ContentRouter.errors.StoreError` rather than silently dropping
    sticky flags.

    Args:
        path: Location of the JSON document.
        lock_timeout_s: Seconds to wait for the cross-process lock.
    """

    def __init__(self, path: Union[str, Path], *, lock_timeout_s: float = 10.0) -> None:
        self.path = Path(path)
        self.lock_path = Path(f"{self.path}.lock")
        self.lock_timeout_s = float(lock_timeout_s)
        self._lock = threading.Lock()
        self._data: Dict[str, StoreValue] = self._load()

    def _load(self) -> Dict[str, StoreValue]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read store {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StoreError(f"Store {self.path} must contain a JSON object")
        data: Dict[str, StoreValue] = {}
        for key, value in raw.items():
            if isinstance(value, (str, bool, int)):
                data[str(key)] = value
            else:
                logger.warning(
                    "Ignoring unsupported store value",
                    extra={"key": key, "type": type(value).__name__},
                )
        return data

    def get(self, key: str) -> Optional[StoreValue]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: StoreValue) -> None:
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with FileLock(str(self.lock_path), timeout=self.lock_timeout_s):
                    updated = self._load()
                    updated[key] = value
                    with atomic_write(self.path) as handle:
                        json.dump(updated, handle, indent=2, sort_keys=True)
            except Timeout as exc:
                raise StoreError(
                    f"Timed out acquiring lock {self.lock_path} after {self.lock_timeout_s}s"
                ) from exc
            except OSError as exc:
                raise StoreError(f"Cannot write store {self.path}: {exc}") from exc
            self._data = updated

    def snapshot(self) -> Dict[str, StoreValue]:
        with self._lock:
            return dict(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path={str(self.path)!r})"
