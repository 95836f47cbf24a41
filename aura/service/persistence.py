"""
Record Persistence for Aura

Keeps HyperBits, chat messages and the audit log between sessions.

Records are plain dicts keyed by "id". Saving the same id again
overwrites (upsert). Kinds:
- particles
- chat-messages
- audit-log

Storage backends:
- JSON files, one document per kind (default)
- In-memory (tests, ephemeral sessions)

Durability is best-effort: WriteBehind pushes saves onto a single
background writer so the caller never waits on disk, and a failed write
is logged without touching in-memory state.

Usage:
    from aura.service.persistence import create_store

    store = create_store(path="~/.aura/data")
    store.append("particles", record.to_dict())
    records = store.load_all("particles")
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

from aura.errors import PersistenceError

logger = logging.getLogger("aura.service.persistence")

PARTICLES = "particles"
CHAT_MESSAGES = "chat-messages"
AUDIT_LOG = "audit-log"

RECORD_KINDS = (PARTICLES, CHAT_MESSAGES, AUDIT_LOG)


def _check_kind(kind: str) -> None:
    if kind not in RECORD_KINDS:
        raise PersistenceError(f"Unknown record kind: {kind!r}")


class PersistenceStore(ABC):
    """Key-value record store, one namespace per kind."""

    @abstractmethod
    def append(self, kind: str, record: Dict[str, Any]) -> None:
        """Insert or overwrite a record by its id."""
        pass

    @abstractmethod
    def load_all(self, kind: str) -> List[Dict[str, Any]]:
        """All records of a kind, in first-insertion order."""
        pass

    def close(self) -> None:
        pass


class MemoryStore(PersistenceStore):
    """Ephemeral store. Nothing survives the process."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {k: {} for k in RECORD_KINDS}

    def append(self, kind: str, record: Dict[str, Any]) -> None:
        _check_kind(kind)
        if "id" not in record:
            raise PersistenceError("Record has no id")
        self._data[kind][str(record["id"])] = dict(record)

    def load_all(self, kind: str) -> List[Dict[str, Any]]:
        _check_kind(kind)
        return [dict(r) for r in self._data[kind].values()]


class JsonFileStore(PersistenceStore):
    """
    Stores each kind as a JSON object {id: record} under base_path:
    - particles.json
    - chat-messages.json
    - audit-log.json
    """

    def __init__(self, base_path: str = "~/.aura/data"):
        self.base_path = Path(base_path).expanduser()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._cache: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _file(self, kind: str) -> Path:
        return self.base_path / f"{kind}.json"

    def _read(self, kind: str) -> Dict[str, Dict[str, Any]]:
        if kind in self._cache:
            return self._cache[kind]

        path = self._file(kind)
        if not path.exists():
            data = {}
        else:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise PersistenceError(f"Failed to load {path}: {e}") from e
            if not isinstance(data, dict):
                raise PersistenceError(f"Corrupt store file {path}: expected an object")

        self._cache[kind] = data
        return data

    def append(self, kind: str, record: Dict[str, Any]) -> None:
        _check_kind(kind)
        if "id" not in record:
            raise PersistenceError("Record has no id")

        with self._lock:
            data = dict(self._read(kind))
            data[str(record["id"])] = dict(record)
            self._write(kind, data)
            self._cache[kind] = data

    def load_all(self, kind: str) -> List[Dict[str, Any]]:
        _check_kind(kind)
        with self._lock:
            return [dict(r) for r in self._read(kind).values()]

    def _write(self, kind: str, data: Dict[str, Dict[str, Any]]) -> None:
        path = self._file(kind)
        try:
            fd, tmp = tempfile.mkstemp(dir=self.base_path, prefix=f".{kind}.", suffix=".tmp")
        except OSError as e:
            raise PersistenceError(f"Failed to save {path}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save {path}: {e}") from e
        finally:
            if os.path.exists(tmp):
                os.unlink(tmp)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            counts = {kind: len(self._read(kind)) for kind in RECORD_KINDS}
        return {"base_path": str(self.base_path), "counts": counts}


class WriteBehind:
    """
    Fire-and-forget saves on a single background writer.

    Writes are applied in submission order. Failures are logged and
    counted; they are never raised to the submitter.
    """

    def __init__(self, store: PersistenceStore, background: bool = True):
        self.store = store
        self.background = background
        self.failures = 0
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="aura-writer") if background else None
        )

    def submit(self, kind: str, record: Dict[str, Any]) -> Optional[Future]:
        if self._executor is None:
            self._save(kind, record)
            return None
        return self._executor.submit(self._save, kind, record)

    def _save(self, kind: str, record: Dict[str, Any]) -> bool:
        try:
            self.store.append(kind, record)
            return True
        except PersistenceError as e:
            self.failures += 1
            logger.error(f"Durable write failed ({kind} {record.get('id')}): {e}")
            return False
        except Exception as e:
            self.failures += 1
            logger.exception(f"Unexpected store error ({kind} {record.get('id')}): {e}")
            return False

    def flush(self) -> None:
        """Block until every submitted write has been attempted."""
        if self._executor is None:
            return
        self._executor.submit(lambda: None).result()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.store.close()


def create_store(backend: str = "json", path: str = "~/.aura/data") -> PersistenceStore:
    """
    Create a record store.

    Args:
        backend: "json" or "memory"
        path: Base directory for the JSON backend
    """
    if backend == "memory":
        return MemoryStore()
    if backend == "json":
        return JsonFileStore(base_path=path)
    raise PersistenceError(f"Unknown storage backend: {backend!r}")


__all__ = [
    "PARTICLES",
    "CHAT_MESSAGES",
    "AUDIT_LOG",
    "RECORD_KINDS",
    "PersistenceStore",
    "MemoryStore",
    "JsonFileStore",
    "WriteBehind",
    "create_store",
]
