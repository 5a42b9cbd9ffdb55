# =============================================================================
# core/store.py  —  Two-Tier Session Storage
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Keeps sessions in an in-memory cache backed by a durable key-value store.
#
#   get(id)       cache first; on a miss, read the durable tier and re-populate
#                 the cache.  Raises SessionNotFound if neither has it.
#   put(session)  update the cache (always succeeds), then try the durable
#                 write.  A failed durable write is RETURNED as a
#                 DurabilityWarning and logged; it never undoes the cache update.
#   list()        cache contents only; the durable tier is not scanned.
#
# DURABILITY IS BEST-EFFORT:
#   There is no per-key locking here and the two tiers are not updated
#   atomically.  Callers that mutate a session must hold the per-session lock
#   for the whole load -> mutate -> put sequence (see core/workflow.py).
#
# THE DURABLE PORT:
#   Anything with read/write/keys works.  JsonFileStore (one file per session)
#   is the default; MemoryDurableStore is handy for embedding and tests.
# =============================================================================

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from core.errors import DurabilityWarning, SessionNotFound
from core.models import Session

logger = logging.getLogger(__name__)


class DurableStore(Protocol):
    def read(self, key: str) -> Optional[dict[str, Any]]: ...

    def write(self, key: str, document: dict[str, Any]) -> None: ...

    def keys(self) -> list[str]: ...


class JsonFileStore:
    """One pretty-printed UTF-8 JSON file per session: <directory>/<id>.json."""

    suffix = ".json"

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Session ids come from callers; keep them inside the directory.
        if not key or Path(key).name != key or key in (".", ".."):
            raise ValueError(f"Invalid session key: {key!r}")
        return self.directory / f"{key}{self.suffix}"

    def read(self, key: str) -> Optional[dict[str, Any]]:
        try:
            path = self._path(key)
        except ValueError:
            return None
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load session %s: %s", key, e)
            return None

    def write(self, key: str, document: dict[str, Any]) -> None:
        path = self._path(key)
        self.ensure_directory()
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.suffix}"))


class MemoryDurableStore:
    """Dict-backed durable port.  Documents are copied through JSON on write."""

    def __init__(self):
        self._documents: dict[str, str] = {}

    def read(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._documents.get(key)
        return json.loads(raw) if raw is not None else None

    def write(self, key: str, document: dict[str, Any]) -> None:
        self._documents[key] = json.dumps(document, ensure_ascii=False)

    def keys(self) -> list[str]:
        return sorted(self._documents)


class SessionStore:
    """Process-scoped session cache with a read-through/write-through durable tier."""

    def __init__(self, durable: DurableStore):
        self.durable = durable
        self._cache: dict[str, Session] = {}

    def get(self, session_id: str) -> Session:
        session = self._cache.get(session_id)
        if session is not None:
            return session

        document = self.durable.read(session_id) if session_id else None
        if document is None:
            raise SessionNotFound(session_id)
        try:
            session = Session.from_dict(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Stored session %s is unreadable: %s", session_id, e)
            raise SessionNotFound(session_id) from e

        logger.info("Loaded session %s from durable storage", session_id)
        self._cache[session_id] = session
        return session

    def put(self, session: Session) -> Optional[DurabilityWarning]:
        self._cache[session.id] = session
        try:
            self.durable.write(session.id, session.to_dict())
        except Exception as e:
            warning = DurabilityWarning(session.id, e)
            logger.warning("%s", warning)
            return warning
        return None

    def list(self) -> list[Session]:
        return list(self._cache.values())

    def persisted_count(self) -> int:
        return len(self.durable.keys())
