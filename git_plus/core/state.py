"""Single-slot storage for the active pause session."""
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import os
import re
import tempfile

from .types import (
    PauseSession, StateStoreError, SessionNotFoundError, CorruptStateError
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_REQUIRED_KEYS = ("from_branch", "to_branch", "stash_ref", "stash_message", "timestamp")

# Fractional seconds; older records may carry up to nine digits
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as written by this or an earlier tool.

    A trailing Z is read as UTC and the fraction is fitted to microseconds,
    which fromisoformat needs before Python 3.11.
    """
    value = value.strip().replace("Z", "+00:00")
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)


def session_to_dict(session: PauseSession) -> Dict[str, Any]:
    """Convert a session to its stored JSON shape."""
    return {
        "version": SCHEMA_VERSION,
        "from_branch": session.from_branch,
        "to_branch": session.to_branch,
        "stash_ref": session.stash_ref or "",
        "stash_message": session.stash_message,
        "timestamp": session.timestamp.isoformat(),
    }


def session_from_dict(data: Any) -> PauseSession:
    """Rebuild a session from its stored JSON shape.

    Records without a version field were written before versioning was
    introduced and are read as version 1.

    Raises:
        CorruptStateError: If the payload does not describe a session.
    """
    if not isinstance(data, dict):
        raise CorruptStateError(
            f"Expected a JSON object, got {type(data).__name__}")

    version = data.get("version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise CorruptStateError(
            f"Unsupported session schema version {version!r} (expected {SCHEMA_VERSION})")

    missing = [key for key in _REQUIRED_KEYS if key not in data]
    if missing:
        raise CorruptStateError(f"Missing fields: {', '.join(missing)}")

    for key in _REQUIRED_KEYS[:4]:
        if data[key] is not None and not isinstance(data[key], str):
            raise CorruptStateError(f"Field {key} must be a string")

    try:
        timestamp = parse_timestamp(str(data["timestamp"]))
    except ValueError as e:
        raise CorruptStateError(f"Invalid timestamp {data['timestamp']!r}: {e}") from e

    return PauseSession(
        from_branch=data["from_branch"] or "",
        to_branch=data["to_branch"] or "",
        stash_ref=data["stash_ref"] or "",
        stash_message=data["stash_message"] or "",
        timestamp=timestamp,
    )


class SessionStore(ABC):
    """Durable single-slot storage for a PauseSession."""

    @abstractmethod
    def exists(self) -> bool:
        """Whether a session is stored."""
        pass

    @abstractmethod
    def load(self) -> PauseSession:
        """Return the stored session.

        Raises:
            SessionNotFoundError: If no session is stored.
            CorruptStateError: If the stored session cannot be parsed.
        """
        pass

    @abstractmethod
    def save(self, session: PauseSession) -> None:
        """Store a session, replacing any previous one."""
        pass

    @abstractmethod
    def delete(self) -> None:
        """Remove the stored session. Succeeds when nothing is stored."""
        pass


class FileSessionStore(SessionStore):
    """Session store backed by a JSON file.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so a reader sees either the old or the new
    session and never a partial one.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileSessionStore({str(self.path)!r})"

    def exists(self) -> bool:
        try:
            os.stat(self.path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateStoreError(f"Failed to check {self.path}: {e}") from e
        return True

    def load(self) -> PauseSession:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except FileNotFoundError:
            raise SessionNotFoundError(f"No pause session stored at {self.path}")
        except OSError as e:
            raise StateStoreError(f"Failed to read {self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise CorruptStateError(f"Session file {self.path} is not valid JSON: {e}") from e

        try:
            session = session_from_dict(data)
        except CorruptStateError as e:
            raise CorruptStateError(f"Session file {self.path} is corrupt: {e}") from e

        logger.debug("Loaded pause session from %s", self.path)
        return session

    def save(self, session: PauseSession) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_json_atomic(session_to_dict(session))
        except OSError as e:
            raise StateStoreError(f"Failed to write {self.path}: {e}") from e
        logger.debug("Saved pause session to %s", self.path)

    def delete(self) -> None:
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StateStoreError(f"Failed to delete {self.path}: {e}") from e
        logger.debug("Deleted pause session at %s", self.path)

    def _write_json_atomic(self, data: Dict[str, Any]):
        """Write JSON file atomically."""
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix='.tmp')
        try:
            with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise


class MemorySessionStore(SessionStore):
    """In-memory session store.

    Sessions are kept in their serialized form so the same validation as
    the file store applies on load.
    """

    def __init__(self, session: Optional[PauseSession] = None):
        self._data: Optional[Dict[str, Any]] = None
        if session is not None:
            self.save(session)

    def exists(self) -> bool:
        return self._data is not None

    def load(self) -> PauseSession:
        if self._data is None:
            raise SessionNotFoundError("No pause session stored")
        return session_from_dict(dict(self._data))

    def save(self, session: PauseSession) -> None:
        self._data = session_to_dict(session)

    def delete(self) -> None:
        self._data = None
