"""
Session persistence for the Teamcenter client.

The default :class:`SessionStore` keeps the current session in memory for
the lifetime of the process. :class:`FileSessionStore` additionally writes
it to ``session.json`` so a later process can reuse the server session.

Storage location (file store): ~/.teamcenter-client/session.json
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from .types import Session

logger = logging.getLogger(__name__)

LogSink = logging.Logger | logging.LoggerAdapter


def is_valid_session(session: Session | None) -> bool:
    """A session is usable once it carries a session id."""
    if session is None:
        return False
    if not session.session_id:
        logger.debug("Invalid session: missing session_id")
        return False
    return True


class SessionStore:
    """
    Holds the current Teamcenter session.

    Contract:
    - store(session): replaces the current session
    - clear(): forgets the current session (idempotent)
    - retrieve(): returns the current session or None
    - All methods accept an optional logger for diagnostic output
    """

    def __init__(self) -> None:
        self._session: Session | None = None

    def store(self, session: Session, log: LogSink | None = None) -> None:
        """Remember ``session`` as the current session."""
        self._session = session
        (log or logger).debug(f"Stored Teamcenter session for user: {session.user_id or '?'}")

    def clear(self, log: LogSink | None = None) -> None:
        """Forget the current session."""
        self._session = None
        (log or logger).debug("Teamcenter session cleared")

    def retrieve(self, log: LogSink | None = None) -> Session | None:
        """Return the current session, if any."""
        if self._session is None:
            (log or logger).debug("No stored session found")
        return self._session


class FileSessionStore(SessionStore):
    """
    Session store that also persists to a JSON file.

    Contract:
    - Side Effects: writes/deletes ``<storage_dir>/session.json``
    - Errors: unreadable or corrupt files are logged and treated as no session
    """

    def __init__(self, storage_dir: Path | None = None):
        """Initialize with the directory holding ``session.json``.

        Args:
            storage_dir: Directory for the session file.
                        Defaults to ~/.teamcenter-client/
        """
        super().__init__()
        if storage_dir is None:
            storage_dir = Path.home() / ".teamcenter-client"
        self.storage_dir = storage_dir
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    @property
    def session_path(self) -> Path:
        return self.storage_dir / "session.json"

    def store(self, session: Session, log: LogSink | None = None) -> None:
        super().store(session, log)
        payload = {
            "session": session.model_dump(mode="json"),
            "stored": datetime.now(UTC).isoformat(),
        }
        # Write to a temp file first, then rename into place
        tmp_path = self.session_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.session_path)
        (log or logger).debug(f"Session written to {self.session_path}")

    def clear(self, log: LogSink | None = None) -> None:
        super().clear(log)
        self.session_path.unlink(missing_ok=True)

    def retrieve(self, log: LogSink | None = None) -> Session | None:
        if self._session is not None:
            return self._session
        if not self.session_path.exists():
            return super().retrieve(log)

        try:
            with open(self.session_path, encoding="utf-8") as f:
                payload = json.load(f)
            if not isinstance(payload, dict):
                raise ValueError("session file must contain a JSON object")
            self._session = Session.model_validate(payload.get("session") or {})
        except (OSError, ValueError) as e:
            (log or logger).warning(f"Failed to load session from {self.session_path}: {e}")
            return None

        (log or logger).debug(f"Session loaded from {self.session_path}")
        return self._session
