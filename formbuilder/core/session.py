"""
Session store for in-progress form responses.

Each session holds a FormSession for one person filling out one form.
Sessions are created when a fill-out starts and expire after a period
of inactivity.
"""

import threading
import time
import uuid

from formbuilder.core.form_state import FormSession
from formbuilder.core.schema import Form


# Default session timeout: 30 minutes
DEFAULT_SESSION_TIMEOUT_SECONDS = 30 * 60


class Session:
    """A single in-progress response and its access timestamps."""

    def __init__(self, form_session: FormSession):
        self.form_session = form_session
        self.created_at: float = time.time()
        self.last_accessed_at: float = time.time()

    def touch(self) -> None:
        """Update the last accessed timestamp."""
        self.last_accessed_at = time.time()

    def is_expired(self, timeout_seconds: int = DEFAULT_SESSION_TIMEOUT_SECONDS) -> bool:
        """Check if the session has expired."""
        return (time.time() - self.last_accessed_at) > timeout_seconds


class SessionStore:
    """In-memory store for form-filling sessions.

    Not shared across processes; a restart drops every in-progress response.
    """

    def __init__(self, timeout_seconds: int = DEFAULT_SESSION_TIMEOUT_SECONDS):
        self._sessions: dict[str, Session] = {}
        self._timeout_seconds = timeout_seconds
        self._lock = threading.RLock()

    def create_session(
        self,
        form: Form,
        answers: dict | None = None,
        session_id: str | None = None,
    ) -> tuple[str, Session]:
        """Start a new response to a form.

        Args:
            form: The form being filled out.
            answers: Optional initial answers.
            session_id: Optional custom ID. Auto-generated if not provided.

        Returns:
            Tuple of (session_id, Session).
        """
        if session_id is None:
            session_id = str(uuid.uuid4())

        session = Session(FormSession(form, answers))

        with self._lock:
            self._sessions[session_id] = session
        return session_id, session

    def get_session(self, session_id: str) -> Session | None:
        """Retrieve a session by ID.

        Returns None if the session doesn't exist or has expired.
        Expired sessions are removed.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None

            if session.is_expired(self._timeout_seconds):
                del self._sessions[session_id]
                return None

        session.touch()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session. Returns True if it existed."""
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Returns the count of removed sessions."""
        with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if session.is_expired(self._timeout_seconds)
            ]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def count(self) -> int:
        """Return the number of active sessions."""
        with self._lock:
            return len(self._sessions)
