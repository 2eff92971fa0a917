"""
Session Module

Persists the login session flags (logged-in flag, user email, display name)
in a small JSON file and tells registered listeners about every login and
logout.
"""

import json
import os
import threading
from typing import Any, Dict, List, Optional

from config import settings
from services.protocols import SessionListener
from utils.exceptions import SessionError
from utils.logger import get_logger

logger = get_logger(__name__)

IS_LOGGED_IN_KEY = "is_logged_in"
USER_EMAIL_KEY = "user_email"
USER_NAME_KEY = "user_name"


class SessionStore:
    """File-backed key-value session with change listeners."""

    def __init__(self, session_file: Optional[str] = None):
        """
        Initialize the session store and load any persisted session.

        Args:
            session_file: Path of the JSON file, or None to keep the session
                in memory only. ``from_settings()`` uses settings.SESSION_FILE.
        """
        self.session_file = session_file
        self._lock = threading.Lock()
        self._listeners: List[SessionListener] = []
        self._values: Dict[str, Any] = self._load()

    @classmethod
    def from_settings(cls) -> "SessionStore":
        return cls(settings.SESSION_FILE)

    @classmethod
    def in_memory(cls) -> "SessionStore":
        return cls(None)

    def _load(self) -> Dict[str, Any]:
        if not self.session_file or not os.path.exists(self.session_file):
            return {}
        try:
            with open(self.session_file, "r", encoding="utf-8") as f:
                values = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_file}: {e}")
            return {}
        return values if isinstance(values, dict) else {}

    def _save(self) -> None:
        if not self.session_file:
            return
        try:
            directory = os.path.dirname(self.session_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.session_file, "w", encoding="utf-8") as f:
                json.dump(self._values, f)
        except OSError as e:
            logger.error(f"Failed to write session file {self.session_file}: {e}")
            raise SessionError(f"Failed to save session: {e}") from e

    def get_current_user_key(self) -> Optional[str]:
        with self._lock:
            if not self._values.get(IS_LOGGED_IN_KEY):
                return None
            return self._values.get(USER_EMAIL_KEY)

    def get_user_name(self) -> Optional[str]:
        with self._lock:
            return self._values.get(USER_NAME_KEY)

    def is_logged_in(self) -> bool:
        with self._lock:
            return bool(self._values.get(IS_LOGGED_IN_KEY))

    def add_listener(self, listener: SessionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def set_logged_in(self, is_logged_in: bool, email: Optional[str] = None,
                      name: Optional[str] = None) -> None:
        """
        Update the session flags; email and name are only written when given.

        Raises:
            SessionError: If the session file cannot be written.
        """
        with self._lock:
            self._values[IS_LOGGED_IN_KEY] = bool(is_logged_in)
            if email is not None:
                self._values[USER_EMAIL_KEY] = email
            if name is not None:
                self._values[USER_NAME_KEY] = name
            self._save()
        self._notify()

    def logout(self) -> None:
        """Clear the session and notify listeners with None."""
        with self._lock:
            self._values[IS_LOGGED_IN_KEY] = False
            self._values.pop(USER_EMAIL_KEY, None)
            self._values.pop(USER_NAME_KEY, None)
            self._save()
        self._notify()

    def _notify(self) -> None:
        user_key = self.get_current_user_key()
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(user_key)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)
