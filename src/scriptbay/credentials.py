"""In-memory holder for the cached administrator password."""

import threading


class CredentialStore:
    """Zero-or-one secret behind a lock.

    Lives for the lifetime of the process. Never persisted, never logged.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._secret: str | None = None

    def set(self, secret: str) -> None:
        """Replace any held secret."""
        with self._lock:
            self._secret = secret

    def get(self) -> str | None:
        """Return the held secret without consuming it."""
        with self._lock:
            return self._secret

    @property
    def is_set(self) -> bool:
        with self._lock:
            return self._secret is not None

    def __repr__(self) -> str:
        return f"CredentialStore(is_set={self.is_set})"
