"""Persistent session handling for the administration front-end."""

from __future__ import annotations

import base64
import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from cryptography.fernet import Fernet, InvalidToken

from .storage import LocalStorage

logger = logging.getLogger("useradmin.sessions")

TOKEN_KEY = "token"
REMEMBER_ME_KEY = "rememberMe"
EMAIL_KEY = "email"
PASSWORD_KEY = "password"

InvalidationListener = Callable[[str], None]


@dataclass(frozen=True)
class Credentials:
    """Email and password remembered for pre-filling the login form."""

    email: str
    password: str


class SessionStore:
    """Own the authentication token and the remembered login credentials.

    The token is written by the login flow and removed either by an explicit
    logout or by the API gateway when the server rejects the session. The
    remembered credentials live independently of the token.
    """

    def __init__(self, storage: LocalStorage, *, secret: Optional[str] = None) -> None:
        self._storage = storage
        self._cipher = self._build_cipher(secret)
        self._listeners: List[InvalidationListener] = []
        self._lock = threading.Lock()

    def get_token(self) -> Optional[str]:
        token = self._storage.get_item(TOKEN_KEY)
        return token or None

    def save_session(
        self,
        token: str,
        remember_me: bool,
        email: str,
        password: str,
    ) -> None:
        if not token:
            raise ValueError("Session token must not be empty")

        self._storage.set_item(TOKEN_KEY, token)
        if remember_me:
            self._storage.set_item(REMEMBER_ME_KEY, "true")
            self._storage.set_item(EMAIL_KEY, email)
            self._storage.set_item(PASSWORD_KEY, self._encrypt(password))
        else:
            self._forget_credentials()

    def load_remembered_credentials(self) -> Optional[Credentials]:
        if self._storage.get_item(REMEMBER_ME_KEY) != "true":
            return None

        email = self._storage.get_item(EMAIL_KEY)
        stored_password = self._storage.get_item(PASSWORD_KEY)
        if not email or not stored_password:
            return None

        password = self._decrypt(stored_password)
        if password is None:
            return None
        return Credentials(email=email, password=password)

    def clear_session(self, *, forget_credentials: bool = False, reason: str = "logout") -> None:
        """Remove the token and, for an explicit logout, the remembered fields."""

        removed = self._storage.remove_item(TOKEN_KEY)
        if forget_credentials:
            self._forget_credentials()
        if removed:
            logger.info("Session token cleared (%s)", reason)
            self._notify(reason)

    def subscribe(self, listener: InvalidationListener) -> Callable[[], None]:
        """Register ``listener`` for session invalidation and return an unsubscriber."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, reason: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(reason)
            except Exception:  # pragma: no cover - listener bugs must not break logout
                logger.exception("Session invalidation listener failed")

    def _forget_credentials(self) -> None:
        for key in (REMEMBER_ME_KEY, EMAIL_KEY, PASSWORD_KEY):
            self._storage.remove_item(key)

    def _build_cipher(self, secret: Optional[str]) -> Optional[Fernet]:
        if not secret:
            return None
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        return Fernet(key)

    def _encrypt(self, password: str) -> str:
        if self._cipher is None:
            return password
        return self._cipher.encrypt(password.encode("utf-8")).decode("utf-8")

    def _decrypt(self, stored: str) -> Optional[str]:
        if self._cipher is None:
            return stored
        try:
            plaintext = self._cipher.decrypt(stored.encode("utf-8"))
        except InvalidToken:
            logger.warning("Remembered password could not be decrypted; ignoring it")
            return None
        return plaintext.decode("utf-8")


__all__ = [
    "Credentials",
    "EMAIL_KEY",
    "PASSWORD_KEY",
    "REMEMBER_ME_KEY",
    "SessionStore",
    "TOKEN_KEY",
]
