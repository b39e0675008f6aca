"""
Session store: the single source of truth for who is signed in.

The store owns one Session record and mirrors every credential change to
persistent storage immediately, so a new process can rehydrate without
signing in again. Storage problems never escape; an unusable store degrades
to an empty, unauthenticated session.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

import structlog
from pydantic import ValidationError

from brewconsole.core.exceptions import StorageError
from brewconsole.core.models import User
from brewconsole.data.storage import KeyValueStorage

logger = structlog.get_logger(__name__)

TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"
STORAGE_KEYS = (TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)


@dataclass
class Session:
    """Client-held record of the current identity and its credentials."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    current_user: Optional[User] = None
    is_authenticated: bool = False
    is_loading: bool = False
    last_error: Optional[str] = None


class SessionStore:
    """Owns the Session and keeps persistent storage in sync with it."""

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage
        self._session = Session()
        self._storage_ok = False
        # Bumped on every clear; async callers compare it across awaits
        self.generation = 0

    # Selectors

    @property
    def session(self) -> Session:
        """Snapshot copy of the current session."""
        return replace(self._session)

    @property
    def current_user(self) -> Optional[User]:
        return self._session.current_user

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._session.refresh_token

    @property
    def last_error(self) -> Optional[str]:
        return self._session.last_error

    @property
    def is_loading(self) -> bool:
        return self._session.is_loading

    # Storage helpers

    def _storage_available(self) -> bool:
        # Only success is remembered; unusable storage is probed again next time
        if not self._storage_ok:
            self._storage_ok = self._storage.is_available()
        return self._storage_ok

    def _read(self, key: str) -> Optional[str]:
        if not self._storage_available():
            return None
        return self._storage.get_item(key)

    def _write(self, key: str, value: str) -> None:
        if not self._storage_available():
            return
        try:
            self._storage.set_item(key, value)
        except StorageError as exc:
            logger.warning("Failed to persist session value", key=key, error=exc.message)

    def _remove(self, key: str) -> None:
        if not self._storage_available():
            return
        try:
            self._storage.remove_item(key)
        except StorageError as exc:
            logger.warning("Failed to remove session value", key=key, error=exc.message)

    # Operations

    def hydrate(self) -> Session:
        """
        Load persisted credentials into the session.

        Safe to call more than once; each call replaces the in-memory
        credentials with what storage holds.
        """
        token = refresh_token = user_json = None
        try:
            token = self._read(TOKEN_KEY)
            refresh_token = self._read(REFRESH_TOKEN_KEY)
            user_json = self._read(USER_KEY)
        except StorageError as exc:
            logger.warning("Failed to load session from storage", error=exc.message)
            token = refresh_token = user_json = None

        user = None
        if user_json:
            try:
                user = User.model_validate_json(user_json)
            except ValidationError as exc:
                logger.warning("Discarding unreadable persisted user", errors=exc.error_count())

        self._session = Session(
            access_token=token,
            refresh_token=refresh_token,
            current_user=user,
            is_authenticated=bool(token) and user is not None,
        )

        logger.info(
            "Session hydrated",
            has_token=bool(token),
            has_refresh_token=bool(refresh_token),
            has_user=user is not None,
            is_authenticated=self._session.is_authenticated,
        )
        return self.session

    def set_credentials(self, access_token: str, refresh_token: str) -> None:
        self._session.access_token = access_token
        self._session.refresh_token = refresh_token
        self._session.is_authenticated = True

        self._write(TOKEN_KEY, access_token)
        self._write(REFRESH_TOKEN_KEY, refresh_token)
        logger.debug("Credentials stored")

    def set_user(self, user: User) -> None:
        self._session.current_user = user
        self._session.is_authenticated = True

        self._write(USER_KEY, user.model_dump_json(by_alias=True))
        logger.debug("Current user stored", user_id=user.id, role=user.role.value)

    def clear(self) -> None:
        """Forget every credential, in memory and in storage."""
        self._session = Session()
        self.generation += 1
        for key in STORAGE_KEYS:
            self._remove(key)
        logger.info("Session cleared")

    def set_error(self, message: str) -> None:
        self._session.last_error = message

    def clear_error(self) -> None:
        self._session.last_error = None

    def set_loading(self, is_loading: bool) -> None:
        self._session.is_loading = is_loading
