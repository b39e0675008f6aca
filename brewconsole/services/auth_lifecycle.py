"""
Authentication lifecycle.

On start-up the persisted session is hydrated and, when a token was
recovered, validated against the identity endpoint before anything is
rendered. A failed identity check gets exactly one token refresh per
validation cycle; if that does not restore the identity, the session is
cleared.
"""

import asyncio
from enum import Enum
from typing import Optional

import structlog

from brewconsole.core.exceptions import ApiError
from brewconsole.core.models import SignInCredentials, User
from brewconsole.data.auth_api import AuthApi
from brewconsole.services.session_store import SessionStore

logger = structlog.get_logger(__name__)


class AuthPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"

    @property
    def is_settled(self) -> bool:
        return self in (AuthPhase.AUTHENTICATED, AuthPhase.UNAUTHENTICATED)


class AuthLifecycle:
    """Drives the session through validation, sign-in and sign-out."""

    def __init__(self, session: SessionStore, auth_api: AuthApi):
        self.session = session
        self.auth_api = auth_api
        self._phase = AuthPhase.UNINITIALIZED
        self._task: Optional[asyncio.Task] = None
        self.refresh_attempts = 0

    @property
    def phase(self) -> AuthPhase:
        return self._phase

    def _transition(self, phase: AuthPhase) -> None:
        if phase != self._phase:
            logger.info("Auth phase changed", previous=self._phase.value, phase=phase.value)
            self._phase = phase

    async def initialize(self) -> AuthPhase:
        """
        Hydrate and validate the persisted session.

        Runs one validation cycle per lifecycle; concurrent and repeated
        calls share its outcome.
        """
        if self._task is None:
            if self._phase != AuthPhase.UNINITIALIZED:
                return self._phase
            self._task = asyncio.ensure_future(self._validate())
        elif self._task.done():
            # Sign-in and sign-out move the phase on after the cycle settled
            return self._phase
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
            # Sign-out abandoned the cycle
            return AuthPhase.UNAUTHENTICATED

    async def _validate(self) -> AuthPhase:
        self.session.hydrate()
        if not self.session.access_token:
            self._transition(AuthPhase.UNAUTHENTICATED)
            return self._phase

        generation = self.session.generation
        self._transition(AuthPhase.VALIDATING)
        try:
            confirmed = await self._confirm_identity()
        except Exception:
            logger.exception("Identity check failed unexpectedly")
            confirmed = False

        if self.session.generation != generation:
            logger.info("Session replaced during validation; outcome dropped", phase=self._phase.value)
            return self._phase

        if confirmed:
            self._transition(AuthPhase.AUTHENTICATED)
        else:
            self.session.clear()
            self._transition(AuthPhase.UNAUTHENTICATED)
        return self._phase

    async def _confirm_identity(self) -> bool:
        """Ask for the current user, refreshing the token at most once."""
        refreshed = False
        while True:
            try:
                await self.auth_api.get_current_user(force=True)
                return True
            except ApiError as exc:
                logger.warning("Identity check failed", status=exc.status, refreshed=refreshed)
                refresh_token = self.session.refresh_token
                if refreshed or not refresh_token:
                    return False

            refreshed = True
            self.refresh_attempts += 1
            try:
                await self.auth_api.refresh_token(refresh_token)
            except ApiError as exc:
                logger.warning("Token refresh failed", status=exc.status)
                return False

    async def sign_in(self, credentials: SignInCredentials) -> User:
        """Exchange credentials for tokens and load the signed-in identity."""
        if self._task is not None and not self._task.done():
            await self.initialize()

        await self.auth_api.sign_in(credentials)
        try:
            user = await self.auth_api.get_current_user(force=True)
        except ApiError:
            self.session.clear()
            self._transition(AuthPhase.UNAUTHENTICATED)
            raise

        self._transition(AuthPhase.AUTHENTICATED)
        return user

    async def sign_out(self) -> None:
        """Log out on the server if possible; the local session is cleared regardless."""
        if self._task is not None and not self._task.done():
            # A pending identity answer belongs to the session being discarded
            self._task.cancel()
        try:
            await self.auth_api.logout()
        except ApiError as exc:
            logger.warning("Server logout failed; session cleared locally", status=exc.status, error=exc.message)
        self._transition(AuthPhase.UNAUTHENTICATED)
