"""
Authentication endpoints.

Besides talking to ``/auth``, these calls keep the session store in step with
the server: sign-in and refresh store the new token pair, the identity query
stores the current user, and logout always forgets the session locally.
"""

from typing import Optional

import structlog

from brewconsole.cache.query_cache import QueryCache
from brewconsole.cache.tags import Tag
from brewconsole.core.exceptions import ApiError, error_message
from brewconsole.core.models import (
    AuthTokens,
    CreateUserRequest,
    InviteUserRequest,
    InviteUserResponse,
    SignInCredentials,
    User,
)
from brewconsole.data.base_api import ResourceApi
from brewconsole.data.http_client import ApiClient
from brewconsole.services.session_store import SessionStore

logger = structlog.get_logger(__name__)

AUTH = "Auth"
USER = "User"


class AuthApi(ResourceApi):
    """Sign-in, identity and account provisioning."""

    def __init__(self, http: ApiClient, cache: QueryCache, session: Optional[SessionStore] = None):
        super().__init__(http, cache)
        self.session = session or http.session

    def _store_tokens(self, tokens: AuthTokens) -> None:
        self.session.set_credentials(tokens.access_token, tokens.refresh_token)

    async def sign_in(self, credentials: SignInCredentials) -> AuthTokens:
        self.session.set_loading(True)
        self.session.clear_error()
        try:
            tokens = await self._mutate(
                "signIn", None, "POST", "/auth/signin", AuthTokens,
                json_data=credentials.to_payload(), invalidates=[Tag(AUTH)],
                on_success=self._store_tokens,
            )
        except ApiError as exc:
            logger.warning("Sign-in failed", status=exc.status)
            self.session.set_error(error_message(exc, "Authentication failed"))
            raise
        finally:
            self.session.set_loading(False)

        logger.info("Signed in")
        return tokens

    async def logout(self) -> None:
        """Tell the server, then forget the session whatever it answered."""
        try:
            await self._mutate(
                "logout", None, "POST", "/auth/logout",
                invalidates=[Tag(AUTH), Tag(USER)], on_success=lambda _: self.session.clear(),
                # Nothing may be refetched once the token is gone
                refetch=False,
            )
        except Exception:
            self.session.clear()
            raise

    async def create_user(self, data: CreateUserRequest) -> User:
        return await self._mutate(
            "createUser", data, "POST", "/auth/create-user", User,
            json_data=data.to_payload(), invalidates=[Tag(USER)],
        )

    async def get_current_user(self, *, force: bool = False) -> User:
        generation = self.session.generation
        self.session.set_loading(True)
        try:
            user = await self._query(
                "getCurrentUser", None, "/auth/me", User,
                provides=[Tag(AUTH), Tag(USER)], force=force,
            )
        except ApiError as exc:
            self.session.set_error(error_message(exc, "Failed to fetch user data"))
            raise
        finally:
            self.session.set_loading(False)

        if self.session.generation != generation:
            # Signed out while the request was in flight
            logger.info("Ignoring identity from a cleared session", user_id=user.id)
            return user
        self.session.set_user(user)
        return user

    async def invite_user(self, data: InviteUserRequest) -> InviteUserResponse:
        return await self._mutate(
            "inviteUser", data, "POST", "/auth/invite-user", InviteUserResponse,
            json_data=data.to_payload(),
        )

    async def refresh_token(self, refresh_token: str) -> AuthTokens:
        tokens = await self._mutate(
            "refreshToken", None, "POST", "/auth/refresh", AuthTokens,
            json_data={"refreshToken": refresh_token}, invalidates=[Tag(AUTH)],
            on_success=self._store_tokens,
        )
        logger.info("Access token refreshed")
        return tokens
