"""
Test suite for the authentication lifecycle.

Validates start-up validation of a persisted session, the single refresh per
validation cycle, sign-in and sign-out.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from brewconsole.context import ConsoleContext
from brewconsole.core.exceptions import AuthenticationError
from brewconsole.core.models import SignInCredentials
from brewconsole.services.auth_lifecycle import AuthPhase


def _persist(storage, tokens, user=None):
    storage.set_item("token", tokens["accessToken"])
    if tokens.get("refreshToken"):
        storage.set_item("refreshToken", tokens["refreshToken"])
    if user is not None:
        storage.set_item("user", '{"id": %d, "email": "%s", "role": "%s"}' % (user["id"], user["email"], user["role"]))


def _expired(backend, user_id):
    """Tokens whose access half the server no longer accepts."""
    tokens = backend.issue_tokens(user_id)
    del backend.access_tokens[tokens["accessToken"]]
    return tokens


def _start(make_context):
    async def main():
        async with make_context() as ctx:
            phase = await ctx.start()
            return ctx, phase

    return asyncio.run(main())


class TestStartup:
    """Test validation of the persisted session."""

    def test_no_token_makes_no_requests(self, make_context, backend):
        """Test an empty session settles unauthenticated without network calls."""
        ctx, phase = _start(make_context)

        assert phase == AuthPhase.UNAUTHENTICATED
        assert backend.calls == []
        assert ctx.lifecycle.refresh_attempts == 0

    def test_valid_session_authenticates(self, make_context, backend, signed_in_storage, owner):
        """Test a valid persisted token is confirmed by one identity call."""
        ctx, phase = _start(make_context)

        assert phase == AuthPhase.AUTHENTICATED
        assert backend.calls == [("GET", "/auth/me")]
        assert ctx.session.current_user.display_name == "Olive Owner"
        assert ctx.session.is_authenticated is True

    def test_expired_token_refreshed_once(self, make_context, backend, storage, owner):
        """Test an expired token is refreshed and the identity re-checked."""
        _persist(storage, _expired(backend, owner["id"]), owner)

        ctx, phase = _start(make_context)

        assert phase == AuthPhase.AUTHENTICATED
        assert ctx.lifecycle.refresh_attempts == 1
        assert backend.count("POST", "/auth/refresh") == 1
        assert backend.count("GET", "/auth/me") == 2
        assert storage.get_item("token") == ctx.session.access_token
        assert backend.access_tokens[ctx.session.access_token] == owner["id"]

    def test_failed_refresh_clears_session(self, make_context, backend, storage, owner):
        """Test a rejected refresh ends the cycle unauthenticated."""
        tokens = _expired(backend, owner["id"])
        del backend.refresh_tokens[tokens["refreshToken"]]
        _persist(storage, tokens, owner)

        ctx, phase = _start(make_context)

        assert phase == AuthPhase.UNAUTHENTICATED
        assert backend.count("POST", "/auth/refresh") == 1
        assert ctx.session.access_token is None
        assert list(storage.keys()) == []

    def test_exactly_one_refresh_per_cycle(self, make_context, backend, storage, owner):
        """Test a second identity failure after refreshing does not refresh again."""
        _persist(storage, backend.issue_tokens(owner["id"]), owner)
        backend.fail("GET", "/auth/me", 401, "Unauthorized", times=2)

        ctx, phase = _start(make_context)

        assert phase == AuthPhase.UNAUTHENTICATED
        assert ctx.lifecycle.refresh_attempts == 1
        assert backend.count("POST", "/auth/refresh") == 1
        assert backend.count("GET", "/auth/me") == 2
        assert ctx.session.is_authenticated is False

    def test_missing_refresh_token_skips_refresh(self, make_context, backend, storage, owner):
        """Test without a refresh token the session is cleared straight away."""
        tokens = _expired(backend, owner["id"])
        _persist(storage, {"accessToken": tokens["accessToken"]}, owner)

        ctx, phase = _start(make_context)

        assert phase == AuthPhase.UNAUTHENTICATED
        assert backend.count("POST", "/auth/refresh") == 0
        assert ctx.lifecycle.refresh_attempts == 0

    def test_transport_failure_takes_refresh_path(self, make_context, backend, storage, owner):
        """Test an unreachable identity endpoint is treated like any identity failure."""
        _persist(storage, backend.issue_tokens(owner["id"]), owner)
        backend.fail_transport("GET", "/auth/me", times=2)

        ctx, phase = _start(make_context)

        assert phase == AuthPhase.AUTHENTICATED
        assert ctx.lifecycle.refresh_attempts == 1
        assert backend.count("GET", "/auth/me") == 3

    def test_undecodable_identity_settles_unauthenticated(self, settings, signed_in_storage):
        """Test a response httpx cannot decode ends the cycle instead of hanging in validation."""

        def handler(request):
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

        async def main():
            async with ConsoleContext(settings, signed_in_storage, httpx.MockTransport(handler)) as ctx:
                return ctx, await ctx.start()

        ctx, phase = asyncio.run(main())

        assert phase == AuthPhase.UNAUTHENTICATED
        assert ctx.lifecycle.refresh_attempts == 1
        assert list(signed_in_storage.keys()) == []

    def test_unexpected_failure_settles_unauthenticated(self, make_context, backend, signed_in_storage):
        """Test an error outside the API hierarchy still clears the session."""

        async def main():
            async with make_context() as ctx:
                with patch.object(ctx.auth, "get_current_user", AsyncMock(side_effect=RuntimeError("boom"))):
                    phase = await ctx.start()
                return ctx, phase

        ctx, phase = asyncio.run(main())

        assert phase == AuthPhase.UNAUTHENTICATED
        assert ctx.lifecycle.phase.is_settled
        assert ctx.session.access_token is None
        assert list(signed_in_storage.keys()) == []

    def test_concurrent_initialize_runs_once(self, make_context, backend, signed_in_storage):
        """Test concurrent and repeated initialization share one cycle."""

        async def main():
            async with make_context() as ctx:
                first, second = await asyncio.gather(ctx.lifecycle.initialize(), ctx.lifecycle.initialize())
                third = await ctx.lifecycle.initialize()
                return first, second, third

        first, second, third = asyncio.run(main())

        assert first == second == third == AuthPhase.AUTHENTICATED
        assert backend.count("GET", "/auth/me") == 1

    def test_validating_while_identity_pending(self, make_context, backend, signed_in_storage):
        """Test the phase is validating until the identity answer arrives."""

        async def main():
            async with make_context() as ctx:
                gate = backend.hold("GET", "/auth/me")
                task = asyncio.ensure_future(ctx.start())
                for _ in range(20):
                    await asyncio.sleep(0)
                during = ctx.lifecycle.phase
                gate.set()
                return during, await task

        during, after = asyncio.run(main())

        assert during == AuthPhase.VALIDATING
        assert not during.is_settled
        assert after == AuthPhase.AUTHENTICATED


class TestSignIn:
    """Test signing in and out."""

    def test_sign_in_stores_session(self, make_context, backend, storage, owner):
        """Test a successful sign-in authenticates and persists the session."""

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                user = await ctx.lifecycle.sign_in(SignInCredentials(email=owner["email"], password="secret123"))
                return ctx, user

        ctx, user = asyncio.run(main())

        assert ctx.lifecycle.phase == AuthPhase.AUTHENTICATED
        assert user.id == owner["id"]
        assert storage.get_item("token") == ctx.session.access_token
        assert storage.get_item("refreshToken") == ctx.session.refresh_token
        assert '"email":"owner@beans.test"' in storage.get_item("user")
        assert backend.bodies[0] == {"email": owner["email"], "password": "secret123"}

    def test_bad_credentials_surface_server_message(self, make_context, backend, storage, owner):
        """Test a rejected sign-in records the server's message and stays signed out."""

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                with pytest.raises(AuthenticationError):
                    await ctx.lifecycle.sign_in(SignInCredentials(email=owner["email"], password="wrong"))
                return ctx

        ctx = asyncio.run(main())

        assert ctx.lifecycle.phase == AuthPhase.UNAUTHENTICATED
        assert ctx.session.last_error == "Invalid credentials"
        assert ctx.session.is_loading is False
        assert storage.get_item("token") is None

    def test_sign_in_failure_without_message_uses_fallback(self, make_context, backend, owner):
        """Test the generic message is shown when the server sends none."""
        backend.fail("POST", "/auth/signin", 500)

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                with pytest.raises(Exception):
                    await ctx.lifecycle.sign_in(SignInCredentials(email=owner["email"], password="secret123"))
                return ctx

        ctx = asyncio.run(main())

        assert ctx.session.last_error == "Authentication failed"

    def test_sign_out_clears_everything(self, make_context, backend, signed_in_storage, owner):
        """Test signing out forgets the session, the cache and the slices."""
        backend.add_brand("Beans & Co", owner["id"])

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                await ctx.brands.get_brands()
                await ctx.sign_out()
                again = await ctx.lifecycle.initialize()
                return ctx, again

        ctx, again = asyncio.run(main())

        assert ctx.lifecycle.phase == AuthPhase.UNAUTHENTICATED
        assert again == AuthPhase.UNAUTHENTICATED
        assert ctx.session.access_token is None
        assert list(signed_in_storage.keys()) == []
        assert ctx.cache.get_entry("getBrands") is None
        assert ctx.store.brand.items == []
        assert backend.count("POST", "/auth/logout") == 1

    def test_sign_out_clears_even_when_server_fails(self, make_context, backend, signed_in_storage):
        """Test a failed server logout still signs out locally."""
        backend.fail("POST", "/auth/logout", 500, "Server exploded")

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                await ctx.sign_out()
                return ctx

        ctx = asyncio.run(main())

        assert ctx.lifecycle.phase == AuthPhase.UNAUTHENTICATED
        assert ctx.session.is_authenticated is False
        assert list(signed_in_storage.keys()) == []

    def test_sign_out_during_validation(self, make_context, backend, signed_in_storage):
        """Test an identity answer arriving after sign-out does not sign the user back in."""

        async def main():
            async with make_context() as ctx:
                gate = backend.hold("GET", "/auth/me")
                start = asyncio.ensure_future(ctx.start())
                for _ in range(20):
                    await asyncio.sleep(0)
                await ctx.sign_out()
                gate.set()
                for _ in range(20):
                    await asyncio.sleep(0)
                return ctx, await start

        ctx, started = asyncio.run(main())

        assert started == AuthPhase.UNAUTHENTICATED
        assert ctx.lifecycle.phase == AuthPhase.UNAUTHENTICATED
        assert ctx.session.is_authenticated is False
        assert ctx.session.current_user is None
        assert list(signed_in_storage.keys()) == []

    def test_identity_for_cleared_session_not_stored(self, make_context, backend, signed_in_storage, owner):
        """Test a user loaded for a session cleared mid-request is not written back."""

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                gate = backend.hold("GET", "/auth/me")
                pending = asyncio.ensure_future(ctx.auth.get_current_user(force=True))
                for _ in range(20):
                    await asyncio.sleep(0)
                ctx.session.clear()
                gate.set()
                return ctx, await pending

        ctx, user = asyncio.run(main())

        assert user.id == owner["id"]
        assert ctx.session.current_user is None
        assert ctx.session.is_authenticated is False
        assert list(signed_in_storage.keys()) == []

    def test_logout_does_not_refetch_without_a_token(self, make_context, backend, signed_in_storage):
        """Test logging out marks user queries stale without fetching them again."""

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                subscription = ctx.users.subscribe("getUsers")
                await ctx.users.get_users()
                await ctx.auth.logout()
                return ctx, subscription

        ctx, subscription = asyncio.run(main())

        assert backend.count("GET", "/users") == 1
        assert subscription.entry.stale is True
        assert ctx.store.user.error is None
