"""Tests for per-request Google Drive access tokens."""

from unittest.mock import AsyncMock

import httpx
import pytest

from cutroom.config import Settings
from cutroom.exceptions import (
    DriveConnectionNotFoundError,
    ServiceUnavailableError,
    UnauthenticatedError,
)
from cutroom.schemas.identity import Identity, IdentityRole
from cutroom.services.drive_token import (
    AccessTokenProviderError,
    ClerkAccessTokenProvider,
    DriveTokenService,
    NullAccessTokenProvider,
    RequestSession,
    build_access_token_provider,
)


def _session(identity, provider) -> RequestSession:
    return RequestSession(identity=identity, token_provider=provider)


class TestDriveTokenService:
    @pytest.mark.asyncio
    async def test_returns_fresh_token_each_call(self, alice):
        provider = AsyncMock()
        provider.fetch_access_token.side_effect = ["tok-1", "tok-2"]
        service = DriveTokenService()

        first = await service.get_access_token(_session(alice, provider))
        second = await service.get_access_token(_session(alice, provider))

        assert (first, second) == ("tok-1", "tok-2")
        provider.fetch_access_token.assert_awaited_with("user_alice")

    @pytest.mark.asyncio
    async def test_guest_is_unauthenticated(self, guest):
        provider = AsyncMock()

        with pytest.raises(UnauthenticatedError):
            await DriveTokenService().get_access_token(_session(guest, provider))
        provider.fetch_access_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_identity_without_subject_has_no_connection(self):
        identity = Identity(
            id="dev@example.com", display_name="Dev", verified=True, role=IdentityRole.AUTHENTICATED
        )

        with pytest.raises(DriveConnectionNotFoundError):
            await DriveTokenService().get_access_token(_session(identity, AsyncMock()))

    @pytest.mark.asyncio
    async def test_no_token_means_no_connection(self, alice):
        with pytest.raises(DriveConnectionNotFoundError):
            await DriveTokenService().get_access_token(
                _session(alice, NullAccessTokenProvider())
            )

    @pytest.mark.asyncio
    async def test_provider_failure_is_service_unavailable(self, alice):
        provider = AsyncMock()
        provider.fetch_access_token.side_effect = AccessTokenProviderError("down")

        with pytest.raises(ServiceUnavailableError):
            await DriveTokenService().get_access_token(_session(alice, provider))


class TestClerkAccessTokenProvider:
    @pytest.mark.asyncio
    async def test_reads_first_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/users/user_alice/oauth_access_tokens/oauth_google"
            assert request.headers["Authorization"] == "Bearer sk_test"
            return httpx.Response(200, json=[{"token": "ya29.abc", "provider": "oauth_google"}])

        provider = ClerkAccessTokenProvider("sk_test", transport=httpx.MockTransport(handler))

        assert await provider.fetch_access_token("user_alice") == "ya29.abc"

    @pytest.mark.asyncio
    async def test_empty_list_means_no_token(self):
        provider = ClerkAccessTokenProvider(
            "sk_test", transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[]))
        )

        assert await provider.fetch_access_token("user_alice") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        provider = ClerkAccessTokenProvider(
            "sk_test", transport=httpx.MockTransport(lambda request: httpx.Response(502))
        )

        with pytest.raises(AccessTokenProviderError):
            await provider.fetch_access_token("user_alice")


class TestBuildProvider:
    def test_unconfigured_uses_null_provider(self):
        provider = build_access_token_provider(Settings(clerk_secret_key=""))

        assert isinstance(provider, NullAccessTokenProvider)

    def test_configured_uses_clerk(self):
        provider = build_access_token_provider(Settings(clerk_secret_key="sk_live"))

        assert isinstance(provider, ClerkAccessTokenProvider)
        assert provider.oauth_provider == "oauth_google"
