"""Per-request Google Drive access tokens.

The OAuth token for a signed-in user lives with the sign-in provider. It is
fetched on every request from a RequestSession that carries the acting
identity and the provider client, and is never kept in process state.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from cutroom.config import Settings
from cutroom.exceptions import (
    DriveConnectionNotFoundError,
    ServiceUnavailableError,
    UnauthenticatedError,
)
from cutroom.schemas.identity import Identity

logger = logging.getLogger(__name__)


class AccessTokenProviderError(Exception):
    """The token provider could not be reached or answered with an error."""


class AccessTokenProvider(Protocol):
    async def fetch_access_token(self, subject_id: str) -> str | None: ...


class ClerkAccessTokenProvider:
    """Reads OAuth access tokens that Clerk holds for a user."""

    def __init__(
        self,
        secret_key: str,
        api_url: str = "https://api.clerk.com/v1",
        oauth_provider: str = "oauth_google",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self.oauth_provider = oauth_provider
        self.timeout = timeout
        self.transport = transport

    async def fetch_access_token(self, subject_id: str) -> str | None:
        url = f"{self.api_url}/users/{subject_id}/oauth_access_tokens/{self.oauth_provider}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    url, headers={"Authorization": f"Bearer {self.secret_key}"}
                )
        except httpx.HTTPError as e:
            raise AccessTokenProviderError(f"Clerk request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise AccessTokenProviderError(f"Clerk returned {response.status_code}")

        tokens = response.json()
        if isinstance(tokens, dict):
            tokens = tokens.get("data") or []
        if not tokens:
            return None
        return tokens[0].get("token") or None


class NullAccessTokenProvider:
    """Used when no token provider is configured; nobody has a connection."""

    async def fetch_access_token(self, subject_id: str) -> str | None:
        return None


@dataclass(frozen=True)
class RequestSession:
    """Everything a request needs to act on behalf of its identity."""

    identity: Identity
    token_provider: AccessTokenProvider


class DriveTokenService:
    async def get_access_token(self, session: RequestSession) -> str:
        identity = session.identity
        if identity.is_guest or not identity.verified:
            raise UnauthenticatedError("Sign in with an account to use Google Drive")
        if not identity.subject_id:
            raise DriveConnectionNotFoundError()

        try:
            token = await session.token_provider.fetch_access_token(identity.subject_id)
        except AccessTokenProviderError as e:
            logger.error(f"Drive token lookup failed for {identity.id}: {e}")
            raise ServiceUnavailableError("Drive token provider is unavailable") from e

        if not token:
            raise DriveConnectionNotFoundError()
        return token


def build_access_token_provider(settings: Settings) -> AccessTokenProvider:
    if not settings.clerk_secret_key:
        return NullAccessTokenProvider()
    return ClerkAccessTokenProvider(
        secret_key=settings.clerk_secret_key,
        api_url=settings.clerk_api_url,
        oauth_provider=settings.drive_oauth_provider,
        timeout=settings.identity_provider_timeout_s,
    )
