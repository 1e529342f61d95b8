"""Resolve request credentials into an Identity.

Precedence is the same on every path: a well-formed guest marker wins over a
bearer token. Provider failures are logged and treated as "no identity"; the
resolver itself never raises.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Protocol

import firebase_admin
import httpx
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from cutroom.config import Settings, get_settings
from cutroom.schemas.identity import Identity, IdentityRole, ProviderClaims

logger = logging.getLogger(__name__)

# DEV_TOKEN bypasses the provider when dev_mode is enabled
DEV_TOKEN = "dev-token"


class IdentityProviderError(Exception):
    """The provider rejected the token or could not be reached."""


class IdentityProvider(Protocol):
    async def verify(self, token: str) -> ProviderClaims: ...


class FirebaseIdentityProvider:
    """Verifies Firebase ID tokens with the Admin SDK."""

    def __init__(self, project_id: str = "") -> None:
        self.project_id = project_id

    def _app(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app()
        except ValueError:
            # App not initialized yet
            if self.project_id:
                cred = credentials.ApplicationDefault()
                return firebase_admin.initialize_app(cred, {"projectId": self.project_id})
            return firebase_admin.initialize_app()

    async def verify(self, token: str) -> ProviderClaims:
        try:
            app = self._app()
            # verify_id_token may fetch signing certs over the network
            decoded = await asyncio.to_thread(firebase_auth.verify_id_token, token, app)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

        email = decoded.get("email") or None
        return ProviderClaims(
            subject_id=decoded["uid"],
            email=email,
            display_name=decoded.get("name") or (email.split("@")[0] if email else None),
            avatar_url=decoded.get("picture"),
        )


class GoogleTokenInfoProvider:
    """Verifies Google ID tokens against the tokeninfo endpoint."""

    def __init__(
        self,
        tokeninfo_url: str,
        audience: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.tokeninfo_url = tokeninfo_url
        self.audience = audience
        self.timeout = timeout
        self.transport = transport

    async def verify(self, token: str) -> ProviderClaims:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.tokeninfo_url, params={"id_token": token})
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"tokeninfo request failed: {e}") from e

        if response.status_code != 200:
            raise IdentityProviderError(f"tokeninfo rejected token: {response.status_code}")

        payload = response.json()
        if self.audience and payload.get("aud") != self.audience:
            raise IdentityProviderError("token audience mismatch")
        if "sub" not in payload:
            raise IdentityProviderError("tokeninfo response has no subject")

        return ProviderClaims(
            subject_id=payload["sub"],
            email=payload.get("email"),
            display_name=payload.get("name"),
            avatar_url=payload.get("picture"),
        )


class IdentityResolver:
    """Turns a guest marker or bearer token into an Identity (or None)."""

    def __init__(self, provider: IdentityProvider, settings: Settings) -> None:
        self.provider = provider
        self.settings = settings

    def is_guest_marker(self, value: str | None) -> bool:
        prefix = self.settings.guest_id_prefix
        return (
            isinstance(value, str)
            and value.startswith(prefix)
            and len(value.strip()) > len(prefix)
        )

    def guest_identity(self, guest_marker: str) -> Identity:
        return Identity(
            id=guest_marker,
            display_name=self.settings.guest_display_name,
            verified=False,
            role=IdentityRole.GUEST,
        )

    def _dev_identity(self) -> Identity:
        return Identity(
            id=self.settings.dev_user_email,
            display_name=self.settings.dev_user_name,
            verified=True,
            role=IdentityRole.AUTHENTICATED,
            email=self.settings.dev_user_email,
            subject_id=self.settings.dev_user_id,
        )

    async def resolve(
        self,
        guest_marker: str | None = None,
        bearer_token: str | None = None,
    ) -> Identity | None:
        if self.is_guest_marker(guest_marker):
            return self.guest_identity(guest_marker)

        if not bearer_token:
            return None

        if self.settings.dev_mode and bearer_token == DEV_TOKEN:
            return self._dev_identity()

        try:
            claims = await self.provider.verify(bearer_token)
        except IdentityProviderError as e:
            logger.warning(f"Bearer token rejected: {e}")
            return None
        except Exception:
            logger.exception("Identity provider failed unexpectedly")
            return None

        # Email stays the canonical id so documents keyed by email keep matching
        return Identity(
            id=claims.email or claims.subject_id,
            display_name=claims.display_name or "User",
            verified=True,
            role=IdentityRole.AUTHENTICATED,
            email=claims.email,
            subject_id=claims.subject_id,
            avatar_url=claims.avatar_url,
        )


def build_identity_provider(settings: Settings) -> IdentityProvider:
    if settings.identity_provider == "google":
        return GoogleTokenInfoProvider(
            tokeninfo_url=settings.google_tokeninfo_url,
            audience=settings.google_client_id,
            timeout=settings.identity_provider_timeout_s,
        )
    return FirebaseIdentityProvider(project_id=settings.firebase_project_id)


@lru_cache
def get_identity_resolver() -> IdentityResolver:
    settings = get_settings()
    return IdentityResolver(build_identity_provider(settings), settings)
