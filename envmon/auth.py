"""Access control gate - resolves bearer credentials to caller identities.

The gate keeps no state of its own: it hands the token to an
:class:`IdentityProvider` and turns every kind of rejection into
``None``.  Mutating operations call :meth:`AccessGate.require`, which
raises :class:`~envmon.exceptions.Unauthorized` instead.

The HTTP provider requires the ``http`` extra::

    pip install envmon-engine[http]
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from envmon.exceptions import EnvmonConfigError, Unauthorized
from envmon.models import Identity

__all__ = [
    "AccessGate",
    "HttpIdentityProvider",
    "IdentityProvider",
    "StaticIdentityProvider",
    "create_identity_provider",
    "parse_bearer",
]

logger = logging.getLogger("envmon.auth")

try:
    import httpx

    HTTPX_AVAILABLE = True
except ImportError:
    HTTPX_AVAILABLE = False


def parse_bearer(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` value."""
    if not header:
        return None
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


# -----------------------------------------------------------------------
# Providers
# -----------------------------------------------------------------------


class IdentityProvider(ABC):
    """Resolves a token to the user it was issued to."""

    async def connect(self) -> None:
        """Open connections / resources."""

    @abstractmethod
    async def resolve_token(self, token: str) -> Identity | None:
        """Return the identity behind *token*, or ``None`` if rejected."""

    async def close(self) -> None:
        """Release resources / close connections."""


class StaticIdentityProvider(IdentityProvider):
    """Fixed token table, for local deployments and tests.

    Parameters:
        tokens: ``{token: identity}``; identities may be given as
            :class:`Identity` or as dicts (``id``, ``email``, ``displayName``).
    """

    def __init__(self, tokens: dict[str, Identity | dict[str, Any]] | None = None) -> None:
        self._tokens: dict[str, Identity] = {
            token: ident if isinstance(ident, Identity) else Identity.model_validate(ident)
            for token, ident in (tokens or {}).items()
        }

    async def resolve_token(self, token: str) -> Identity | None:
        return self._tokens.get(token)


class HttpIdentityProvider(IdentityProvider):
    """Ask a Supabase-compatible auth server who owns a token.

    Issues ``GET {url}/auth/v1/user`` with the bearer token and the
    project ``apikey``.  401/403 responses, responses without a user id
    and transport failures all resolve to ``None``; nothing is retried.

    Parameters:
        url: Base URL of the auth server.
        api_key: Value for the ``apikey`` header.
        timeout_s: Per-request timeout in seconds.
        client: Pre-built :class:`httpx.AsyncClient` (not closed by us).
    """

    def __init__(
        self,
        *,
        url: str,
        api_key: str = "",
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not HTTPX_AVAILABLE:
            raise ImportError(
                "httpx is required for HttpIdentityProvider.  Install with: pip install envmon-engine[http]"
            )
        self._endpoint = f"{url.rstrip('/')}/auth/v1/user"
        self._api_key = api_key
        self._timeout = timeout_s
        self._client = client
        self._owns_client = client is None

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        logger.info("HttpIdentityProvider ready - endpoint: %s", self._endpoint)

    async def resolve_token(self, token: str) -> Identity | None:
        if self._client is None:
            raise EnvmonConfigError("HttpIdentityProvider is not connected; call connect() first")

        headers = {"Authorization": f"Bearer {token}"}
        if self._api_key:
            headers["apikey"] = self._api_key

        try:
            resp = await self._client.get(self._endpoint, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            return None

        if resp.status_code in (401, 403):
            return None
        if resp.status_code != 200:
            logger.warning("Identity provider returned HTTP %d", resp.status_code)
            return None

        try:
            user = resp.json()
        except ValueError:
            logger.warning("Identity provider returned a non-JSON body")
            return None
        if not isinstance(user, dict) or not user.get("id"):
            return None

        metadata = user.get("user_metadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}
        try:
            return Identity(
                id=str(user["id"]),
                email=user.get("email") or "",
                display_name=metadata.get("name") or "",
            )
        except PydanticValidationError as exc:
            logger.warning("Identity provider returned a malformed user: %s", exc)
            return None

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("HttpIdentityProvider closed")


def create_identity_provider(config: dict[str, Any]) -> IdentityProvider:
    """Build a provider from ``{"type": "static" | "http", ...}``."""
    config = dict(config)
    provider_type = str(config.pop("type", "static")).lower().strip()
    if provider_type == "static":
        return StaticIdentityProvider(config.get("tokens"))
    if provider_type == "http":
        return HttpIdentityProvider(**config)
    raise EnvmonConfigError(f"Unknown identity provider type '{provider_type}'.  Available: ['http', 'static']")


# -----------------------------------------------------------------------
# Gate
# -----------------------------------------------------------------------


class AccessGate:
    """Validate bearer tokens for mutating operations."""

    def __init__(self, provider: IdentityProvider) -> None:
        self.provider = provider

    async def authenticate(self, token: str | None) -> Identity | None:
        """Return the caller identity, or ``None`` for a missing/rejected token."""
        if token is None or not token.strip():
            return None
        identity = await self.provider.resolve_token(token.strip())
        if identity is None:
            logger.warning("Rejected credential")
        return identity

    async def authenticate_header(self, header: str | None) -> Identity | None:
        return await self.authenticate(parse_bearer(header))

    async def require(self, token: str | None) -> Identity:
        identity = await self.authenticate(token)
        if identity is None:
            raise Unauthorized()
        return identity
