"""
Access-token acquisition for Microsoft Graph (client-credential grant).

The relay authenticates as itself, not on behalf of a user:

  POST {authority_host}/{tenant_id}/oauth2/v2.0/token
       grant_type=client_credentials
       client_id=...  client_secret=...  scope=https://graph.microsoft.com/.default

Tokens can optionally be cached in-process until shortly before they expire.
Concurrent requests that find the cache empty or stale share a single refresh
(guarded by an asyncio.Lock), so the identity platform sees at most one token
request at a time from this process.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from contact_relay.config import Settings
from contact_relay.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

# Refresh a cached token this many seconds before the provider says it expires
_EXPIRY_SKEW_SECONDS = 60

# Used when the token response omits expires_in
_DEFAULT_EXPIRES_IN = 3599


@dataclass(frozen=True)
class AccessToken:
    token: str
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at - _EXPIRY_SKEW_SECONDS


class GraphTokenProvider:
    """Fetches (and optionally caches) Graph access tokens."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._clock = clock
        self._cached: Optional[AccessToken] = None
        self._lock = asyncio.Lock()

    @property
    def token_url(self) -> str:
        return (
            f"{self.settings.authority_host}/{self.settings.tenant_id}"
            "/oauth2/v2.0/token"
        )

    def _check_configuration(self) -> None:
        s = self.settings
        if not (s.tenant_id and s.client_id and s.client_secret):
            flags = s.presence_flags()
            logger.error(
                "Graph credentials incomplete: "
                f"tenant_id={flags['tenant_id']} client_id={flags['client_id']} "
                f"client_secret={flags['client_secret']}"
            )
            raise ConfigurationError("Graph client credentials are not configured")

    async def get_token(self) -> str:
        """
        Return a bearer token for the Graph default scope.

        Raises:
            ConfigurationError: tenant id, client id or secret is missing
                (checked before any network call).
            AuthenticationError: the token endpoint failed or returned no token.
        """
        self._check_configuration()

        if not self.settings.token_cache_enabled:
            return (await self._acquire()).token

        cached = self._cached
        if cached is not None and cached.is_fresh(self._clock()):
            return cached.token

        async with self._lock:
            # Another request may have refreshed while we waited
            cached = self._cached
            if cached is not None and cached.is_fresh(self._clock()):
                return cached.token
            self._cached = await self._acquire()
            return self._cached.token

    def invalidate(self) -> None:
        """Drop any cached token so the next call fetches a new one."""
        self._cached = None

    async def _acquire(self) -> AccessToken:
        s = self.settings
        form = {
            "grant_type": "client_credentials",
            "client_id": s.client_id,
            "client_secret": s.client_secret,
            "scope": s.graph_scope,
        }

        try:
            async with httpx.AsyncClient(
                timeout=s.http_timeout, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=form)
        except httpx.TimeoutException as exc:
            logger.error(f"Token request timed out after {s.http_timeout}s")
            raise AuthenticationError("Token request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Token request failed: {exc}")
            raise AuthenticationError(f"Token request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code != 200:
            description = (
                payload.get("error_description")
                or payload.get("error")
                or f"HTTP {response.status_code}"
            )
            logger.error(f"Token endpoint rejected the request: {description}")
            raise AuthenticationError(f"Token endpoint error: {description}")

        token = payload.get("access_token")
        if not token:
            logger.error("Token endpoint returned no access_token")
            raise AuthenticationError("No Graph token acquired")

        try:
            expires_in = float(payload.get("expires_in", _DEFAULT_EXPIRES_IN))
        except (TypeError, ValueError):
            expires_in = _DEFAULT_EXPIRES_IN

        return AccessToken(token=token, expires_at=self._clock() + expires_in)
