"""
Unit tests for GraphTokenProvider.

The identity platform is simulated with httpx.MockTransport.
"""

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from contact_relay.config import Settings
from contact_relay.errors import AuthenticationError, ConfigurationError
from contact_relay.services.token_provider import GraphTokenProvider


SETTINGS = Settings(
    tenant_id="tenant-123",
    client_id="client-456",
    client_secret="super-secret-value",
    mailbox_address="contact@example.com",
)


class RecordingHandler:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code: int = 200, json_body=None, exc: Exception | None = None):
        self.status_code = status_code
        self.json_body = json_body if json_body is not None else {
            "token_type": "Bearer",
            "expires_in": 3599,
            "access_token": "graph-token-abc",
        }
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.json_body)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _provider(handler, settings: Settings = SETTINGS, clock=None) -> GraphTokenProvider:
    return GraphTokenProvider(
        settings,
        transport=httpx.MockTransport(handler),
        clock=clock or FakeClock(),
    )


class TestTokenAcquisition:

    @pytest.mark.asyncio
    async def test_returns_access_token(self):
        handler = RecordingHandler()

        token = await _provider(handler).get_token()

        assert token == "graph-token-abc"
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_posts_client_credentials_grant(self):
        handler = RecordingHandler()

        await _provider(handler).get_token()

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://login.microsoftonline.com/tenant-123/oauth2/v2.0/token"
        )
        form = parse_qs(request.content.decode())
        assert form["grant_type"] == ["client_credentials"]
        assert form["client_id"] == ["client-456"]
        assert form["client_secret"] == ["super-secret-value"]
        assert form["scope"] == ["https://graph.microsoft.com/.default"]

    @pytest.mark.asyncio
    async def test_custom_authority_host(self):
        handler = RecordingHandler()
        settings = SETTINGS.model_copy(update={"authority_host": "https://login.example.test"})

        await _provider(handler, settings=settings).get_token()

        assert str(handler.requests[0].url).startswith("https://login.example.test/tenant-123/")


class TestConfigurationChecks:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["tenant_id", "client_id", "client_secret"])
    async def test_missing_credential_raises_before_network(self, field):
        handler = RecordingHandler()
        settings = SETTINGS.model_copy(update={field: None})

        with pytest.raises(ConfigurationError):
            await _provider(handler, settings=settings).get_token()

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_error_does_not_carry_secret(self):
        settings = SETTINGS.model_copy(update={"tenant_id": None})

        with pytest.raises(ConfigurationError) as exc_info:
            await _provider(RecordingHandler(), settings=settings).get_token()

        assert "super-secret-value" not in str(exc_info.value)


class TestProviderFailures:

    @pytest.mark.asyncio
    async def test_rejected_credentials_raise_authentication_error(self):
        handler = RecordingHandler(
            status_code=401,
            json_body={
                "error": "invalid_client",
                "error_description": "AADSTS7000215: Invalid client secret provided.",
            },
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await _provider(handler).get_token()

        assert "AADSTS7000215" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_missing_access_token_raises(self):
        handler = RecordingHandler(json_body={"token_type": "Bearer"})

        with pytest.raises(AuthenticationError) as exc_info:
            await _provider(handler).get_token()

        assert "No Graph token acquired" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_error_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(AuthenticationError) as exc_info:
            await _provider(handler).get_token()

        assert "HTTP 502" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_connection_error_raises_authentication_error(self):
        handler = RecordingHandler(exc=httpx.ConnectError("connection refused"))

        with pytest.raises(AuthenticationError):
            await _provider(handler).get_token()

    @pytest.mark.asyncio
    async def test_timeout_raises_authentication_error(self):
        handler = RecordingHandler(exc=httpx.ReadTimeout("too slow"))

        with pytest.raises(AuthenticationError) as exc_info:
            await _provider(handler).get_token()

        assert "timed out" in str(exc_info.value)


class TestTokenCache:

    @pytest.mark.asyncio
    async def test_second_call_reuses_cached_token(self):
        handler = RecordingHandler()
        provider = _provider(handler)

        first = await provider.get_token()
        second = await provider.get_token()

        assert first == second == "graph-token-abc"
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_token_is_refreshed_near_expiry(self):
        handler = RecordingHandler()
        clock = FakeClock()
        provider = _provider(handler, clock=clock)

        await provider.get_token()
        # 3599s lifetime minus the 60s refresh margin
        clock.now += 3540
        await provider.get_token()

        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_token_still_fresh_just_before_margin(self):
        handler = RecordingHandler()
        clock = FakeClock()
        provider = _provider(handler, clock=clock)

        await provider.get_token()
        clock.now += 3500
        await provider.get_token()

        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_cache_disabled_fetches_every_time(self):
        handler = RecordingHandler()
        settings = SETTINGS.model_copy(update={"token_cache_enabled": False})
        provider = _provider(handler, settings=settings)

        await provider.get_token()
        await provider.get_token()

        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self):
        handler = RecordingHandler()
        provider = _provider(handler)

        tokens = await asyncio.gather(*(provider.get_token() for _ in range(5)))

        assert set(tokens) == {"graph-token-abc"}
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_request(self):
        handler = RecordingHandler()
        provider = _provider(handler)

        await provider.get_token()
        provider.invalidate()
        await provider.get_token()

        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self):
        handler = RecordingHandler(status_code=500, json_body={"error": "server_error"})
        provider = _provider(handler)

        with pytest.raises(AuthenticationError):
            await provider.get_token()
        with pytest.raises(AuthenticationError):
            await provider.get_token()

        assert len(handler.requests) == 2
