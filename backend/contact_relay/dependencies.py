"""
FastAPI dependencies wiring settings and the two Graph collaborators.

The token provider is a process-wide singleton so its token cache survives
across requests.  Tests replace any of these via ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from contact_relay.config import Settings, get_settings
from contact_relay.services.mail_dispatcher import GraphMailDispatcher
from contact_relay.services.token_provider import GraphTokenProvider


@lru_cache()
def _token_provider_for(settings: Settings) -> GraphTokenProvider:
    return GraphTokenProvider(settings)


def get_token_provider(settings: Settings = Depends(get_settings)) -> GraphTokenProvider:
    return _token_provider_for(settings)


def get_mail_dispatcher(settings: Settings = Depends(get_settings)) -> GraphMailDispatcher:
    return GraphMailDispatcher(settings)
