"""
Runtime configuration for the contact relay.

Settings are read once from the environment (a local ``.env`` file is loaded
first when present) and frozen for the life of the process.  Route handlers
receive them through the ``get_settings`` dependency so tests can substitute
their own instance via ``app.dependency_overrides``.

Required environment variables
------------------------------
TENANT_ID          Entra ID tenant that owns the app registration.
CLIENT_ID          Application (client) id of the app registration.
CLIENT_SECRET      Client secret for the app registration.
MAILBOX_ADDRESS    Mailbox used both as sender and recipient of relayed mail.

Optional environment variables
------------------------------
GRAPH_API_ROOT          Default: https://graph.microsoft.com/v1.0
GRAPH_SCOPE             Default: https://graph.microsoft.com/.default
AUTHORITY_HOST          Default: https://login.microsoftonline.com
FALLBACK_CONTACT_EMAIL  Address shown to visitors when sending fails.
MAIL_SUBJECT_PREFIX     Default: "Website Contact"
SITE_NAME               Shown in the heading of the relayed mail.
MAIL_BODY_FORMAT        "html" (default) or "text".
HTTP_TIMEOUT_SECONDS    Timeout for each outbound call. Default: 10
TOKEN_CACHE_ENABLED     Reuse access tokens until shortly before expiry.
CORS_ORIGINS            Comma-separated list of allowed browser origins.
"""

import math
import os
import re
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

_DEFAULT_GRAPH_API_ROOT = "https://graph.microsoft.com/v1.0"
_DEFAULT_GRAPH_SCOPE = "https://graph.microsoft.com/.default"
_DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"

_MASK_EMAIL_RE = re.compile(r"^(.).+(@.+)$")


def _env(name: str) -> Optional[str]:
    """Return the stripped value of an env var, or None when unset/blank."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_positive_float(name: str, default: float) -> float:
    """Parse a finite number greater than zero, else return the default."""
    value = _env(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    if not math.isfinite(parsed) or parsed <= 0:
        return default
    return parsed


def mask_presence(value: Optional[str]) -> str:
    """Render a secret as a presence flag suitable for logs."""
    return "set" if value else "missing"


def mask_email(value: Optional[str]) -> str:
    """
    Mask an email address for logs: ``jane@example.com`` -> ``j***@example.com``.

    Addresses whose local part is a single character are fully masked.
    """
    if not value:
        return "(missing)"
    match = _MASK_EMAIL_RE.match(value)
    if not match:
        return "***"
    return f"{match.group(1)}***{match.group(2)}"


class Settings(BaseModel):
    """Immutable relay configuration."""

    model_config = {"frozen": True}

    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    mailbox_address: Optional[str] = None

    graph_api_root: str = _DEFAULT_GRAPH_API_ROOT
    graph_scope: str = _DEFAULT_GRAPH_SCOPE
    authority_host: str = _DEFAULT_AUTHORITY_HOST

    fallback_contact_email: Optional[str] = None
    subject_prefix: str = "Website Contact"
    site_name: str = "Website"
    body_format: str = "html"

    http_timeout: float = 10.0
    token_cache_enabled: bool = True
    cors_origins: tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current process environment."""
        cors_env = os.getenv("CORS_ORIGINS", "")
        body_format = (_env("MAIL_BODY_FORMAT") or "html").lower()
        if body_format not in ("html", "text"):
            body_format = "html"

        return cls(
            tenant_id=_env("TENANT_ID"),
            client_id=_env("CLIENT_ID"),
            client_secret=_env("CLIENT_SECRET"),
            mailbox_address=_env("MAILBOX_ADDRESS"),
            graph_api_root=(_env("GRAPH_API_ROOT") or _DEFAULT_GRAPH_API_ROOT).rstrip("/"),
            graph_scope=_env("GRAPH_SCOPE") or _DEFAULT_GRAPH_SCOPE,
            authority_host=(_env("AUTHORITY_HOST") or _DEFAULT_AUTHORITY_HOST).rstrip("/"),
            fallback_contact_email=_env("FALLBACK_CONTACT_EMAIL"),
            subject_prefix=_env("MAIL_SUBJECT_PREFIX") or "Website Contact",
            site_name=_env("SITE_NAME") or "Website",
            body_format=body_format,
            http_timeout=_env_positive_float("HTTP_TIMEOUT_SECONDS", 10.0),
            token_cache_enabled=_env_bool("TOKEN_CACHE_ENABLED", True),
            cors_origins=tuple(o.strip() for o in cors_env.split(",") if o.strip()),
        )

    @property
    def is_complete(self) -> bool:
        """True when all four Graph credentials are present."""
        return bool(
            self.tenant_id
            and self.client_id
            and self.client_secret
            and self.mailbox_address
        )

    def presence_flags(self) -> dict[str, str]:
        """
        Log-safe summary of the credential configuration.

        Secrets appear only as set/missing; the mailbox is masked.
        """
        return {
            "tenant_id": mask_presence(self.tenant_id),
            "client_id": mask_presence(self.client_id),
            "client_secret": mask_presence(self.client_secret),
            "mailbox_address": mask_email(self.mailbox_address),
        }


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    return Settings.from_env()
