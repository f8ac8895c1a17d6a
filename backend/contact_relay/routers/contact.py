"""
Contact form endpoint.

  POST /api/contact   anonymous; form-encoded or JSON body

Flow: parse -> honeypot -> validate -> config check -> token -> build -> send.
Every path, including unexpected exceptions, ends in exactly one JSON
response of the form {"ok": bool, "message": str}:

  honeypot tripped           200  ok=true
  missing required field     400  ok=false
  message too long           400  ok=false
  configuration incomplete   500  ok=false
  token acquisition failed   500  ok=false
  Graph rejected the send    500  ok=false
  anything else              500  ok=false
  sent                       200  ok=true
"""

import logging
import re
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from contact_relay.config import Settings, get_settings, mask_email
from contact_relay.dependencies import get_mail_dispatcher, get_token_provider
from contact_relay.errors import (
    AuthenticationError,
    ConfigurationError,
    MailDeliveryError,
    ValidationError,
)
from contact_relay.models.contact import ContactResponse
from contact_relay.services.body_parser import parse_body
from contact_relay.services.mail_builder import build_send_mail_request
from contact_relay.services.mail_dispatcher import GraphMailDispatcher
from contact_relay.services.token_provider import GraphTokenProvider
from contact_relay.services.validator import is_honeypot_tripped, validate_submission

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Public messages
# ---------------------------------------------------------------------------

SENT_MESSAGE = "Thanks! Your message has been sent."

# Graph statuses meaning the bearer token itself was refused
_TOKEN_REJECTED_STATUSES = (401, 403)

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _fallback_hint(settings: Settings) -> str:
    if settings.fallback_contact_email:
        return f"Please email {settings.fallback_contact_email}."
    return "Please try again later or contact us directly."


def send_failed_message(settings: Settings) -> str:
    return f"Send failed. {_fallback_hint(settings)}"


def not_configured_message(settings: Settings) -> str:
    return f"Mail service not configured. {_fallback_hint(settings)}"


def _request_id(header_value: Optional[str]) -> str:
    """Use the caller's X-Request-ID when it looks sane, else mint one."""
    if header_value and _REQUEST_ID_RE.match(header_value):
        return header_value
    return uuid4().hex[:8]


def _respond(status_code: int, ok: bool, message: str, request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ContactResponse(ok=ok, message=message).model_dump(),
        headers={"X-Request-ID": request_id},
    )


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("", response_model=ContactResponse)
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    token_provider: GraphTokenProvider = Depends(get_token_provider),
    dispatcher: GraphMailDispatcher = Depends(get_mail_dispatcher),
):
    """
    Relay a website contact-form submission to the configured mailbox.

    No authentication. Bots that fill the hidden honeypot field get the same
    200 answer as a real send, without any mail being sent.
    """
    rid = _request_id(request.headers.get("x-request-id"))
    content_type = request.headers.get("content-type")

    try:
        raw = await request.body()
        body = parse_body(content_type, raw)
        logger.info(
            f"[contact] [{rid}] received encoding={body.encoding.value} "
            f"ctype={content_type or '(none)'}"
        )

        if is_honeypot_tripped(body):
            logger.info(f"[contact] [{rid}] honeypot tripped; returning 200 silently")
            return _respond(200, True, SENT_MESSAGE, rid)

        submission = validate_submission(body, request_id=rid)

        flags = settings.presence_flags()
        logger.info(f"[contact] [{rid}] env check {flags}")
        if not settings.is_complete:
            raise ConfigurationError("Graph configuration incomplete")

        token = await token_provider.get_token()
        logger.info(f"[contact] [{rid}] token acquired")

        mail_request = build_send_mail_request(
            submission,
            settings.mailbox_address,
            subject_prefix=settings.subject_prefix,
            site_name=settings.site_name,
            body_format=settings.body_format,
        )
        await dispatcher.send(token, settings.mailbox_address, mail_request)

        logger.info(
            f"[contact] [{rid}] sendMail OK to={mask_email(settings.mailbox_address)}"
        )
        return _respond(200, True, SENT_MESSAGE, rid)

    except ValidationError as exc:
        return _respond(exc.status_code, False, exc.public_message, rid)

    except ConfigurationError as exc:
        logger.error(
            f"[contact] [{rid}] missing Graph configuration: {settings.presence_flags()}"
        )
        return _respond(exc.status_code, False, not_configured_message(settings), rid)

    except AuthenticationError as exc:
        logger.error(f"[contact] [{rid}] token error: {exc.detail}")
        return _respond(exc.status_code, False, send_failed_message(settings), rid)

    except MailDeliveryError as exc:
        logger.error(
            f"[contact] [{rid}] Graph sendMail failed "
            f"status={exc.upstream_status} body={exc.body[:200]!r}"
        )
        if exc.upstream_status in _TOKEN_REJECTED_STATUSES:
            # Drop the cached token so the next request fetches a fresh one
            token_provider.invalidate()
        return _respond(exc.status_code, False, send_failed_message(settings), rid)

    except Exception:
        logger.exception(f"[contact] [{rid}] unhandled error")
        return _respond(500, False, send_failed_message(settings), rid)
