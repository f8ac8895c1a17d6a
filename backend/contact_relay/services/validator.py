"""
Submission screening: honeypot detection and required-field validation.

Runs before any network call.  The honeypot check is deliberately separate
from validation: a tripped honeypot is not an error and must be answered
exactly like a successful send.
"""

import logging

from contact_relay.errors import ValidationError
from contact_relay.models.contact import Submission
from contact_relay.services.body_parser import ParsedBody

logger = logging.getLogger(__name__)

# Name of the hidden form input that only bots fill in
HONEYPOT_FIELD = "website"

MAX_MESSAGE_LENGTH = 5000

MISSING_FIELDS_MESSAGE = "Please include name, email, and message."
MESSAGE_TOO_LONG_MESSAGE = "Message is too long."


def is_honeypot_tripped(body: ParsedBody) -> bool:
    """True when the hidden honeypot field carries any value at all."""
    return body.get(HONEYPOT_FIELD) != ""


def validate_submission(body: ParsedBody, request_id: str = "n/a") -> Submission:
    """
    Build a trimmed Submission or raise ValidationError.

    Checks, in order:
      1. name, email and message are non-empty after trimming
      2. message is at most MAX_MESSAGE_LENGTH characters

    Email format is not checked beyond non-emptiness.
    """
    name = body.get("name").strip()
    email = body.get("email").strip()
    phone = body.get("phone").strip()
    message = body.get("message").strip()

    if not name or not email or not message:
        logger.warning(
            f"[contact] [{request_id}] missing required fields "
            f"name={bool(name)} email={bool(email)} message={bool(message)}"
        )
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    if len(message) > MAX_MESSAGE_LENGTH:
        logger.warning(f"[contact] [{request_id}] message too long len={len(message)}")
        raise ValidationError(
            MESSAGE_TOO_LONG_MESSAGE,
            detail=f"message length {len(message)} exceeds {MAX_MESSAGE_LENGTH}",
        )

    return Submission(name=name, email=email, phone=phone, message=message)
