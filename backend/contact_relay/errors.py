"""
Error taxonomy for the contact relay.

Every error carries the HTTP status the route should answer with and a
public message that is safe to show to a site visitor.  Internal detail
(provider messages, response bodies) lives on the exception for logging only.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for failures the contact route knows how to answer."""

    status_code: int = 500

    def __init__(self, detail: str, public_message: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.public_message = public_message


class ValidationError(RelayError):
    """Missing, blank, or oversized form input."""

    status_code = 400

    def __init__(self, public_message: str, detail: Optional[str] = None):
        super().__init__(detail or public_message, public_message)


class ConfigurationError(RelayError):
    """One or more Graph credentials are not configured."""


class AuthenticationError(RelayError):
    """The identity platform did not issue a usable access token."""


class MailDeliveryError(RelayError):
    """Graph refused the sendMail request or could not be reached."""

    def __init__(
        self,
        detail: str,
        upstream_status: Optional[int] = None,
        body: str = "",
    ):
        super().__init__(detail)
        self.upstream_status = upstream_status
        self.body = body
