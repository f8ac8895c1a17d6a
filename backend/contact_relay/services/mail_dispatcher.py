"""
Sends a built message through Microsoft Graph.

One POST per call to {graph_api_root}/users/{mailbox}/sendMail.  Graph answers
202 Accepted with an empty body; that only means the message was accepted for
delivery, not that it reached an inbox.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from contact_relay.config import Settings, mask_email
from contact_relay.errors import MailDeliveryError
from contact_relay.models.graph_mail import SendMailRequest

logger = logging.getLogger(__name__)

# Longest slice of a Graph error body kept on the exception and in logs
_BODY_SNIPPET_LENGTH = 500


def _read_body_snippet(response: httpx.Response) -> str:
    """Best-effort read of an error body; never raises."""
    try:
        return response.text[:_BODY_SNIPPET_LENGTH]
    except Exception:
        logger.debug("Could not read sendMail error body", exc_info=True)
        return ""


class GraphMailDispatcher:
    """Performs the sendMail call for a mailbox."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    def send_mail_url(self, mailbox_address: str) -> str:
        return (
            f"{self.settings.graph_api_root}/users/"
            f"{quote(mailbox_address, safe='')}/sendMail"
        )

    async def send(
        self,
        token: str,
        mailbox_address: str,
        request: SendMailRequest,
    ) -> None:
        """
        POST the message as the given mailbox.

        Raises:
            MailDeliveryError: non-2xx status, timeout, or transport failure.
        """
        url = self.send_mail_url(mailbox_address)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        logger.info(f"Sending via Graph as {mask_email(mailbox_address)}")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url, json=request.to_payload(), headers=headers
                )
        except httpx.TimeoutException as exc:
            logger.error(f"Graph sendMail timed out after {self.settings.http_timeout}s")
            raise MailDeliveryError("Graph sendMail timed out") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Graph sendMail transport error: {exc}")
            raise MailDeliveryError(f"Graph sendMail transport error: {exc}") from exc

        if not response.is_success:
            snippet = _read_body_snippet(response)
            logger.error(f"Graph sendMail failed status={response.status_code} body={snippet}")
            raise MailDeliveryError(
                f"Graph sendMail {response.status_code}",
                upstream_status=response.status_code,
                body=snippet,
            )
