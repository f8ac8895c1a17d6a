"""
Microsoft Graph sendMail request shape (the subset the relay sends).

Field names follow Graph's camelCase JSON so ``model_dump()`` produces the
request body directly:

  {
    "message": {
      "subject": "...",
      "body": {"contentType": "HTML", "content": "..."},
      "toRecipients": [{"emailAddress": {"address": "..."}}],
      "replyTo": [{"emailAddress": {"address": "...", "name": "..."}}]
    },
    "saveToSentItems": true
  }
"""

from typing import Optional

from pydantic import BaseModel


class EmailAddress(BaseModel):
    address: str
    name: Optional[str] = None


class Recipient(BaseModel):
    emailAddress: EmailAddress


class ItemBody(BaseModel):
    contentType: str = "HTML"  # "HTML" | "Text"
    content: str = ""


class GraphMessage(BaseModel):
    subject: str
    body: ItemBody
    toRecipients: list[Recipient]
    replyTo: list[Recipient] = []


class SendMailRequest(BaseModel):
    """Body of POST /users/{id}/sendMail."""

    message: GraphMessage
    saveToSentItems: bool = True

    def to_payload(self) -> dict:
        """JSON-ready dict with unset optional names dropped."""
        return self.model_dump(exclude_none=True)
