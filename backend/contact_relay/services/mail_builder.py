"""
Builds the Graph sendMail request for a validated submission.

All visitor-supplied text is escaped before it is interpolated into the mail
body, whichever body format is configured, so nothing a visitor types can be
rendered as markup by the recipient's mail client.
"""

import html

from contact_relay.models.contact import Submission
from contact_relay.models.graph_mail import (
    EmailAddress,
    GraphMessage,
    ItemBody,
    Recipient,
    SendMailRequest,
)

_HTML_TEMPLATE = """\
<div style="font-family:Segoe UI,Arial,sans-serif;font-size:14px;">
  <h2 style="margin:0 0 8px;">New contact from {site}</h2>
  <p><strong>Name:</strong> {name}</p>
  <p><strong>Email:</strong> {email}</p>
{phone_line}  <hr style="border:none;border-top:1px solid #ddd;margin:12px 0;" />
  <p style="white-space:pre-wrap;">{message}</p>
</div>
"""

_TEXT_TEMPLATE = """\
New contact from {site}

Name: {name}
Email: {email}
{phone_line}
{message}
"""


def escape_html(value: str) -> str:
    """Escape &, <, > and double quotes."""
    return html.escape(value, quote=False).replace('"', "&quot;")


def build_subject(submission: Submission, prefix: str) -> str:
    return f"{prefix}: {submission.name} <{submission.email}>"


def render_html_body(submission: Submission, site_name: str) -> str:
    phone_line = ""
    if submission.phone:
        phone_line = f"  <p><strong>Phone:</strong> {escape_html(submission.phone)}</p>\n"
    return _HTML_TEMPLATE.format(
        site=escape_html(site_name),
        name=escape_html(submission.name),
        email=escape_html(submission.email),
        phone_line=phone_line,
        message=escape_html(submission.message),
    )


def render_text_body(submission: Submission, site_name: str) -> str:
    phone_line = ""
    if submission.phone:
        phone_line = f"Phone: {escape_html(submission.phone)}\n"
    return _TEXT_TEMPLATE.format(
        site=escape_html(site_name),
        name=escape_html(submission.name),
        email=escape_html(submission.email),
        phone_line=phone_line,
        message=escape_html(submission.message),
    )


def build_send_mail_request(
    submission: Submission,
    mailbox_address: str,
    subject_prefix: str = "Website Contact",
    site_name: str = "Website",
    body_format: str = "html",
) -> SendMailRequest:
    """
    Assemble the sendMail request for one submission.

    The configured mailbox is the only recipient; replies go to the visitor
    via replyTo.  The sent copy is kept in the mailbox's Sent Items.
    """
    if body_format == "text":
        body = ItemBody(contentType="Text", content=render_text_body(submission, site_name))
    else:
        body = ItemBody(contentType="HTML", content=render_html_body(submission, site_name))

    message = GraphMessage(
        subject=build_subject(submission, subject_prefix),
        body=body,
        toRecipients=[Recipient(emailAddress=EmailAddress(address=mailbox_address))],
        replyTo=[
            Recipient(
                emailAddress=EmailAddress(
                    address=submission.email,
                    name=submission.name,
                )
            )
        ],
    )
    return SendMailRequest(message=message, saveToSentItems=True)
