"""
Mail dispatch through Amazon SES.

A validated ContactPayload becomes a MailMessage (from, to, subject, text,
replyTo, attachments), is rendered to MIME and handed to SES in a single
SendRawEmail call. There is no retry: a message is either accepted by SES
entirely or the whole dispatch fails with whatever botocore raised.

Attachments forward only filename and bytes. The MIME type in the sent
message is re-derived from the filename, not copied from the upload.
"""

import logging
import mimetypes
from email.message import EmailMessage
from typing import Optional

import boto3
from pydantic import BaseModel, Field

from contact_mailer.models.config import HandlerConfig
from contact_mailer.models.submission import ContactPayload

logger = logging.getLogger(__name__)


class MailAttachment(BaseModel):
    filename: str
    content: bytes


class MailMessage(BaseModel):
    """The message handed to the mail provider."""

    model_config = {"frozen": True, "populate_by_name": True}

    from_: str = Field(alias="from")
    to: str
    subject: str
    text: str
    reply_to: str = Field(alias="replyTo")
    attachments: Optional[list[MailAttachment]] = None


def build_mail_message(payload: ContactPayload, config: HandlerConfig) -> MailMessage:
    attachments = None
    if payload.files is not None:
        attachments = [
            MailAttachment(filename=f.filename, content=f.content) for f in payload.files
        ]

    return MailMessage(
        from_=config.sender_email,
        to=config.recipient_email,
        subject=payload.subject,
        text=payload.message,
        reply_to=payload.email,
        attachments=attachments,
    )


def _guess_mime_type(filename: str) -> tuple[str, str]:
    guessed, _ = mimetypes.guess_type(filename)
    maintype, _, subtype = (guessed or "application/octet-stream").partition("/")
    return maintype, subtype


def _header_value(value: str) -> str:
    """Fold line breaks out of a header value; the email policy rejects CR/LF."""
    return " ".join(value.splitlines())


def render_mime(message: MailMessage) -> EmailMessage:
    """Render a MailMessage as a MIME message ready for SendRawEmail."""
    mime = EmailMessage()
    mime["From"] = _header_value(message.from_)
    mime["To"] = _header_value(message.to)
    mime["Subject"] = _header_value(message.subject)
    mime["Reply-To"] = _header_value(message.reply_to)
    mime.set_content(message.text)

    for attachment in message.attachments or []:
        maintype, subtype = _guess_mime_type(attachment.filename)
        mime.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )
    return mime


class SesMailer:
    """Thin wrapper around a boto3 SES client; safe to share across requests."""

    def __init__(self, region: str, client=None):
        self.client = client or boto3.client("ses", region_name=region)

    def send(self, message: MailMessage) -> str:
        """Send one message. Returns the SES MessageId; botocore faults propagate."""
        mime = render_mime(message)
        response = self.client.send_raw_email(
            Source=message.from_,
            Destinations=[message.to],
            RawMessage={"Data": mime.as_bytes()},
        )
        message_id = response.get("MessageId", "")
        logger.info(f"Mail accepted by SES: message_id={message_id}")
        return message_id


def dispatch(payload: ContactPayload, config: HandlerConfig, mailer: SesMailer) -> Optional[str]:
    """
    Build and send the message for a validated payload.

    With config.disable_send the provider is never contacted and None is
    returned; nothing is queued or recorded.
    """
    message = build_mail_message(payload, config)

    if config.disable_send:
        logger.warning("Email sending disabled. Returning success for testing.")
        return None

    return mailer.send(message)
