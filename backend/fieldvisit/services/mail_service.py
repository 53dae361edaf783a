# Overview: Outbound mail transport (SMTP) configured from the app config.

from __future__ import annotations

import smtplib
from email.message import EmailMessage

from flask import current_app

from ..errors import DeliveryError


def build_message(
    *,
    recipients: list[str],
    subject: str,
    body: str,
    attachment: bytes | None = None,
    attachment_name: str | None = None,
    attachment_type: str = "application/pdf",
) -> EmailMessage:
    """One message addressed to every recipient at once."""
    message = EmailMessage()
    message["From"] = current_app.config["MAIL_SENDER"]
    message["To"] = ", ".join(recipients)
    message["Subject"] = subject
    message.set_content(body)

    if attachment is not None:
        maintype, subtype = attachment_type.split("/", 1)
        message.add_attachment(
            attachment,
            maintype=maintype,
            subtype=subtype,
            filename=attachment_name or "attachment",
        )
    return message


def outbox() -> list[EmailMessage]:
    """Messages captured while MAIL_SUPPRESS_SEND is enabled."""
    return current_app.extensions.setdefault("mail_outbox", [])


def send_message(message: EmailMessage) -> None:
    """
    Deliver `message` through the configured SMTP server.

    With MAIL_SUPPRESS_SEND the message is appended to the in-app outbox
    instead of leaving the process.

    Raises:
        DeliveryError: connection, authentication or refusal by the server
    """
    config = current_app.config
    if config.get("MAIL_SUPPRESS_SEND"):
        outbox().append(message)
        return

    try:
        with smtplib.SMTP(config["MAIL_HOST"], config["MAIL_PORT"], timeout=config["MAIL_TIMEOUT"]) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.exception("Mail delivery failed")
        raise DeliveryError("Failed to deliver report email", detail=str(exc)) from exc
