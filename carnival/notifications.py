from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage

from .database import Event, Invitation

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT_RAW = os.getenv("SMTP_PORT")
SMTP_PORT = int(SMTP_PORT_RAW) if SMTP_PORT_RAW and SMTP_PORT_RAW.isdigit() else None
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() in {"1", "true", "yes"}
SMTP_USE_SSL = os.getenv("SMTP_USE_SSL", "false").lower() in {"1", "true", "yes"}
SMTP_SENDER = os.getenv("SMTP_SENDER")
SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "10"))


def build_invitation_message(event: Event, invitation: Invitation, link: str) -> EmailMessage:
    sender = SMTP_SENDER or SMTP_USERNAME or "no-reply@localhost"
    message = EmailMessage()
    message["Subject"] = f"You're invited: {event.title}"
    message["From"] = sender
    message["To"] = invitation.guest_email
    lines = [
        f"Hello {invitation.guest_name},",
        "",
        f"You're invited to {event.title}.",
        f"When: {event.event_date:%A %d %B %Y, %H:%M}",
    ]
    if event.location:
        lines.append(f"Where: {event.location}")
    lines += ["", f"Let us know if you can make it: {link}"]
    message.set_content("\n".join(lines))
    return message


def send_invitation(event: Event, invitation: Invitation, link: str) -> bool:
    """Email the invite link to the guest. Returns True when a message was sent."""
    if not SMTP_HOST:
        logger.info("SMTP host not configured. Skipping invitation email for invitation %s", invitation.id)
        logger.debug("Invite link: %s", link)
        return False

    try:
        message = build_invitation_message(event, invitation, link)
        if SMTP_USE_SSL:
            with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT or 465, timeout=SMTP_TIMEOUT) as server:
                if SMTP_USERNAME and SMTP_PASSWORD:
                    server.login(SMTP_USERNAME, SMTP_PASSWORD)
                server.send_message(message)
        else:
            with smtplib.SMTP(SMTP_HOST, SMTP_PORT or 587, timeout=SMTP_TIMEOUT) as server:
                if SMTP_USE_TLS:
                    server.starttls()
                if SMTP_USERNAME and SMTP_PASSWORD:
                    server.login(SMTP_USERNAME, SMTP_PASSWORD)
                server.send_message(message)
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        logger.warning("Failed to send invitation email for invitation %s: %s", invitation.id, exc)
        return False
    return True
