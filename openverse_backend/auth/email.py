from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from fastapi import BackgroundTasks

from openverse_backend.utils.env import get_env_bool, get_env_str

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Our Application!"


class EmailDeliveryError(RuntimeError):
    pass


def _render_welcome_html(first_name: str) -> str:
    return (
        "<div>"
        f"<h1>Welcome, {first_name}!</h1>"
        "<p>Thank you for registering with our application.</p>"
        "<p>Your account has been successfully created.</p>"
        "</div>"
    )


def send_registration_email(to: str, first_name: str) -> bool:
    """
    Send the welcome email over SMTP.

    Returns False when no `EMAIL_HOST` is configured (nothing is sent).
    Raises EmailDeliveryError when the SMTP exchange fails.
    """

    host = get_env_str("EMAIL_HOST")
    if not host:
        logger.info(f"EMAIL_HOST not set; skipping registration email to {to}")
        return False

    raw_port = get_env_str("EMAIL_PORT", "587") or "587"
    try:
        port = int(raw_port)
    except ValueError as exc:
        raise EmailDeliveryError(f"EMAIL_PORT must be an integer, got {raw_port!r}") from exc
    secure = get_env_bool("EMAIL_SECURE")
    user = get_env_str("EMAIL_USER")
    password = get_env_str("EMAIL_PASSWORD")

    message = EmailMessage()
    message["From"] = get_env_str("EMAIL_FROM", user or "") or ""
    message["To"] = to
    message["Subject"] = WELCOME_SUBJECT
    message.set_content(f"Welcome, {first_name}! Your account has been successfully created.")
    message.add_alternative(_render_welcome_html(first_name), subtype="html")

    smtp_cls = smtplib.SMTP_SSL if secure else smtplib.SMTP
    try:
        with smtp_cls(host, port, timeout=10) as smtp:
            smtp.ehlo()
            if not secure and smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            if user and password:
                smtp.login(user, password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError("Failed to send registration email") from exc
    return True


def _send_registration_email_logged(to: str, first_name: str) -> None:
    try:
        send_registration_email(to, first_name)
    except EmailDeliveryError as exc:
        logger.error(f"Error sending registration email to {to}: {exc.__cause__ or exc}")
    except Exception as exc:  # noqa: BLE001
        logger.exception(f"Error sending registration email to {to}: {exc}")


def schedule_registration_email(background_tasks: BackgroundTasks | None, to: str, first_name: str) -> None:
    """
    Queue the welcome email to run after the response is sent.

    Delivery failures are logged and never reach the caller.
    """

    if background_tasks is None:
        _send_registration_email_logged(to, first_name)
        return
    background_tasks.add_task(_send_registration_email_logged, to, first_name)
