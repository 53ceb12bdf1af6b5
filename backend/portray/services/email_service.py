# Overview: Outbound email for contact verification; thin SMTP adapter driven by app config.

"""
Email delivery.

When MAIL_SERVER is configured, messages are sent over SMTP as
multipart/alternative (plain text + HTML). Without it (development,
tests) the message is only logged so the verification link can be copied
from the server log.

Sending never raises: failures are logged and reported as False, and
callers treat email as a best-effort side effect.
"""

from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app
from markupsafe import escape


def verification_url(token: str) -> str:
    base_url = (current_app.config.get("APP_BASE_URL") or "http://localhost:5000").rstrip("/")
    return f"{base_url}/verify?token={token}"


def send_email(to_email: str, subject: str, body_text: str, body_html: str | None = None) -> bool:
    """Send a single message. Returns True if it was handed to the SMTP server."""
    config = current_app.config
    server_host = config.get("MAIL_SERVER")

    if not server_host:
        current_app.logger.info("MAIL_SERVER not set; email to %s not sent (%s)", to_email, subject)
        return False

    from_email = config.get("MAIL_FROM") or "no-reply@portray.local"
    from_name = config.get("MAIL_FROM_NAME") or "PortRay"

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{from_name} <{from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(body_text, "plain"))
        if body_html:
            msg.attach(MIMEText(body_html, "html"))

        with smtplib.SMTP(server_host, int(config.get("MAIL_PORT") or 587), timeout=10) as server:
            if config.get("MAIL_USE_TLS", True):
                server.starttls()
            username = config.get("MAIL_USERNAME")
            password = config.get("MAIL_PASSWORD")
            if username and password:
                server.login(username, password)
            server.sendmail(from_email, [to_email], msg.as_string())

        current_app.logger.info("Email sent to %s (%s)", to_email, subject)
        return True
    except (smtplib.SMTPException, OSError):
        current_app.logger.exception("Failed to send email to %s (%s)", to_email, subject)
        return False


def send_verification_email(to_email: str, contact_name: str, token: str) -> bool:
    """Welcome email for a new port admin contact with its verification link."""
    url = verification_url(token)
    hours = current_app.config.get("VERIFICATION_TOKEN_TTL_HOURS", 24)
    if not current_app.config.get("MAIL_SERVER"):
        # Nothing will be delivered; the log is the only way to reach the link
        current_app.logger.info("Verification link for %s: %s", to_email, url)

    subject = "Welcome to PortRay - Verify Your Account"
    body_text = f"""
Welcome to PortRay!

Hello {contact_name},

You have been added as a Port Administrator contact. Please verify your
email address to complete your account setup.

Verification Link: {url}

This verification link will expire in {hours} hours.
"""
    body_html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2563eb;">Welcome to PortRay!</h2>
        <p>Hello {escape(contact_name)},</p>
        <p>You have been added as a Port Administrator contact. Please verify your
        email address to complete your account setup.</p>
        <p style="text-align: center; margin: 30px 0;">
            <a href="{url}" style="background-color: #2563eb; color: white; padding: 12px 24px;
            text-decoration: none; border-radius: 6px;">Verify Email Address</a>
        </p>
        <p style="color: #6b7280; font-size: 14px;">This verification link will expire in {hours} hours.</p>
    </div>
    """
    return send_email(to_email, subject, body_text, body_html)
