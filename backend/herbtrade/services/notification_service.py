# Overview: Best-effort outbound email for account and dispatch notices.

"""
Notification Service

Every send is best effort: failures are logged as warnings and swallowed so a
mail outage never changes the outcome of the operation that triggered it.
With SMTP_HOST unset nothing is sent and the message is only logged.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage

from flask import current_app


def send_email(to: str, subject: str, body: str) -> bool:
    """Send a plain-text email. Returns True if the SMTP server accepted it."""
    config = current_app.config
    host = config.get("SMTP_HOST")
    if not host:
        current_app.logger.info("SMTP disabled; not sending '%s' to %s", subject, to)
        return False

    user = config.get("SMTP_USER")
    password = config.get("SMTP_PASSWORD")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.get("SMTP_FROM") or user
    msg["To"] = to
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, config.get("SMTP_PORT", 587), timeout=5) as server:
            server.ehlo()
            if config.get("SMTP_STARTTLS", True):
                server.starttls()
                server.ehlo()
            if user and password:
                server.login(user, password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.warning("Email to %s failed: %s", to, exc)
        return False
    return True


def send_staff_welcome(staff, plaintext_password: str) -> bool:
    body = (
        f"Hello {staff.name or staff.email},\n\n"
        f"An account has been created for you on HerbTrade as {staff.role}.\n\n"
        f"Email: {staff.email}\n"
        f"Temporary password: {plaintext_password}\n\n"
        "Please sign in and change your password on first login.\n"
    )
    return send_email(staff.email, "Welcome to HerbTrade - Your Account Details", body)


def send_password_reset(principal, plaintext_token: str, ttl_minutes: int) -> bool:
    base = current_app.config.get("FRONTEND_URL", "").rstrip("/")
    link = f"{base}/reset-password?token={plaintext_token}"
    body = (
        "You requested a password reset for your HerbTrade account.\n\n"
        f"Reset your password here: {link}\n"
        f"This link will expire in {ttl_minutes} minutes.\n\n"
        "If you did not request this, you can ignore this email.\n"
    )
    return send_email(principal.email, "Password Reset from HerbTrade", body)


def send_assignment_notice(agent, order, distance_km: float | None) -> bool:
    lines = [
        f"Hello {agent.name or agent.email},",
        "",
        f"Order #{order.id} has been assigned to you for delivery.",
    ]
    if distance_km is not None:
        lines.append(f"Distance to drop-off: {distance_km:.2f} km")
    address = order.shipping_address()
    parts = [address[k] for k in ("street", "city", "state", "zip_code") if address.get(k)]
    if parts:
        lines.append("Deliver to: " + ", ".join(parts))
    return send_email(agent.email, f"New delivery assignment: order #{order.id}", "\n".join(lines) + "\n")
