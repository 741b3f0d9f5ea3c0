# Overview: Service-layer operations for password reset tickets; issue, consume and cleanup.

"""
Password Reset Tickets

Two ways in:
- reset_link:  self-service forgot-password; short TTL (RESET_LINK_TTL_MINUTES)
- admin_reset: an admin issues a ticket for a principal (PASSWORD_RESET_TTL_MINUTES)

Only SHA-256(token) is stored. A ticket works once and only before it expires.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..errors import ValidationError, NotFoundError
from ..extensions import db
from ..models import PasswordResetTicket, Principal
from . import identity_service, notification_service
from .concurrency import compare_and_set
from herbtrade.time_utils import utcnow, as_utc


PURPOSE_RESET_LINK = "reset_link"
PURPOSE_ADMIN_RESET = "admin_reset"


class InvalidResetTokenError(ValidationError):
    default_message = "Invalid or expired token"


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def ttl_for(purpose: str) -> timedelta:
    if purpose == PURPOSE_ADMIN_RESET:
        return timedelta(minutes=current_app.config.get("PASSWORD_RESET_TTL_MINUTES", 60))
    return timedelta(minutes=current_app.config.get("RESET_LINK_TTL_MINUTES", 15))


def issue_ticket(principal: Principal, purpose: str = PURPOSE_RESET_LINK, issued_by=None) -> tuple[PasswordResetTicket, str]:
    """
    Create a ticket and return (ticket, plaintext_token).

    The plaintext is handed to the mail channel (or the admin) and never stored.
    """
    if purpose not in (PURPOSE_RESET_LINK, PURPOSE_ADMIN_RESET):
        raise ValueError(f"Unknown reset purpose: {purpose}")

    plaintext = generate_token()
    now = utcnow()
    ticket = PasswordResetTicket(
        token_hash=hash_token(plaintext),
        principal_id=principal.id,
        purpose=purpose,
        created_at=now,
        expires_at=now + ttl_for(purpose),
        issued_by_id=issued_by.id if issued_by is not None else None,
    )
    db.session.add(ticket)
    db.session.commit()
    return ticket, plaintext


def request_reset_link(email) -> PasswordResetTicket:
    """
    Forgot-password entry point: issue a reset_link ticket and email it.

    Raises NotFoundError when no principal has this email.
    """
    email = identity_service.normalize_email(email)
    principal = db.session.query(Principal).filter(Principal.email == email).first()
    if principal is None or not principal.is_active:
        raise NotFoundError("Email does not exist")

    ticket, plaintext = issue_ticket(principal, PURPOSE_RESET_LINK)
    ttl_minutes = int(ttl_for(PURPOSE_RESET_LINK).total_seconds() // 60)
    notification_service.send_password_reset(principal, plaintext, ttl_minutes)
    return ticket


def consume_ticket(token, new_password) -> Principal:
    """
    Redeem a ticket and set the new password.

    The password is validated before the ticket is burned, so a weak password
    does not waste the ticket.
    """
    if not isinstance(token, str) or not token.strip():
        raise InvalidResetTokenError()

    identity_service.validate_password_strength(new_password)

    ticket = (
        db.session.query(PasswordResetTicket)
        .filter(PasswordResetTicket.token_hash == hash_token(token.strip()))
        .first()
    )
    now = utcnow()
    if ticket is None or ticket.used_at is not None or as_utc(ticket.expires_at) <= now:
        raise InvalidResetTokenError()

    principal = db.session.get(Principal, ticket.principal_id)
    if principal is None:
        raise InvalidResetTokenError()

    # Conditional burn: only one redemption can flip used_at
    if not compare_and_set(PasswordResetTicket, ticket.id, {"used_at": None}, {"used_at": now}):
        raise InvalidResetTokenError()

    identity_service.set_password(principal, new_password)
    db.session.commit()
    db.session.expire(ticket)
    return principal

