# Overview: Service-layer operations for maintenance; pruning of audit and reset-ticket tables.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent, PasswordResetTicket
from herbtrade.time_utils import utcnow


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_reset_tickets() -> int:
    """Delete password reset tickets that are used or expired."""
    now = utcnow()
    deleted = db.session.query(PasswordResetTicket).filter(
        db.or_(
            PasswordResetTicket.used_at.isnot(None),
            PasswordResetTicket.expires_at <= now,
        )
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
