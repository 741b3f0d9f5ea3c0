from __future__ import annotations

from ..extensions import db
from herbtrade.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Security event audit log.

    Records gate rejections (ACCESS_DENIED) and login outcomes
    (LOGIN_FAILED, LOGIN_SUCCEEDED).

    Append-only; rows are removed only by the retention cleanup.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_principal_type", "principal_id", "event_type"),
        db.Index("ix_security_events_occurred", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    principal_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=True, index=True)  # Nullable for anonymous

    event_type = db.Column(db.String(64), nullable=False, index=True)
    resource = db.Column(db.String(128), nullable=True)  # e.g., "/api/admin/orders/1/assign-delivery"
    action = db.Column(db.String(64), nullable=True)     # e.g., "ASSIGN_DELIVERY", or the login email

    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    principal = db.relationship("Principal", backref=db.backref("security_events", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "principal_id": self.principal_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "ip_address": self.ip_address,
            "occurred_at": to_utc_z(self.occurred_at),
        }


class PasswordResetTicket(db.Model):
    """
    Single-use password reset ticket.

    Only the SHA-256 hash of the token is stored; the plaintext goes out by
    email and is never persisted. A ticket is valid while unused and before
    expires_at.

    purpose:
    - reset_link:  self-service forgot-password link
    - admin_reset: issued by an admin for a principal
    """
    __tablename__ = "password_reset_tickets"
    __table_args__ = (
        db.Index("ix_password_reset_tickets_expires", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    principal_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=False, index=True)
    purpose = db.Column(db.String(16), nullable=False, default="reset_link")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    issued_by_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=True)

    principal = db.relationship("Principal", foreign_keys=[principal_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "principal_id": self.principal_id,
            "purpose": self.purpose,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "used_at": to_utc_z(self.used_at),
            "issued_by_id": self.issued_by_id,
        }
