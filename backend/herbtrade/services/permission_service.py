# Overview: Service-layer operations for capabilities; role checks and security event logging.

"""
Capability Checking and Security Event Logging

Access is decided from a single declarative table (permissions.ROLE_CAPABILITIES)
instead of role checks scattered through the routes.

DESIGN PRINCIPLES:
- Fail closed: unknown roles hold no capabilities
- Log denials only: grants are not logged
- Login outcomes are logged by the identity service through the same helper
"""

from __future__ import annotations

from ..errors import HerbTradeError
from ..extensions import db
from ..models import SecurityEvent
from ..permissions import role_has_capability, get_role_capabilities
from herbtrade.time_utils import utcnow


class AccessDeniedError(HerbTradeError):
    """Raised when the caller's role lacks the required capability."""
    status_code = 403
    default_message = "Access denied"


class PrincipalNotFoundError(HerbTradeError):
    """Token is valid but its principal is missing, inactive or in the wrong collection."""
    status_code = 401
    default_message = "Token is not valid"


def log_security_event(
    principal_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Log security event to the audit trail.

    event_type examples:
    - ACCESS_DENIED
    - LOGIN_FAILED
    - LOGIN_SUCCEEDED
    """
    event = SecurityEvent(
        principal_id=principal_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def capabilities_for(principal) -> set[str]:
    return get_role_capabilities(principal.role)


def principal_has_capability(principal, capability_code: str) -> bool:
    return role_has_capability(principal.role, capability_code)


def require_capability(
    principal,
    capability_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Require the principal's role to grant a capability.

    Logs an ACCESS_DENIED security event and raises AccessDeniedError if not.

    Usage:
        require_capability(g.current_principal, "ASSIGN_DELIVERY", resource=request.path)
    """
    if principal_has_capability(principal, capability_code):
        return

    log_security_event(
        principal_id=principal.id,
        event_type="ACCESS_DENIED",
        success=False,
        resource=resource,
        action=capability_code,
        reason=f"Role '{principal.role}' lacks capability: {capability_code}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise AccessDeniedError(
        "Access denied",
        details=f"Requires capability: {capability_code}",
    )
