# Overview: Service-layer operations for principals; registration, staff onboarding, login and passwords.

"""
Identity Service

Customers self-register; staff (sellers, employees, delivery agents, ...) are
created by an admin with a generated password that is emailed to them. Both
variants live in the `principals` table and share one email namespace.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Minimum 6 characters
- Unknown email and wrong password produce the same InvalidCredentialsError
- Inactive principals cannot log in
"""

from __future__ import annotations

import re
import secrets

import bcrypt
from flask import current_app

from ..errors import HerbTradeError, ValidationError, ConflictError, NotFoundError
from ..extensions import db
from ..models import Principal, Customer, StaffMember
from ..models.identity import STAFF_ROLES, VEHICLE_TYPES
from . import notification_service
from .geofence_service import GeoPoint
from .permission_service import log_security_event
from herbtrade.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    default_message = "Password does not meet requirements"


class InvalidCredentialsError(HerbTradeError):
    status_code = 401
    default_message = "Invalid credentials"


def normalize_email(email) -> str:
    if not isinstance(email, str):
        raise ValidationError("Email is required")
    normalized = email.strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Invalid email address")
    return normalized


def validate_password_strength(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check; malformed hashes never match."""
    if not isinstance(password, str) or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_password() -> str:
    # 12 URL-safe characters
    return secrets.token_urlsafe(9)


def email_in_use(email: str) -> bool:
    return db.session.query(Principal.id).filter(Principal.email == email).first() is not None


def register_customer(email, password, name: str | None = None, phone: str | None = None, role: str = "user") -> Customer:
    """
    Create a customer account.

    Raises:
        ValidationError: bad email or password
        ConflictError: email already used by any principal
    """
    email = normalize_email(email)
    if role not in ("user", "admin"):
        raise ValidationError("Invalid role")
    if email_in_use(email):
        raise ConflictError("Email already exists")

    customer = Customer(
        email=email,
        password_hash=hash_password(password),
        name=(name or "").strip() or None,
        phone=phone,
        role=role,
        is_active=True,
    )
    db.session.add(customer)
    db.session.commit()
    return customer


def create_staff_member(
    *,
    email,
    role: str,
    created_by=None,
    name: str | None = None,
    phone: str | None = None,
    department: str | None = None,
    password: str | None = None,
    vehicle_type: str | None = None,
    license_number: str | None = None,
    max_delivery_radius_km=None,
    current_location: GeoPoint | None = None,
    notify: bool = True,
) -> tuple[StaffMember, str]:
    """
    Create a staff member.

    When no password is given one is generated. The plaintext password is
    returned to the caller and emailed to the new member (best effort); it is
    never stored.

    Returns:
        (staff_member, plaintext_password)
    """
    email = normalize_email(email)
    if role not in STAFF_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(STAFF_ROLES)}")
    if email_in_use(email):
        raise ConflictError("Email already exists")

    if vehicle_type is not None and vehicle_type not in VEHICLE_TYPES:
        raise ValidationError(f"Invalid vehicle type. Must be one of: {', '.join(VEHICLE_TYPES)}")

    radius = None
    if max_delivery_radius_km is not None:
        try:
            radius = float(max_delivery_radius_km)
        except (TypeError, ValueError):
            raise ValidationError("max_delivery_radius_km must be a number")
        if radius <= 0:
            raise ValidationError("max_delivery_radius_km must be positive")

    plaintext = password or generate_password()

    staff = StaffMember(
        email=email,
        password_hash=hash_password(plaintext),
        name=(name or "").strip() or None,
        phone=phone,
        role=role,
        department=department or "",
        is_active=True,
        is_first_login=True,
        created_by_id=created_by.id if created_by is not None else None,
    )

    if role == "delivery":
        staff.vehicle_type = vehicle_type or "bike"
        staff.license_number = license_number
        staff.is_available = True
        staff.max_delivery_radius_km = (
            radius if radius is not None
            else current_app.config.get("DEFAULT_MAX_DELIVERY_RADIUS_KM", 10.0)
        )
        if current_location is not None:
            staff.set_location(current_location)
            staff.location_updated_at = utcnow()

    db.session.add(staff)
    db.session.commit()

    if notify:
        notification_service.send_staff_welcome(staff, plaintext)

    return staff, plaintext


def authenticate(email, password, ip_address: str | None = None, user_agent: str | None = None) -> Principal:
    """
    Authenticate by email and password.

    Both outcomes are written to the security log. Updates last_login_at for staff.

    Raises InvalidCredentialsError on unknown email, wrong password or
    inactive account.
    """
    try:
        email = normalize_email(email)
    except ValidationError:
        raise InvalidCredentialsError()

    principal = db.session.query(Principal).filter(Principal.email == email).first()

    reason = None
    if principal is None:
        reason = "Unknown email"
    elif not verify_password(password, principal.password_hash):
        reason = "Wrong password"
    elif not principal.is_active:
        reason = "Account deactivated"

    if reason:
        log_security_event(
            principal_id=principal.id if principal else None,
            event_type="LOGIN_FAILED",
            success=False,
            action=email,
            reason=reason,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise InvalidCredentialsError()

    if isinstance(principal, StaffMember):
        principal.last_login_at = utcnow()

    log_security_event(
        principal_id=principal.id,
        event_type="LOGIN_SUCCEEDED",
        success=True,
        action=email,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return principal


def set_password(principal: Principal, new_password: str) -> None:
    """Replace a password without checking the old one. Does not commit."""
    principal.password_hash = hash_password(new_password)
    if isinstance(principal, StaffMember):
        principal.is_first_login = False


def change_password(principal: Principal, current_password, new_password) -> None:
    if not verify_password(current_password, principal.password_hash):
        raise ValidationError("Current password is incorrect")
    set_password(principal, new_password)
    db.session.commit()


def get_principal(principal_id: int) -> Principal | None:
    return db.session.get(Principal, principal_id)


def require_principal(principal_id: int) -> Principal:
    principal = get_principal(principal_id)
    if principal is None:
        raise NotFoundError("User not found")
    return principal


def list_staff(role: str | None = None) -> list[StaffMember]:
    query = db.session.query(StaffMember)
    if role:
        query = query.filter(StaffMember.role == role)
    return query.order_by(StaffMember.created_at.desc(), StaffMember.id.desc()).all()


def list_customers() -> list[Customer]:
    return (
        db.session.query(Customer)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .all()
    )


def update_staff_member(employee_id: int, data: dict) -> StaffMember:
    """
    Edit a staff member's name, email, role or department.

    A changed email must stay unique across customers and staff. Moving a
    member into the delivery role fills in the delivery defaults.

    Raises:
        NotFoundError: no staff member with this id
        ValidationError: bad email, role or blank name
        ConflictError: email already used by another principal
    """
    staff = db.session.get(StaffMember, employee_id)
    if staff is None:
        raise NotFoundError("Employee not found")

    if data.get("email") is not None:
        email = normalize_email(data["email"])
        if email != staff.email:
            taken = (
                db.session.query(Principal.id)
                .filter(Principal.email == email, Principal.id != staff.id)
                .first()
            )
            if taken is not None:
                raise ConflictError("Email already exists")
            staff.email = email

    if data.get("name") is not None:
        name = str(data["name"]).strip()
        if not name:
            raise ValidationError("Name cannot be blank")
        staff.name = name

    if data.get("role") is not None:
        role = data["role"]
        if role not in STAFF_ROLES:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(STAFF_ROLES)}")
        if role == "delivery" and staff.role != "delivery":
            staff.vehicle_type = staff.vehicle_type or "bike"
            staff.is_available = True
            staff.max_delivery_radius_km = (
                staff.max_delivery_radius_km
                or current_app.config.get("DEFAULT_MAX_DELIVERY_RADIUS_KM", 10.0)
            )
        staff.role = role

    if "department" in data:
        staff.department = data["department"] or ""

    db.session.commit()
    return staff


def update_profile(agent: StaffMember, name=None, phone=None) -> StaffMember:
    """Self-service profile edit; missing or blank fields keep their value."""
    if isinstance(name, str) and name.strip():
        agent.name = name.strip()
    if isinstance(phone, str) and phone.strip():
        agent.phone = phone.strip()
    db.session.commit()
    return agent


def principal_counts() -> dict:
    """Principal counts per role group."""
    rows = (
        db.session.query(Principal.role, db.func.count(Principal.id))
        .group_by(Principal.role)
        .all()
    )
    by_role = {role: count for role, count in rows}
    return {
        "total_users": by_role.get("user", 0),
        "total_admins": by_role.get("admin", 0),
        "total_sellers": by_role.get("seller", 0),
        "total_employees": sum(by_role.get(r, 0) for r in ("employee", "manager", "supervisor")),
        "total_delivery_agents": by_role.get("delivery", 0),
    }


def toggle_active(model, principal_id: int, actor=None) -> Principal:
    """
    Flip is_active on a customer or staff member.

    Admins cannot deactivate themselves.
    """
    principal = db.session.get(model, principal_id)
    if principal is None:
        raise NotFoundError("User not found" if model is Customer else "Employee not found")
    if actor is not None and principal.id == actor.id:
        raise ValidationError("You cannot change your own status")

    principal.is_active = not principal.is_active
    db.session.commit()
    return principal


def update_location(agent: StaffMember, point: GeoPoint) -> StaffMember:
    agent.set_location(point)
    agent.location_updated_at = utcnow()
    db.session.commit()
    return agent


def set_availability(agent: StaffMember, is_available: bool | None = None) -> StaffMember:
    """Set availability explicitly, or flip it when no value is given."""
    if is_available is None:
        is_available = not bool(agent.is_available)
    agent.is_available = bool(is_available)
    db.session.commit()
    return agent
