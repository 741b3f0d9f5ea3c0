from __future__ import annotations

from ..extensions import db
from ..services.geofence_service import GeoPoint
from herbtrade.time_utils import to_utc_z


CUSTOMER_ROLES = ("user", "admin")
STAFF_ROLES = ("seller", "employee", "manager", "supervisor", "delivery")
VEHICLE_TYPES = ("bike", "scooter", "car", "van")

# Token collection tags per principal variant
CUSTOMER_COLLECTION = "users"
STAFF_COLLECTION = "sellers"


def geojson_point(point: GeoPoint | None) -> dict | None:
    if point is None:
        return None
    return {"type": "Point", "coordinates": [point.longitude, point.latitude]}


class Principal(db.Model):
    """
    Any authenticated actor.

    One table holds both variants, tagged by `kind`:
    - customer: self-registered shoppers (and admins)
    - staff: sellers, employees, managers, supervisors, delivery agents

    Email is unique across both variants. The token's collection claim is
    derived from the variant and checked again when the token is resolved.
    """
    __tablename__ = "principals"
    __table_args__ = (
        db.Index("ix_principals_kind_role", "kind", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(16), nullable=False)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(32), nullable=False, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Weak back-reference to whoever created this principal; no cascade
    created_by_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    created_by = db.relationship("Principal", remote_side=[id], foreign_keys=[created_by_id])

    __mapper_args__ = {"polymorphic_on": kind, "polymorphic_identity": "principal"}

    collection = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "collection": self.collection,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "role": self.role,
            "is_active": self.is_active,
            "created_by_id": self.created_by_id,
            "created_at": to_utc_z(self.created_at),
        }


class Customer(Principal):
    """Shopper account (role user) or platform admin (role admin)."""
    __mapper_args__ = {"polymorphic_identity": "customer"}

    collection = CUSTOMER_COLLECTION


class StaffMember(Principal):
    """
    Internal-role principal.

    Delivery agents additionally carry a live location, a service radius and an
    availability flag; those columns stay unset for other staff roles.
    """
    __mapper_args__ = {"polymorphic_identity": "staff"}

    collection = STAFF_COLLECTION

    department = db.Column(db.String(128), nullable=True, default="")
    is_first_login = db.Column(db.Boolean, nullable=True, default=True)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Stored as two columns; exposed as [longitude, latitude]
    location_longitude = db.Column(db.Float, nullable=True)
    location_latitude = db.Column(db.Float, nullable=True)
    location_updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    max_delivery_radius_km = db.Column(db.Float, nullable=True, default=10.0)
    is_available = db.Column(db.Boolean, nullable=True, default=True)
    vehicle_type = db.Column(db.String(16), nullable=True, default="bike")
    license_number = db.Column(db.String(64), nullable=True)

    @property
    def current_location(self) -> GeoPoint | None:
        return GeoPoint.from_optional(self.location_longitude, self.location_latitude)

    def set_location(self, point: GeoPoint) -> None:
        self.location_longitude = point.longitude
        self.location_latitude = point.latitude

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "department": self.department,
            "is_first_login": self.is_first_login,
            "last_login_at": to_utc_z(self.last_login_at),
        })
        if self.role == "delivery":
            data.update({
                "current_location": geojson_point(self.current_location),
                "location_updated_at": to_utc_z(self.location_updated_at),
                "max_delivery_radius_km": self.max_delivery_radius_km,
                "is_available": self.is_available,
                "vehicle_type": self.vehicle_type,
                "license_number": self.license_number,
            })
        return data

