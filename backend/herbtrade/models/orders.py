from __future__ import annotations

from ..extensions import db
from ..services.geofence_service import GeoPoint
from .identity import geojson_point
from herbtrade.time_utils import to_utc_z


class Order(db.Model):
    """
    Customer order with two coupled lifecycles.

    status:          pending -> confirmed -> processing -> shipped|out_for_delivery -> delivered
                     (cancelled from pending/confirmed only)
    delivery_status: unassigned -> assigned -> picked_up -> out_for_delivery -> delivered|failed

    INVARIANT: delivery_assignee_id is set iff delivery_status != "unassigned".
    The shipping address is a snapshot taken at checkout, not a reference.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_date", "user_id", "order_date"),
        db.Index("ix_orders_assignee_status", "delivery_assignee_id", "delivery_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=False, index=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="pending", index=True)

    # Denormalized shipping address snapshot
    shipping_street = db.Column(db.String(255), nullable=True)
    shipping_city = db.Column(db.String(128), nullable=True)
    shipping_state = db.Column(db.String(128), nullable=True)
    shipping_zip_code = db.Column(db.String(32), nullable=True)
    shipping_country = db.Column(db.String(64), nullable=True)

    # Delivery point, exposed as [longitude, latitude]
    delivery_longitude = db.Column(db.Float, nullable=True)
    delivery_latitude = db.Column(db.Float, nullable=True)

    delivery_assignee_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=True)
    delivery_status = db.Column(db.String(32), nullable=False, default="unassigned", index=True)
    delivery_notes = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(16), nullable=False, default="cod")
    payment_status = db.Column(db.String(16), nullable=False, default="pending")

    order_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    tracking_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("Principal", foreign_keys=[user_id])
    delivery_assignee = db.relationship("StaffMember", foreign_keys=[delivery_assignee_id])
    items = db.relationship("OrderItem", backref=db.backref("order", lazy=True), lazy=True, order_by="OrderItem.id")
    delivery_events = db.relationship(
        "DeliveryEvent",
        backref=db.backref("order", lazy=True),
        lazy=True,
        order_by="DeliveryEvent.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def delivery_location(self) -> GeoPoint | None:
        return GeoPoint.from_optional(self.delivery_longitude, self.delivery_latitude)

    def shipping_address(self) -> dict:
        return {
            "street": self.shipping_street,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "zip_code": self.shipping_zip_code,
            "country": self.shipping_country,
        }

    def to_dict(self, include_events: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "total_amount": float(self.total_amount) if self.total_amount is not None else None,
            "status": self.status,
            "shipping_address": self.shipping_address(),
            "delivery_location": geojson_point(self.delivery_location),
            "delivery_assignee_id": self.delivery_assignee_id,
            "delivery_status": self.delivery_status,
            "delivery_notes": self.delivery_notes,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "order_date": to_utc_z(self.order_date),
            "delivery_date": to_utc_z(self.delivery_date),
            "tracking_number": self.tracking_number,
            "notes": self.notes,
            "version_id": self.version_id,
        }
        if include_events:
            data["delivery_events"] = [event.to_dict() for event in self.delivery_events]
        return data


class OrderItem(db.Model):
    """Line item; unit_price is the product price at order time."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
        }


class DeliveryEvent(db.Model):
    """
    Append-only delivery log.

    One row per delivery-status change. Rows are never updated or deleted;
    this table is the audit trail for dispatch.
    """
    __tablename__ = "delivery_events"
    __table_args__ = (
        db.Index("ix_delivery_events_order_created", "order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text, nullable=False, default="")
    actor_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "message": self.message,
            "actor_id": self.actor_id,
            "timestamp": to_utc_z(self.created_at),
        }
