# Overview: Service-layer operations for agent-driven delivery updates and the delivery event log.

"""
Delivery Service

The assigned agent moves an order through pickup and drop-off. Each accepted
change writes the new delivery_status, the coupled order status and exactly
one DeliveryEvent in a single commit.

Writes go through the Order version_id lock; a concurrent writer causes a
StaleDataError which run_with_retry replays against fresh state.
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, DeliveryEvent, StaffMember
from .concurrency import run_with_retry
from .order_lifecycle import (
    InvalidDeliveryTransitionError,
    validate_delivery_transition,
    coupled_order_status,
)
from herbtrade.time_utils import utcnow


def append_event(order: Order, status: str, message: str = "", actor=None) -> DeliveryEvent:
    """Add one delivery event to the session. Does not commit."""
    event = DeliveryEvent(
        order_id=order.id,
        status=status,
        message=message or "",
        actor_id=actor.id if actor is not None else None,
        created_at=utcnow(),
    )
    db.session.add(event)
    order.delivery_events.append(event)
    return event


def list_assigned_orders(agent: StaffMember) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.delivery_assignee_id == agent.id)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )


def list_available_orders() -> list[Order]:
    """Unassigned orders that can still be delivered."""
    return (
        db.session.query(Order)
        .filter(
            Order.delivery_assignee_id.is_(None),
            Order.status.notin_(("cancelled", "delivered")),
        )
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )


def update_delivery_status(order_id: int, agent: StaffMember, new_status, note: str | None = None) -> Order:
    """
    Apply an agent-driven delivery transition.

    Raises:
        ValidationError: status missing
        NotFoundError: order missing or not assigned to this agent
        InvalidDeliveryTransitionError: move not allowed from the current state
    """
    if not isinstance(new_status, str) or not new_status:
        raise ValidationError("Delivery status is required")

    def _op():
        order = db.session.get(Order, order_id)
        if order is None or order.delivery_assignee_id != agent.id:
            raise NotFoundError("Order not found or not assigned to you")

        if order.status == "cancelled":
            raise InvalidDeliveryTransitionError("Order has been cancelled")
        if order.status == "delivered":
            raise InvalidDeliveryTransitionError("Order has already been delivered")
        validate_delivery_transition(order.delivery_status, new_status)

        order.delivery_status = new_status
        order.status = coupled_order_status(order.status, new_status)
        if new_status == "delivered":
            order.delivery_date = utcnow()
        if note:
            order.delivery_notes = note

        append_event(order, new_status, note or "", actor=agent)
        db.session.commit()
        return order

    return run_with_retry(_op)
