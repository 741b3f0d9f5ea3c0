# Overview: Service-layer operations for delivery dispatch; nearest-agent lookup and auto/manual/self assignment.

"""
Delivery Assignment Service

Three ways an order gets an agent:
- auto_assign:   admin asks the system to pick the nearest in-range agent
- manual_assign: admin names the agent; radius is not enforced
- claim_order:   a delivery agent takes an unassigned order

All three end in the same transition (assign_order):
1. Conditional UPDATE ... WHERE delivery_assignee_id IS NULL
   (0 rows -> AlreadyAssignedError; the loser never overwrites the winner)
2. delivery_status -> assigned, order status pending -> confirmed
3. One "assigned" delivery event
4. Commit, then email the agent (best effort)
"""

from __future__ import annotations

from flask import current_app

from ..errors import HerbTradeError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, StaffMember
from . import notification_service
from .concurrency import compare_and_set, run_with_retry
from .delivery_service import append_event
from .geofence_service import AgentMatch, find_nearest_agents, haversine_km
from .order_lifecycle import coupled_order_status


class AlreadyAssignedError(HerbTradeError):
    default_message = "Order is already assigned to a delivery agent"


class NoAgentInRangeError(HerbTradeError):
    status_code = 404
    default_message = "No delivery agents available within range"


class InvalidAgentError(HerbTradeError):
    default_message = "Invalid delivery agent"


UNASSIGNABLE_STATUSES = {"cancelled", "delivered"}


def _get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _ensure_assignable(order: Order) -> None:
    if order.delivery_assignee_id is not None:
        raise AlreadyAssignedError()
    if order.status in UNASSIGNABLE_STATUSES:
        raise ValidationError(f"Cannot assign delivery for a {order.status} order")


def delivery_agents() -> list[StaffMember]:
    """Active, available delivery agents; location filtering happens in the geofence."""
    return (
        db.session.query(StaffMember)
        .filter(
            StaffMember.role == "delivery",
            StaffMember.is_active.is_(True),
            StaffMember.is_available.is_(True),
        )
        .order_by(StaffMember.id)
        .all()
    )


def nearest_agents_for_order(order_id: int) -> tuple[Order, list[AgentMatch]]:
    """
    Rank agents whose service radius covers the order's delivery point.

    Raises NotFoundError or MissingDeliveryLocationError.
    """
    order = _get_order(order_id)
    matches = find_nearest_agents(order.delivery_location, delivery_agents())
    return order, matches


def assign_order(order_id: int, agent: StaffMember, message: str, actor=None, distance_km: float | None = None) -> Order:
    """
    Assign an agent to an unassigned order.

    Raises AlreadyAssignedError when another writer got there first.
    """
    def _op():
        order = _get_order(order_id)
        _ensure_assignable(order)

        won = compare_and_set(
            Order,
            order.id,
            expected={"delivery_assignee_id": None},
            values={"delivery_assignee_id": agent.id, "delivery_status": "assigned"},
        )
        if not won:
            db.session.rollback()
            raise AlreadyAssignedError()

        db.session.refresh(order)
        order.status = coupled_order_status(order.status, "assigned")
        append_event(order, "assigned", message, actor=actor)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s assigned to delivery agent %s (distance_km=%s)", order.id, agent.id, distance_km
    )
    notification_service.send_assignment_notice(agent, order, distance_km)
    return order


def auto_assign(order_id: int, actor=None) -> tuple[Order, AgentMatch]:
    """
    Assign the nearest in-range agent.

    The already-assigned check runs before any search. With no agent in range
    the order is left untouched and NoAgentInRangeError is raised.
    """
    order = _get_order(order_id)
    _ensure_assignable(order)

    matches = find_nearest_agents(order.delivery_location, delivery_agents())
    if not matches:
        raise NoAgentInRangeError()

    best = matches[0]
    agent = best.agent
    message = f"Auto-assigned to {agent.name or agent.email} ({best.distance_km:.2f} km away)"
    order = assign_order(order_id, agent, message, actor=actor, distance_km=best.distance_km)
    return order, best


def manual_assign(order_id: int, agent_id, actor=None) -> tuple[Order, float | None]:
    """
    Assign a named delivery agent.

    The agent must exist with role delivery. Distance is recorded in the event
    when both points are known, but the service radius is not enforced.
    """
    order = _get_order(order_id)
    _ensure_assignable(order)

    if isinstance(agent_id, str) and agent_id.strip().isdigit():
        agent_id = int(agent_id.strip())
    if isinstance(agent_id, bool) or not isinstance(agent_id, int):
        raise InvalidAgentError("Invalid delivery agent ID")

    agent = db.session.get(StaffMember, agent_id)
    if agent is None or agent.role != "delivery":
        raise InvalidAgentError("Invalid delivery agent ID")
    if not agent.is_active:
        raise InvalidAgentError("Delivery agent is not active")

    distance_km = None
    if order.delivery_location is not None and agent.current_location is not None:
        distance_km = haversine_km(order.delivery_location, agent.current_location)

    message = f"Assigned to {agent.name or agent.email} by admin"
    if distance_km is not None:
        message += f" ({distance_km:.2f} km away)"

    order = assign_order(order_id, agent, message, actor=actor, distance_km=distance_km)
    return order, distance_km


def claim_order(order_id: int, agent: StaffMember) -> Order:
    """Self-assignment by a delivery agent."""
    order = _get_order(order_id)
    _ensure_assignable(order)
    return assign_order(order_id, agent, f"Claimed by {agent.name or agent.email}", actor=agent)
