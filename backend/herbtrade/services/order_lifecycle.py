# Overview: Order and delivery state machine tables; pure, no database access.

"""
Order / Delivery Lifecycle

================================================================================
Two coupled state machines on one order
================================================================================

ORDER STATUS:
    pending -> confirmed -> processing -> shipped | out_for_delivery -> delivered
    cancelled is reachable from pending and confirmed only

DELIVERY STATUS (driven by the assigned agent after dispatch):
    unassigned -> assigned -> picked_up -> out_for_delivery -> delivered | failed
    assigned | picked_up -> failed
    failed -> picked_up | out_for_delivery        (re-dispatch)

COUPLING (delivery status forces order status):
    assigned          -> confirmed   (only from pending)
    picked_up         -> processing
    out_for_delivery  -> shipped
    delivered         -> delivered   (+ delivery_date)
    failed            -> processing

RULES:
1. assigned is entered only through assignment, never by an agent update
2. delivered is terminal for both machines; an order delivered by admin
   override accepts no further agent updates
3. Every delivery-status change appends exactly one delivery event
================================================================================
"""

from __future__ import annotations

from ..errors import HerbTradeError


ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "out_for_delivery",
    "delivered",
    "cancelled",
)

DELIVERY_STATUSES = (
    "unassigned",
    "assigned",
    "picked_up",
    "out_for_delivery",
    "delivered",
    "failed",
)

CANCELLABLE_STATUSES = {"pending", "confirmed"}

# Agent-driven moves; assignment itself is handled by the assignment service
DELIVERY_TRANSITIONS = {
    "assigned": {"picked_up", "failed"},
    "picked_up": {"out_for_delivery", "failed"},
    "out_for_delivery": {"delivered", "failed"},
    "failed": {"picked_up", "out_for_delivery"},
    "delivered": set(),
    "unassigned": set(),
}

# delivery_status -> order status it forces
ORDER_STATUS_FOR_DELIVERY = {
    "picked_up": "processing",
    "out_for_delivery": "shipped",
    "delivered": "delivered",
    "failed": "processing",
}

PAYMENT_METHODS = ("cod", "online")


class InvalidDeliveryTransitionError(HerbTradeError):
    default_message = "Invalid delivery status transition"


class InvalidStateForCancellationError(HerbTradeError):
    default_message = "Order cannot be cancelled at this stage"


def can_transition_delivery(from_status: str, to_status: str) -> bool:
    return to_status in DELIVERY_TRANSITIONS.get(from_status, set())


def validate_delivery_transition(from_status: str, to_status: str) -> None:
    if to_status not in DELIVERY_STATUSES:
        raise InvalidDeliveryTransitionError(
            f"Invalid delivery status '{to_status}'. Must be one of: {', '.join(DELIVERY_STATUSES)}"
        )
    if not can_transition_delivery(from_status, to_status):
        raise InvalidDeliveryTransitionError(
            f"Cannot move delivery from '{from_status}' to '{to_status}'"
        )


def coupled_order_status(current_status: str, delivery_status: str) -> str:
    """Order status implied by a delivery status change."""
    if delivery_status == "assigned":
        return "confirmed" if current_status == "pending" else current_status
    return ORDER_STATUS_FOR_DELIVERY.get(delivery_status, current_status)


def is_cancellable(status: str) -> bool:
    return status in CANCELLABLE_STATUSES
