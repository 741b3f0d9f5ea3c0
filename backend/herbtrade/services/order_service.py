# Overview: Service-layer operations for orders; checkout, cancellation, admin status changes and queries.

"""
Order Service

Stock is reserved when the order is created and given back when it is
cancelled. Both directions write Product.in_stock under the version_id lock
inside run_with_retry, so concurrent checkouts cannot oversell.
"""

from __future__ import annotations

from decimal import Decimal

from ..errors import HerbTradeError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, OrderItem, Product
from .concurrency import lock_for_update, run_with_retry
from .geofence_service import GeoPoint
from .order_lifecycle import (
    ORDER_STATUSES,
    DELIVERY_STATUSES,
    PAYMENT_METHODS,
    InvalidStateForCancellationError,
    is_cancellable,
)
from .permission_service import AccessDeniedError
from herbtrade.time_utils import utcnow


SHIPPING_FIELDS = ("street", "city", "state", "zip_code", "country")


class InsufficientStockError(HerbTradeError):
    default_message = "Insufficient stock"


def _parse_quantity(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("Quantity must be a positive integer")
    return value


def _parse_items(items) -> list[tuple[int, int]]:
    """Normalize request items to [(product_id, quantity)], keeping request order."""
    if not isinstance(items, list) or not items:
        raise ValidationError("Order must contain at least one item")

    parsed = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        product_id = raw.get("product_id", raw.get("product"))
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError("Each item needs a product_id")
        parsed.append((product_id, _parse_quantity(raw.get("quantity"))))
    return parsed


def _shipping_columns(shipping_address) -> dict:
    if shipping_address is None:
        return {}
    if not isinstance(shipping_address, dict):
        raise ValidationError("shipping_address must be an object")
    # Accept the camelCase key used by older clients
    if "zipCode" in shipping_address and "zip_code" not in shipping_address:
        shipping_address = dict(shipping_address, zip_code=shipping_address["zipCode"])
    return {f"shipping_{field}": shipping_address.get(field) for field in SHIPPING_FIELDS}


def create_order(
    customer,
    items,
    shipping_address=None,
    delivery_location: GeoPoint | None = None,
    payment_method: str | None = None,
    notes: str | None = None,
) -> Order:
    """
    Create an order and reserve stock.

    Prices are taken from the catalog at order time. Repeated lines for one
    product are checked against stock as a combined quantity.

    Raises:
        ValidationError: empty/malformed items, unknown product, bad payment method
        InsufficientStockError: a product has less stock than requested
    """
    lines = _parse_items(items)
    payment_method = payment_method or "cod"
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Invalid payment method. Must be one of: {', '.join(PAYMENT_METHODS)}")
    shipping = _shipping_columns(shipping_address)

    def _op():
        requested: dict[int, int] = {}
        for product_id, quantity in lines:
            requested[product_id] = requested.get(product_id, 0) + quantity

        products = {}
        for product_id in sorted(requested):
            product = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
            if product is None:
                raise ValidationError(f"Product {product_id} not found")
            if product.in_stock < requested[product_id]:
                raise InsufficientStockError(f"Insufficient stock for {product.name}")
            products[product_id] = product

        total = Decimal("0")
        order = Order(
            user_id=customer.id,
            status="pending",
            delivery_status="unassigned",
            payment_method=payment_method,
            payment_status="pending",
            notes=notes,
            order_date=utcnow(),
            **shipping,
        )
        if delivery_location is not None:
            order.delivery_longitude = delivery_location.longitude
            order.delivery_latitude = delivery_location.latitude

        for product_id, quantity in lines:
            product = products[product_id]
            unit_price = Decimal(product.price)
            total += unit_price * quantity
            order.items.append(OrderItem(product_id=product_id, quantity=quantity, unit_price=unit_price))

        for product_id, quantity in requested.items():
            products[product_id].in_stock -= quantity

        order.total_amount = total
        db.session.add(order)
        db.session.commit()
        return order

    try:
        return run_with_retry(_op)
    except HerbTradeError:
        db.session.rollback()
        raise


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_order_for(principal, order_id: int) -> Order:
    """Order detail for its owner, its assigned agent, or an admin."""
    order = get_order(order_id)
    if principal.role == "admin":
        return order
    if order.user_id == principal.id or order.delivery_assignee_id == principal.id:
        return order
    raise AccessDeniedError()


def list_orders_for_customer(customer) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.user_id == customer.id)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )


def list_all_orders(status: str | None = None, delivery_status: str | None = None) -> list[Order]:
    query = db.session.query(Order)
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError("Invalid status filter")
        query = query.filter(Order.status == status)
    if delivery_status:
        if delivery_status not in DELIVERY_STATUSES:
            raise ValidationError("Invalid delivery status filter")
        query = query.filter(Order.delivery_status == delivery_status)
    return query.order_by(Order.order_date.desc(), Order.id.desc()).all()


def order_stats() -> dict:
    """Order volume and revenue; cancelled orders are excluded from revenue."""
    midnight = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

    total_orders = db.session.query(db.func.count(Order.id)).scalar() or 0
    orders_today = (
        db.session.query(db.func.count(Order.id))
        .filter(Order.order_date >= midnight)
        .scalar()
    ) or 0
    revenue = (
        db.session.query(db.func.coalesce(db.func.sum(Order.total_amount), 0))
        .filter(Order.status != "cancelled")
        .scalar()
    )
    return {
        "total_orders": total_orders,
        "orders_today": orders_today,
        "total_revenue": float(Decimal(str(revenue)).quantize(Decimal("0.01"))),
    }


def cancel_order(order_id: int, actor) -> Order:
    """
    Cancel a pending or confirmed order and give its stock back.

    Only the owner (or an admin) may cancel.
    """
    def _op():
        order = get_order(order_id)
        if order.user_id != actor.id and actor.role != "admin":
            raise AccessDeniedError()
        if not is_cancellable(order.status):
            raise InvalidStateForCancellationError("Cannot cancel order in current status")

        for item in order.items:
            product = lock_for_update(db.session.query(Product).filter(Product.id == item.product_id)).first()
            if product is not None:
                product.in_stock += item.quantity

        order.status = "cancelled"
        db.session.commit()
        return order

    try:
        return run_with_retry(_op)
    except HerbTradeError:
        db.session.rollback()
        raise


def update_order_status(order_id: int, status, actor, tracking_number: str | None = None) -> Order:
    """
    Admin override of the order status.

    delivered stamps delivery_date; cancelled goes through cancel_order so the
    same state rule and stock restoration apply.
    """
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid status")

    if status == "cancelled":
        order = cancel_order(order_id, actor)
        if tracking_number:
            order.tracking_number = tracking_number
            db.session.commit()
        return order

    def _op():
        order = get_order(order_id)
        order.status = status
        if tracking_number:
            order.tracking_number = tracking_number
        if status == "delivered":
            order.delivery_date = utcnow()
        db.session.commit()
        return order

    return run_with_retry(_op)
