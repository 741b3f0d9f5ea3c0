# Overview: Flask API routes for customer orders; checkout, history, detail and cancellation.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import HerbTradeError
from ..services import order_service
from ..services.geofence_service import parse_location_payload
from ..decorators import require_auth, require_capability


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
@require_capability("PLACE_ORDER")
def create_order_route():
    """
    Place an order. Stock is reserved immediately.

    Body:
        items: [{"product_id": 1, "quantity": 2}, ...]
        shipping_address: {street, city, state, zip_code, country}
        delivery_location: {"coordinates": [lon, lat]} (optional)
        payment_method: "cod" | "online"
        notes: str
    """
    try:
        data = request.get_json(silent=True) or {}

        location = None
        raw_location = data.get("delivery_location", data.get("deliveryLocation"))
        if raw_location is not None:
            location = parse_location_payload(raw_location)

        order = order_service.create_order(
            g.current_principal,
            data.get("items"),
            shipping_address=data.get("shipping_address", data.get("shippingAddress")),
            delivery_location=location,
            payment_method=data.get("payment_method", data.get("paymentMethod")),
            notes=data.get("notes"),
        )
        return jsonify({"order": order.to_dict()}), 201

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/my-orders")
@require_auth
@require_capability("VIEW_OWN_ORDERS")
def my_orders_route():
    orders = order_service.list_orders_for_customer(g.current_principal)
    return jsonify({"orders": [order.to_dict() for order in orders]}), 200


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    """Visible to the owner, the assigned delivery agent and admins."""
    try:
        order = order_service.get_order_for(g.current_principal, order_id)
        return jsonify({"order": order.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to fetch order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:order_id>/cancel")
@require_auth
@require_capability("CANCEL_ORDER")
def cancel_order_route(order_id: int):
    try:
        order = order_service.cancel_order(order_id, g.current_principal)
        return jsonify({"message": "Order cancelled", "order": order.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500
