# Overview: Flask API routes for delivery agents; assigned orders, claims, status updates, location.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import HerbTradeError
from ..models.identity import geojson_point
from ..services import assignment_service, delivery_service, identity_service
from ..services.geofence_service import parse_location_payload
from ..decorators import require_auth, require_capability


delivery_bp = Blueprint("delivery", __name__, url_prefix="/api/delivery")


@delivery_bp.get("/orders")
@require_auth
@require_capability("VIEW_ASSIGNED_DELIVERIES")
def assigned_orders_route():
    orders = delivery_service.list_assigned_orders(g.current_principal)
    return jsonify({"orders": [order.to_dict() for order in orders]}), 200


@delivery_bp.get("/orders/available")
@require_auth
@require_capability("VIEW_AVAILABLE_DELIVERIES")
def available_orders_route():
    orders = delivery_service.list_available_orders()
    return jsonify({"orders": [order.to_dict(include_events=False) for order in orders]}), 200


@delivery_bp.post("/orders/<int:order_id>/claim")
@require_auth
@require_capability("CLAIM_DELIVERY")
def claim_order_route(order_id: int):
    try:
        order = assignment_service.claim_order(order_id, g.current_principal)
        return jsonify({"message": "Order claimed successfully", "order": order.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to claim order")
        return jsonify({"error": "Internal server error"}), 500


@delivery_bp.put("/orders/<int:order_id>/status")
@require_auth
@require_capability("UPDATE_DELIVERY_STATUS")
def update_delivery_status_route(order_id: int):
    """
    Move an assigned order along its delivery lifecycle.

    Body: {"status": "picked_up" | "out_for_delivery" | "delivered" | "failed", "note": "..."}
    """
    try:
        data = request.get_json(silent=True) or {}
        status = data.get("status")
        if not status:
            return jsonify({"error": "status required"}), 400

        order = delivery_service.update_delivery_status(order_id, g.current_principal, status, note=data.get("note"))
        return jsonify({"message": "Delivery status updated", "order": order.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update delivery status")
        return jsonify({"error": "Internal server error"}), 500


@delivery_bp.put("/location")
@require_auth
@require_capability("UPDATE_AGENT_LOCATION")
def update_location_route():
    """Accepts {"coordinates": [lon, lat]} or {"latitude": .., "longitude": ..}."""
    try:
        data = request.get_json(silent=True) or {}
        point = parse_location_payload(data)
        agent = identity_service.update_location(g.current_principal, point)
        return jsonify({
            "message": "Location updated successfully",
            "location": geojson_point(agent.current_location),
        }), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update location")
        return jsonify({"error": "Internal server error"}), 500


@delivery_bp.put("/availability")
@require_auth
@require_capability("TOGGLE_AVAILABILITY")
def availability_route():
    """Flip availability, or set it with {"is_available": bool}."""
    try:
        data = request.get_json(silent=True) or {}
        value = data.get("is_available", data.get("isAvailable"))
        if value is not None and not isinstance(value, bool):
            return jsonify({"error": "is_available must be a boolean"}), 400

        agent = identity_service.set_availability(g.current_principal, value)
        state = "available" if agent.is_available else "unavailable"
        return jsonify({
            "message": f"You are now {state} for deliveries",
            "is_available": agent.is_available,
        }), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle availability")
        return jsonify({"error": "Internal server error"}), 500


@delivery_bp.get("/profile")
@require_auth
@require_capability("VIEW_ASSIGNED_DELIVERIES")
def profile_route():
    return jsonify({"profile": g.current_principal.to_dict()}), 200


@delivery_bp.put("/profile")
@require_auth
@require_capability("UPDATE_AGENT_PROFILE")
def update_profile_route():
    try:
        data = request.get_json(silent=True) or {}
        agent = identity_service.update_profile(g.current_principal, name=data.get("name"), phone=data.get("phone"))
        return jsonify({"message": "Profile updated successfully", "profile": agent.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update delivery profile")
        return jsonify({"error": "Internal server error"}), 500
