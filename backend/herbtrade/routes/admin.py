# Overview: Flask API routes for admin operations; staff, customers, orders and dispatch.

"""
Admin API routes

Staff onboarding, account status, password-reset tickets, order oversight and
delivery dispatch (nearest agents, auto and manual assignment).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import HerbTradeError
from ..models import Customer, StaffMember
from ..services import assignment_service, identity_service, order_service, reset_service
from ..services.geofence_service import parse_location_payload
from ..services.reset_service import PURPOSE_ADMIN_RESET
from ..decorators import require_auth, require_capability


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _first(data: dict, *keys):
    """First non-None value among snake_case and legacy camelCase keys."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


# -- STAFF --

@admin_bp.post("/add-employee")
@require_auth
@require_capability("MANAGE_STAFF")
def add_employee_route():
    """
    Create a staff member with a generated password.

    The password is emailed to the new member and not returned here.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        role = data.get("role")

        if not all([email, role]):
            return jsonify({"error": "email and role required"}), 400

        staff, _ = identity_service.create_staff_member(
            email=email,
            role=role,
            created_by=g.current_principal,
            name=data.get("name"),
            phone=data.get("phone"),
            department=data.get("department"),
            vehicle_type=_first(data, "vehicle_type", "vehicleType"),
            license_number=_first(data, "license_number", "licenseNumber"),
            max_delivery_radius_km=_first(data, "max_delivery_radius_km", "maxDeliveryRadius"),
        )
        return jsonify({"message": "Employee created successfully", "employee": staff.to_dict()}), 201

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/add-delivery")
@require_auth
@require_capability("MANAGE_STAFF")
def add_delivery_route():
    """Create a delivery agent (staff member with role delivery)."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        if not email:
            return jsonify({"error": "email required"}), 400

        location = None
        raw_location = _first(data, "current_location", "currentLocation")
        if raw_location is not None:
            location = parse_location_payload(raw_location)
        elif data.get("latitude") is not None or data.get("longitude") is not None:
            location = parse_location_payload(data)

        agent, _ = identity_service.create_staff_member(
            email=email,
            role="delivery",
            created_by=g.current_principal,
            name=data.get("name"),
            phone=data.get("phone"),
            department=data.get("department") or "Delivery",
            vehicle_type=_first(data, "vehicle_type", "vehicleType"),
            license_number=_first(data, "license_number", "licenseNumber"),
            max_delivery_radius_km=_first(data, "max_delivery_radius_km", "maxDeliveryRadius"),
            current_location=location,
        )
        return jsonify({"message": "Delivery agent created successfully", "employee": agent.to_dict()}), 201

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create delivery agent")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/employees")
@require_auth
@require_capability("MANAGE_STAFF")
def list_employees_route():
    role = request.args.get("role")
    staff = identity_service.list_staff(role=role)
    return jsonify({"employees": [member.to_dict() for member in staff]}), 200


@admin_bp.put("/employees/<int:employee_id>/toggle-status")
@require_auth
@require_capability("MANAGE_STAFF")
def toggle_employee_status_route(employee_id: int):
    try:
        staff = identity_service.toggle_active(StaffMember, employee_id, actor=g.current_principal)
        state = "activated" if staff.is_active else "deactivated"
        return jsonify({"message": f"Employee {state} successfully", "employee": staff.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle employee status")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.put("/employees/<int:employee_id>")
@require_auth
@require_capability("MANAGE_STAFF")
def update_employee_route(employee_id: int):
    """Edit name, email, role or department; email stays unique across all principals."""
    try:
        data = request.get_json(silent=True) or {}
        staff = identity_service.update_staff_member(employee_id, data)
        return jsonify({"message": "Employee updated successfully", "employee": staff.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"error": "Internal server error"}), 500


# -- STATS --

@admin_bp.get("/stats")
@require_auth
@require_capability("VIEW_PLATFORM_STATS")
def stats_route():
    try:
        stats = identity_service.principal_counts()
        stats.update(order_service.order_stats())
        return jsonify({"stats": stats}), 200

    except Exception:
        current_app.logger.exception("Failed to compute stats")
        return jsonify({"error": "Internal server error"}), 500


# -- CUSTOMERS --

@admin_bp.get("/users")
@require_auth
@require_capability("MANAGE_CUSTOMERS")
def list_users_route():
    customers = identity_service.list_customers()
    return jsonify({"users": [customer.to_dict() for customer in customers]}), 200


@admin_bp.put("/users/<int:user_id>/toggle-status")
@require_auth
@require_capability("MANAGE_CUSTOMERS")
def toggle_user_status_route(user_id: int):
    try:
        customer = identity_service.toggle_active(Customer, user_id, actor=g.current_principal)
        state = "activated" if customer.is_active else "deactivated"
        return jsonify({"message": f"User {state} successfully", "user": customer.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle user status")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/principals/<int:principal_id>/password-reset")
@require_auth
@require_capability("ISSUE_PASSWORD_RESET")
def issue_password_reset_route(principal_id: int):
    """
    Issue an admin reset ticket.

    The plaintext token is returned once so the admin can hand it over; only
    its hash is stored.
    """
    try:
        principal = identity_service.require_principal(principal_id)
        ticket, token = reset_service.issue_ticket(principal, PURPOSE_ADMIN_RESET, issued_by=g.current_principal)
        return jsonify({"ticket": ticket.to_dict(), "token": token}), 201

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to issue password reset")
        return jsonify({"error": "Internal server error"}), 500


# -- ORDERS --

@admin_bp.get("/orders")
@require_auth
@require_capability("VIEW_ALL_ORDERS")
def list_orders_route():
    try:
        orders = order_service.list_all_orders(
            status=request.args.get("status"),
            delivery_status=request.args.get("delivery_status") or request.args.get("deliveryStatus"),
        )
        return jsonify({"orders": [order.to_dict(include_events=False) for order in orders]}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/orders/<int:order_id>/status")
@require_auth
@require_capability("UPDATE_ORDER_STATUS")
def update_order_status_route(order_id: int):
    try:
        data = request.get_json(silent=True) or {}
        status = data.get("status")
        if not status:
            return jsonify({"error": "status required"}), 400

        order = order_service.update_order_status(
            order_id,
            status,
            actor=g.current_principal,
            tracking_number=_first(data, "tracking_number", "trackingNumber"),
        )
        return jsonify({"order": order.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


# -- DISPATCH --

@admin_bp.get("/orders/<int:order_id>/nearest-deliveries")
@require_auth
@require_capability("VIEW_NEAREST_AGENTS")
def nearest_deliveries_route(order_id: int):
    """Delivery agents whose service radius covers the order, nearest first."""
    try:
        order, matches = assignment_service.nearest_agents_for_order(order_id)
        return jsonify({
            "order_id": order.id,
            "delivery_location": order.delivery_location.to_coordinates(),
            "agents": [match.to_dict() for match in matches],
        }), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to find nearest delivery agents")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/orders/<int:order_id>/auto-assign-delivery")
@require_auth
@require_capability("ASSIGN_DELIVERY")
def auto_assign_route(order_id: int):
    try:
        order, match = assignment_service.auto_assign(order_id, actor=g.current_principal)
        return jsonify({
            "message": "Delivery agent assigned successfully",
            "order": order.to_dict(),
            "agent": match.agent.to_dict(),
            "distance_km": round(match.distance_km, 3),
        }), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to auto-assign delivery")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/orders/<int:order_id>/assign-delivery")
@require_auth
@require_capability("ASSIGN_DELIVERY")
def assign_delivery_route(order_id: int):
    try:
        data = request.get_json(silent=True) or {}
        agent_id = _first(data, "agent_id", "agentId")
        if agent_id is None:
            return jsonify({"error": "agent_id required"}), 400

        order, distance_km = assignment_service.manual_assign(order_id, agent_id, actor=g.current_principal)
        return jsonify({
            "message": "Delivery agent assigned successfully",
            "order": order.to_dict(),
            "distance_km": round(distance_km, 3) if distance_km is not None else None,
        }), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to assign delivery")
        return jsonify({"error": "Internal server error"}), 500
