# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Customers self-register; staff accounts come from /api/admin
- Login issues a signed bearer token carrying the principal's collection
- Every login outcome is written to security_events
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import HerbTradeError
from ..services import identity_service, permission_service, reset_service, token_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """Create a customer account (role user)."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        customer = identity_service.register_customer(
            email=email,
            password=password,
            name=data.get("name"),
            phone=data.get("phone"),
        )
        return jsonify({"message": "User registered", "user": customer.to_dict()}), 201

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email and password and issue a bearer token.

    The token must be sent as `Authorization: Bearer <token>` on protected routes.
    Staff receive `is_first_login` in the user payload so clients can force a
    password change.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        principal = identity_service.authenticate(
            email,
            password,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        token = token_service.issue_token(principal, principal.collection)

        return jsonify({
            "message": "Login successful",
            "token": token,
            "user": principal.to_dict(),
        }), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    principal = g.current_principal
    return jsonify({
        "user": principal.to_dict(),
        "capabilities": sorted(permission_service.capabilities_for(principal)),
    }), 200


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """Change own password; clears the staff first-login flag."""
    try:
        data = request.get_json(silent=True) or {}
        current_password = data.get("current_password") or data.get("currentPassword")
        new_password = data.get("new_password") or data.get("newPassword")

        if not all([current_password, new_password]):
            return jsonify({"error": "current_password and new_password required"}), 400

        identity_service.change_password(g.current_principal, current_password, new_password)
        return jsonify({"message": "Password updated"}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/forgot-password")
def forgot_password_route():
    """Email a single-use reset link."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        if not email:
            return jsonify({"error": "email required"}), 400

        reset_service.request_reset_link(email)
        return jsonify({"message": "A reset link has been sent to your email."}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to issue password reset link")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/reset-password")
def reset_password_route():
    try:
        data = request.get_json(silent=True) or {}
        token = data.get("token")
        new_password = data.get("new_password") or data.get("newPassword")

        if not all([token, new_password]):
            return jsonify({"error": "token and new_password required"}), 400

        reset_service.consume_ticket(token, new_password)
        return jsonify({"message": "Password has been reset"}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reset password")
        return jsonify({"error": "Internal server error"}), 500
