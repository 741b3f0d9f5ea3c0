# Overview: Request and capability decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import Principal
from .permissions import validate_capability_code
from .services import token_service, permission_service
from .services.token_service import NoTokenError, InvalidTokenError
from .services.permission_service import AccessDeniedError, PrincipalNotFoundError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_principal') and hasattr(g, 'token_claims')


def resolve_principal(claims) -> Principal:
    """
    Load the principal named by verified claims.

    SECURITY: the token's collection must match the principal's variant and
    the account must still be active. All three failures look the same.
    """
    principal = db.session.get(Principal, claims.id)
    if principal is None or principal.collection != claims.collection or not principal.is_active:
        raise PrincipalNotFoundError()
    return principal


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_principal: the Customer or StaffMember behind the token
    - g.token_claims: the verified TokenClaims

    SECURITY: Returns 401 if:
    - No Authorization header (or not a Bearer credential)
    - Malformed, tampered or expired token
    - Principal missing, deactivated, or in a different collection than the token says
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = token_service.extract_bearer_token(request.headers.get("Authorization"))
            claims = token_service.verify_token(token)
            principal = resolve_principal(claims)
        except (NoTokenError, InvalidTokenError, PrincipalNotFoundError) as e:
            return jsonify(e.to_dict()), e.status_code

        g.current_principal = principal
        g.token_claims = claims

        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability_code: str):
    """
    Require the caller's role to grant a capability.

    Denials are written to security_events as ACCESS_DENIED.
    Raises ValueError at import time for an undefined capability code.
    """
    if not validate_capability_code(capability_code):
        raise ValueError(f"Undefined capability: {capability_code}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": NoTokenError.default_message}), 401

            try:
                permission_service.require_capability(
                    g.current_principal,
                    capability_code,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except AccessDeniedError as e:
                return jsonify(e.to_dict()), e.status_code

            return f(*args, **kwargs)

        return decorated_function
    return decorator
