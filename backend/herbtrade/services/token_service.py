# Overview: Service-layer operations for auth tokens; issues and verifies signed bearer tokens.

"""
Auth Token Service

Tokens are stateless: a signed payload of {id, role, collection, exp}.
Nothing is stored server-side, so a token stays valid until it expires even if
the principal's role or status changes later. The auth gate re-loads the
principal on every request and rejects inactive or missing accounts.

SECURITY NOTES:
- Signed with SECRET_KEY via itsdangerous (HMAC-SHA1 over a URL-safe payload)
- Expiry is an absolute `exp` claim (epoch seconds); now >= exp is expired
- Every verification failure is the same InvalidTokenError so clients cannot
  tell an expired token from a tampered one
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta, timezone

from flask import current_app
from itsdangerous import BadSignature, URLSafeSerializer

from ..errors import HerbTradeError
from herbtrade.time_utils import utcnow


TOKEN_SALT = "herbtrade.auth-token"
VALID_COLLECTIONS = {"users", "sellers"}


class NoTokenError(HerbTradeError):
    status_code = 401
    default_message = "No token, authorization denied"


class InvalidTokenError(HerbTradeError):
    status_code = 401
    default_message = "Token is not valid"


@dataclass(frozen=True)
class TokenClaims:
    id: int
    role: str
    collection: str


def session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TOKEN_TTL_HOURS", 24))


def _serializer(secret_key: str | None = None) -> URLSafeSerializer:
    key = secret_key or current_app.config["SECRET_KEY"]
    return URLSafeSerializer(key, salt=TOKEN_SALT)


def _epoch_seconds(dt) -> int:
    # utcnow() is naive UTC; timestamp() would read it as local time
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def issue_token(principal, collection: str, ttl: timedelta | None = None, *, secret_key: str | None = None) -> str:
    """
    Issue a signed token for a principal.

    Args:
        principal: Any object with `id` and `role`
        collection: "users" (customers) or "sellers" (staff)
        ttl: Lifetime; defaults to the configured session TTL

    Returns:
        URL-safe token string for the Authorization header
    """
    if collection not in VALID_COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    if ttl is None:
        ttl = session_ttl()

    payload = {
        "id": principal.id,
        "role": principal.role,
        "collection": collection,
        "exp": _epoch_seconds(utcnow() + ttl),
    }
    return _serializer(secret_key).dumps(payload)


def verify_token(token: str | None, *, secret_key: str | None = None) -> TokenClaims:
    """
    Verify a token and return its claims.

    Raises:
        NoTokenError: token missing or blank
        InvalidTokenError: malformed, bad signature, bad claims, or expired
    """
    if token is None or not str(token).strip():
        raise NoTokenError()

    try:
        payload = _serializer(secret_key).loads(str(token).strip())
    except BadSignature:
        raise InvalidTokenError()

    if not isinstance(payload, dict):
        raise InvalidTokenError()

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int):
        raise InvalidTokenError()
    if _epoch_seconds(utcnow()) >= exp:
        raise InvalidTokenError()

    principal_id = payload.get("id")
    role = payload.get("role")
    collection = payload.get("collection")
    if isinstance(principal_id, bool) or not isinstance(principal_id, int):
        raise InvalidTokenError()
    if not isinstance(role, str) or not role:
        raise InvalidTokenError()
    if collection not in VALID_COLLECTIONS:
        raise InvalidTokenError()

    return TokenClaims(id=principal_id, role=role, collection=collection)


def extract_bearer_token(auth_header: str | None) -> str:
    """
    Pull the token out of an Authorization header.

    Raises NoTokenError when the header is absent or not a Bearer credential.
    """
    if not auth_header or not auth_header.startswith("Bearer "):
        raise NoTokenError()
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise NoTokenError()
    return token
