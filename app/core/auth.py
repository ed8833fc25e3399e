"""
Authentication and JWT token management module.

Follows Layer 1 rules:
- Sign tokens with strong, private signing keys from environment variables
- NEVER hardcode secrets or keys in the repository
- Claims carry the credential id, email and the active tenant (if any);
  role is never taken from the token, it is read from the tenant profile
- Only accept tokens via secure headers (Authorization: Bearer <token>)
"""
from __future__ import annotations
import datetime
from typing import Optional
import jwt
from fastapi import Request
from pydantic import BaseModel
from core.config import settings
from core.errors import http_error, ErrorCode


class Authed(BaseModel):
    """Authenticated credential context."""
    user_id: str
    email: str
    tenant_slug: Optional[str] = None


def sign_jwt(user_id: str, email: str, tenant_slug: Optional[str]) -> str:
    """
    Sign a JWT token for an authenticated credential.

    Args:
        user_id: Credential identifier
        email: Credential email
        tenant_slug: Active tenant, None while the credential is unplaced

    Returns:
        Encoded JWT token string
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "tenant": tenant_slug,
        "iat": now,
        "exp": now + datetime.timedelta(minutes=settings.JWT_EXP_MIN),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def _bearer(req: Request) -> Optional[str]:
    auth = req.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1].strip()


def _decode(token: str) -> Authed:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        raise http_error(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            message="Token has expired",
        )
    except jwt.InvalidTokenError:
        raise http_error(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            message="Invalid or expired token",
        )

    return Authed(
        user_id=str(payload.get("sub", "")),
        email=str(payload.get("email", "")),
        tenant_slug=payload.get("tenant") or None,
    )


def auth_required(req: Request) -> Authed:
    """
    FastAPI dependency that validates JWT token from Authorization header.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = _bearer(req)
    if not token:
        raise http_error(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            message="Missing bearer token",
        )
    return _decode(token)


def auth_optional(req: Request) -> Optional[Authed]:
    """Like auth_required, but an absent token means 'not authenticated'."""
    token = _bearer(req)
    return _decode(token) if token else None
