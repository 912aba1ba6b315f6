"""Authentication and tenant dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.jwt import get_jwt_service
from app.tenant import TenantContext, resolve_tenant


@dataclass
class CurrentUser:
    """Authenticated user context."""

    user_id: int
    email: str


def get_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def user_from_token(token: str | None) -> CurrentUser | None:
    """Decode an access token, return None if missing or invalid."""
    if not token:
        return None

    payload = get_jwt_service().decode_token(token)
    if not payload:
        return None

    try:
        return CurrentUser(user_id=int(payload["sub"]), email=payload.get("email", ""))
    except (KeyError, TypeError, ValueError):
        return None


def get_current_user(request: Request) -> CurrentUser:
    """Extract and validate user from the Bearer token. Raises 401 if invalid."""
    token = get_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})

    user = user_from_token(token)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token", headers={"WWW-Authenticate": "Bearer"})
    return user


def get_tenant(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TenantContext:
    """Resolve the caller's company and role once per request."""
    return resolve_tenant(db, user.user_id)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent", "unknown")
