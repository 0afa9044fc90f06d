"""Session helpers (issue and validate signed session assertions)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from storeapi.core.config import Settings
from storeapi.core.errors import AppError, FailureKind
from storeapi.db.models import User

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    email: str
    role: str
    expires_at: datetime


def issue_session(user: User, settings: Settings, *, now: Optional[datetime] = None) -> str:
    """Build a signed JWT carrying {id, email, role} that expires after jwt_expire_seconds."""
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=settings.jwt_expire_seconds),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_session(token: str, settings: Settings) -> Optional[SessionClaims]:
    """Return the embedded claims, or None for a bad signature, elapsed expiry or malformed token."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.debug("Rejected expired session token")
        return None
    except JWTError:
        logger.debug("Rejected session token with invalid signature or format")
        return None
    try:
        return SessionClaims(
            user_id=int(payload["id"]),
            email=str(payload["email"]),
            role=str(payload["role"]),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError):
        return None


def current_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> SessionClaims:
    """FastAPI dependency: the claims of the bearer token, or 401."""
    settings: Settings = request.app.state.settings
    token = credentials.credentials if credentials else ""
    claims = verify_session(token, settings)
    if not claims:
        raise AppError(FailureKind.UNAUTHORIZED)
    return claims


def require_admin(claims: SessionClaims = Depends(current_claims)) -> SessionClaims:
    if claims.role != "admin":
        raise AppError(FailureKind.FORBIDDEN)
    return claims
