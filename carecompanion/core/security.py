from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional
import secrets
import uuid

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
import structlog

from carecompanion.core.config import get_settings
from carecompanion.core.exceptions import NotAuthenticatedError

logger = structlog.get_logger(__name__)

# Initialize HTTP Bearer for JWT authentication
security = HTTPBearer(auto_error=False)


class SecurityError(Exception):
    """Base exception for token-related errors"""
    pass


class JWTManager:
    """JWT token generation and validation.

    Identities are issued by the hosted auth provider; this service only
    verifies them. ``create_access_token`` exists for local tooling and tests.
    """

    @staticmethod
    def create_access_token(
        user_id: uuid.UUID,
        roles: Iterable[str] = ("caregiver",),
        email: Optional[str] = None,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token"""
        settings = get_settings()

        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(
            minutes=settings.security.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        ))

        to_encode = {
            "sub": str(user_id),
            "email": email,
            "roles": list(roles),
            "exp": expire,
            "iat": now,
            "type": "access",
            "jti": secrets.token_hex(16),
        }

        try:
            return jwt.encode(
                to_encode,
                settings.security.JWT_SECRET_KEY,
                algorithm=settings.security.JWT_ALGORITHM
            )
        except Exception as e:
            logger.error("Failed to create access token", error=str(e))
            raise SecurityError("Token creation failed")

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate a JWT token"""
        settings = get_settings()

        try:
            payload = jwt.decode(
                token,
                settings.security.JWT_SECRET_KEY,
                algorithms=[settings.security.JWT_ALGORITHM]
            )
        except JWTError as e:
            logger.warning("JWT validation failed", error=str(e))
            raise SecurityError("Invalid token")

        if payload.get("type") != "access":
            raise SecurityError("Invalid token type")

        return payload


def resolve_identity(token: Optional[str]) -> Dict[str, Any]:
    """Authenticated-identity lookup.

    Returns the current user or raises ``NotAuthenticatedError``.
    """
    if not token:
        raise NotAuthenticatedError()

    try:
        payload = JWTManager.decode_token(token)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (SecurityError, ValueError):
        raise NotAuthenticatedError()

    return {
        "user_id": user_id,
        "email": payload.get("email"),
        "roles": payload.get("roles", []),
        "token_jti": payload.get("jti"),
    }


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """Extract current user from JWT bearer token"""
    return resolve_identity(credentials.credentials if credentials else None)


__all__ = [
    "SecurityError",
    "JWTManager",
    "resolve_identity",
    "get_current_user",
]
