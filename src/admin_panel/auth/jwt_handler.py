"""
JWT Token Handler - Token generation and validation.

Access tokens carry the user id, the login session id and the role. The
session id lets the server revoke a token by ending its session.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional
import logging

import jwt

from config.settings import get_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Token is expired, tampered with or of the wrong type."""


class TokenType(str, Enum):
    """Token type identifier."""
    ACCESS = "access"


@dataclass
class TokenPayload:
    """Decoded token payload."""
    sub: str  # User ID
    sid: int  # Login session ID
    role: str
    type: TokenType = TokenType.ACCESS
    exp: Optional[datetime] = None
    iat: Optional[datetime] = None
    jti: Optional[str] = None

    @property
    def user_id(self) -> int:
        return int(self.sub)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JWT encoding."""
        data = {
            "sub": self.sub,
            "sid": self.sid,
            "role": self.role,
            "type": self.type.value,
        }
        if self.jti:
            data["jti"] = self.jti
        return data


def create_access_token(
    user_id: int,
    session_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a new access token.

    Args:
        user_id: User ID
        session_id: Login session the token belongs to
        role: User role at login time
        expires_delta: Custom expiration time

    Returns:
        JWT access token string
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = TokenPayload(
        sub=str(user_id),
        sid=session_id,
        role=getattr(role, "value", role),
        jti=str(uuid.uuid4()),
    )

    token_data = payload.to_dict()
    token_data["exp"] = expire
    token_data["iat"] = now

    return jwt.encode(token_data, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate an access token.

    Raises:
        InvalidTokenError: If token is invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        raise InvalidTokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise InvalidTokenError(f"Invalid token: {str(e)}")

    token_type = payload.get("type")
    if token_type != TokenType.ACCESS.value:
        raise InvalidTokenError(f"Expected access token, got {token_type}")

    sub = payload.get("sub")
    sid = payload.get("sid")
    if sub is None or not str(sub).isdigit() or not isinstance(sid, int):
        raise InvalidTokenError("Token is missing required claims")

    return TokenPayload(
        sub=str(sub),
        sid=sid,
        role=payload.get("role", ""),
        type=TokenType.ACCESS,
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc) if payload.get("exp") else None,
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc) if payload.get("iat") else None,
        jti=payload.get("jti"),
    )
