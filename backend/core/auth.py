"""
Authentication utilities for ShopDesk.
Handles JWT bearer tokens and role checks. Identity itself is issued by the
hosting platform; this service only verifies what it is handed.
"""
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import PyJWTError
from pydantic import BaseModel

from core.config import settings

SECRET_KEY = settings.jwt_secret_key or secrets.token_urlsafe(48)
ALGORITHM = "HS256"


class TokenData(BaseModel):
    username: Optional[str] = None
    role: Optional[str] = None
    user_id: Optional[int] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token with unique jti."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.access_token_expire_hours)
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[TokenData]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            return None
        return TokenData(username=username, role=payload.get("role"), user_id=payload.get("uid"))
    except PyJWTError:
        return None


# Role-based permission checks
ROLE_HIERARCHY = {
    "viewer": 1,
    "operator": 2,
    "admin": 3
}


def has_permission(user_role: str, required_role: str) -> bool:
    """Check if user role meets or exceeds required role."""
    return ROLE_HIERARCHY.get(user_role, 0) >= ROLE_HIERARCHY.get(required_role, 0)
