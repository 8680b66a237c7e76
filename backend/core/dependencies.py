"""
ShopDesk — Core auth/request dependencies.

Provides the get_current_user FastAPI dependency, which resolves the caller
from a JWT Bearer token or the perimeter API key.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from core.auth import decode_token
from core.config import settings

log = logging.getLogger("shop.api")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

# The perimeter key acts as a service account with full rights.
_API_KEY_USER = {"id": None, "username": "api-key", "role": "admin"}


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[dict]:
    """Resolve the current user.

    Auth priority:
      1. Authorization: Bearer <JWT>
      2. X-API-Key header matching settings.api_key
    Returns None when neither is present or valid.
    """
    if token:
        token_data = decode_token(token)
        if token_data:
            return {
                "id": token_data.user_id,
                "username": token_data.username,
                "role": token_data.role or "viewer",
            }
        log.debug("Rejected bearer token on %s", request.url.path)

    api_key = request.headers.get("X-API-Key")
    if api_key and settings.api_key and hmac.compare_digest(api_key, settings.api_key):
        return dict(_API_KEY_USER)

    return None
