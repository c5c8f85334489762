"""FastAPI dependencies resolving the caller's account from a bearer token."""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from app.config import get_config

from .schemas import User
from .service import UserService, decode_access_token

logger = logging.getLogger(__name__)


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_optional_user(request: Request) -> Optional[User]:
    """Return the authenticated user, or None for guests and bad tokens."""
    token = _bearer_token(request)
    if not token:
        return None

    jwt_cfg = get_config().secrets.jwt
    user_id = decode_access_token(token, jwt_cfg.secret_key, jwt_cfg.algorithm)
    if user_id is None:
        return None
    return UserService.get_instance().get_user(user_id)


async def require_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Reject guests with 401."""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
