"""Auth router for account registration, login and settings.

Endpoints:
    POST  /api/register       - Create an account and return a bearer token
    POST  /api/login          - Exchange credentials for a bearer token
    POST  /api/logout         - Acknowledge logout (tokens are stateless)
    GET   /api/user           - Current account
    PATCH /api/user/settings  - Update dark mode / email
"""
import logging

import duckdb
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.config import get_config
from app.notifications.service import EmailService

from .dependencies import require_user
from .schemas import LoginRequest, RegisterRequest, User, UserSettingsUpdate
from .service import UserService, create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

USERNAME_TAKEN_MESSAGE = "Username already exists"


def _token_response(user: User, status_code: int = 200) -> JSONResponse:
    config = get_config()
    token = create_access_token(
        user.id,
        config.secrets.jwt.secret_key,
        config.secrets.jwt.algorithm,
        config.auth.token_expire_minutes,
    )
    return JSONResponse(
        {"user": user.to_public(), "access_token": token, "token_type": "bearer"},
        status_code=status_code,
    )


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, background_tasks: BackgroundTasks) -> JSONResponse:
    """Create an account.

    Returns:
        The new user and an access token (201), or 400 if the username is taken.
    """
    service = UserService.get_instance()
    if service.get_user_by_username(body.username):
        raise HTTPException(status_code=400, detail=USERNAME_TAKEN_MESSAGE)

    try:
        user = service.create_user(
            username=body.username,
            password_hash=hash_password(body.password),
            email=body.email,
            tts_credits=get_config().auth.default_credits,
        )
    except duckdb.ConstraintException:
        # Lost a race with a concurrent registration of the same name.
        raise HTTPException(status_code=400, detail=USERNAME_TAKEN_MESSAGE)

    logger.info("[auth] Registered user %s (id=%d)", user.username, user.id)

    if user.email:
        background_tasks.add_task(EmailService.get_instance().send, user, "welcome")

    return _token_response(user, status_code=201)


@router.post("/login")
async def login(body: LoginRequest) -> JSONResponse:
    """Verify credentials and issue an access token."""
    user = UserService.get_instance().get_user_by_username(body.username)
    if user is None or not verify_password(body.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    logger.info("[auth] Login for user %s", user.username)
    return _token_response(user)


@router.post("/logout")
async def logout() -> dict:
    """Tokens are stateless; the client discards its copy."""
    return {"success": True}


@router.get("/user")
async def current_user(user: User = Depends(require_user)) -> dict:
    return user.to_public()


@router.patch("/user/settings")
async def update_settings(
    body: UserSettingsUpdate,
    user: User = Depends(require_user),
) -> dict:
    """Update the caller's preference flags.

    ``ttsCredits`` is display-only and cannot be changed here.
    """
    updated = UserService.get_instance().update_user(
        user.id,
        dark_mode=body.dark_mode,
        email=body.email,
    )
    logger.info("[auth] Updated settings for user %d", user.id)
    return updated.to_public()
