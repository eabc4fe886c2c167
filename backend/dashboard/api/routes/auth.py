"""Password login for the dashboard UI (mounted when DASHBOARD_PASSWORD is set)."""

import logging

from fastapi import APIRouter, Depends, Request, Response

from dashboard.api.deps import get_settings, is_session_authenticated
from dashboard.config import Settings
from dashboard.core.exceptions import AuthenticationError
from dashboard.core.security import constant_time_equals, create_session_token
from dashboard.schemas.auth import AuthStatusResponse, LoginRequest
from dashboard.schemas.base import ActionResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=ActionResponse, summary="Log in")
async def login(
    body: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
):
    if not constant_time_equals(body.password, settings.DASHBOARD_PASSWORD):
        logger.warning("Failed dashboard login attempt")
        raise AuthenticationError("Invalid password")

    token = create_session_token(settings.SECRET_KEY, settings.SESSION_MAX_AGE_SECONDS)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
    )
    return ActionResponse(success=True, message="Logged in")


@router.post("/logout", response_model=ActionResponse, summary="Log out")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, httponly=True, samesite="lax")
    return ActionResponse(success=True, message="Logged out")


@router.get("/auth/status", response_model=AuthStatusResponse, summary="Session status")
async def auth_status(request: Request, settings: Settings = Depends(get_settings)):
    return AuthStatusResponse(
        authenticated=is_session_authenticated(request, settings),
        auth_required=True,
    )
