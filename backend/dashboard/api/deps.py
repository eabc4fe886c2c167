from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from dashboard.config import Settings
from dashboard.core.exceptions import AuthenticationError
from dashboard.core.security import constant_time_equals, verify_session_token
from dashboard.services.changedetection import ChangeDetectionClient

_basic = HTTPBasic(auto_error=False)


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_changedetection_client(request: Request) -> ChangeDetectionClient:
    client = getattr(request.app.state, "changedetection_client", None)
    if client is None:
        # Normally created in the lifespan; covers servers that skip it
        client = ChangeDetectionClient.from_settings(request.app.state.settings)
        request.app.state.changedetection_client = client
    return client


def is_session_authenticated(request: Request, settings: Settings) -> bool:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return verify_session_token(token, settings.SECRET_KEY)


async def require_auth(
    request: Request,
    settings: Settings = Depends(get_settings),
    credentials: HTTPBasicCredentials | None = Depends(_basic),
) -> None:
    """Guard dashboard routes with whichever auth scheme is configured."""
    if settings.password_auth_enabled:
        if not is_session_authenticated(request, settings):
            raise AuthenticationError("Authentication required")
        return

    if settings.basic_auth_enabled:
        challenge = {"WWW-Authenticate": 'Basic realm="Authorization Required"'}
        if credentials is None:
            raise AuthenticationError("Authentication required", headers=challenge)
        user_ok = constant_time_equals(credentials.username, settings.AUTH_USERNAME)
        pass_ok = constant_time_equals(credentials.password, settings.AUTH_PASSWORD)
        if not (user_ok and pass_ok):
            raise AuthenticationError("Invalid credentials", headers=challenge)
