from fastapi import APIRouter, Depends

from dashboard.api.deps import require_auth
from dashboard.api.routes import auth, changes, remote, watchers, webhook
from dashboard.config import Settings


def build_api_router(settings: Settings) -> APIRouter:
    """Routes under /api for the configured data mode.

    Local and proxy mode expose different resources and never share a router.
    """
    api_router = APIRouter(prefix="/api")
    protected = [Depends(require_auth)]

    if settings.password_auth_enabled:
        api_router.include_router(auth.router, tags=["Authentication"])

    if settings.DATA_MODE == "local":
        api_router.include_router(
            watchers.router, prefix="/watchers", tags=["Watchers"], dependencies=protected
        )
        api_router.include_router(
            changes.router, prefix="/changes", tags=["Changes"], dependencies=protected
        )
        # changedetection.io posts here without credentials
        api_router.include_router(webhook.router, prefix="/webhook", tags=["Webhook"])
    else:
        api_router.include_router(
            remote.router, tags=["changedetection.io"], dependencies=protected
        )

    return api_router
