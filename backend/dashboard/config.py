import logging
import secrets
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings

_logger = logging.getLogger(__name__)


def _generate_secret(name: str) -> str:
    """Generate a random secret and warn that it should be set explicitly."""
    value = secrets.token_urlsafe(48)
    _logger.warning(
        "%s not set, using auto-generated value. "
        "Set %s in your .env or environment for production.",
        name,
        name,
    )
    return value


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Change Detection Dashboard"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # "local" stores webhook events in the database,
    # "proxy" reads everything from the changedetection.io API
    DATA_MODE: Literal["local", "proxy"] = "local"

    # Database (local mode)
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/changedetection.sqlite"

    # changedetection.io API (proxy mode)
    CHANGEDETECTION_URL: str = "http://localhost:5000"
    CHANGEDETECTION_API_KEY: str = ""
    CHANGEDETECTION_TIMEOUT: float = 20.0  # seconds per upstream request
    # "recheck" -> GET /watch/{uuid}?recheck=1, "trigger" -> GET /watch/{uuid}/trigger
    TRIGGER_STYLE: Literal["recheck", "trigger"] = "recheck"
    PREVIEW_LENGTH: int = 300

    # Auth: HTTP Basic when both are set
    AUTH_USERNAME: str = ""
    AUTH_PASSWORD: str = ""
    # Auth: password login with a session cookie (takes precedence over Basic)
    DASHBOARD_PASSWORD: str = ""

    SECRET_KEY: str = ""
    SESSION_COOKIE_NAME: str = "dashboard_session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 7  # 7 days

    def model_post_init(self, __context) -> None:
        if not self.SECRET_KEY:
            object.__setattr__(self, "SECRET_KEY", _generate_secret("SECRET_KEY"))

    # Prebuilt UI (index.html + assets). Empty = API only.
    STATIC_DIR: str = ""

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Sentry
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2
    SENTRY_ENVIRONMENT: str = "development"

    # Logging
    LOG_FORMAT: str = "json"  # "json" for production, "text" for development
    LOG_LEVEL: str = "INFO"

    # Metrics
    METRICS_ENABLED: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def password_auth_enabled(self) -> bool:
        return bool(self.DASHBOARD_PASSWORD)

    @property
    def basic_auth_enabled(self) -> bool:
        return not self.password_auth_enabled and bool(
            self.AUTH_USERNAME and self.AUTH_PASSWORD
        )

    @property
    def static_root(self) -> Path | None:
        """Resolved UI directory, or None when no UI is served."""
        if not self.STATIC_DIR:
            return None
        return Path(self.STATIC_DIR).expanduser().resolve()


settings = Settings()
