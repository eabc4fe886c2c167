"""Session tokens and credential checks for the dashboard UI."""

import base64
import hashlib
import hmac
import secrets
import time


def constant_time_equals(provided: str, expected: str) -> bool:
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _sign(payload: str, secret_key: str) -> str:
    digest = hmac.new(
        secret_key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def create_session_token(secret_key: str, max_age_seconds: int) -> str:
    """Return ``<expires>.<nonce>.<signature>`` for the session cookie."""
    expires_at = int(time.time()) + max_age_seconds
    payload = f"{expires_at}.{secrets.token_urlsafe(16)}"
    return f"{payload}.{_sign(payload, secret_key)}"


def verify_session_token(token: str | None, secret_key: str) -> bool:
    if not token:
        return False
    try:
        expires_raw, nonce, signature = token.split(".", 2)
        expires_at = int(expires_raw)
    except ValueError:
        return False

    expected = _sign(f"{expires_raw}.{nonce}", secret_key)
    if not hmac.compare_digest(signature, expected):
        return False
    return expires_at > time.time()
