"""HTTP-facing error types.

Handlers raise these and the app-level exception handlers in
``dashboard.main`` render every one of them as ``{"error": <message>}``.
"""

from fastapi import HTTPException, status


class DashboardError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class BadRequestError(DashboardError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class AuthenticationError(DashboardError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"


class NotFoundError(DashboardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class WebhookPayloadError(DashboardError):
    """Webhook body could not be turned into a change record."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Invalid webhook payload"

