from pydantic import BaseModel

from dashboard.schemas.base import CamelModel


class LoginRequest(BaseModel):
    password: str


class AuthStatusResponse(CamelModel):
    authenticated: bool
    auth_required: bool
