"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserPublic(BaseModel):
    """User as returned by the API: never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    cnpj_access: str = ""
    role: str
    created_at: datetime | None = None


class LoginRequest(BaseModel):
    """Documented login body. The endpoint also accepts nested `auth` and legacy field names."""

    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")


class RegisterRequest(BaseModel):
    """Documented self-registration body (may also be nested under `auth`)."""

    name: str
    email: str
    cnpj_access: str = Field(..., description="Business registration number; stored digits-only")
    password: str
    invite_token: str | None = Field(
        default=None, description="Required when REGISTER_INVITE_TOKEN is configured"
    )


class AuthPayload(BaseModel):
    """Token plus user returned after login or registration."""

    token: str = Field(..., description="JWT access token (send as Authorization: Bearer <token>)")
    user: UserPublic


class CurrentUser(BaseModel):
    """Authenticated identity attached to the request by the auth gate."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    cnpj_access: str = ""
