"""Authentication schemas."""

from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator


class Role(str, Enum):
    USER = "user"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class AuthPrincipal(BaseModel):
    """Normalized authenticated principal used by business services."""

    user_id: str = Field(min_length=1)
    role: Role = Role.USER

    model_config = {"frozen": True, "use_enum_values": True, "validate_default": True}


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: Role = Role.USER

    @field_validator("role")
    @classmethod
    def _no_self_service_admin(cls, value: Role) -> Role:
        if value is Role.ADMIN:
            raise ValueError("Role must be user or publisher")
        return value


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class UpdateDetailsRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None


class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=6, max_length=128)
