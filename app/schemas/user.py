from pydantic import BaseModel, Field, ConfigDict, ValidationInfo, field_validator
from datetime import datetime
from typing import Optional
import re

from app.models.user import UserRole

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("The email must be a valid email address.")
    return value


class RegisterRequest(BaseModel):
    """Schema for registering a new user."""
    name: str = Field(..., min_length=1, max_length=255, description="User's full name")
    email: str = Field(..., max_length=255, description="User's email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    password_confirmation: str = Field(..., description="Must match password")

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_must_match(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("The password confirmation does not match.")
        return v


class LoginRequest(BaseModel):
    """Schema for logging in."""
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, v: str) -> str:
        return _validate_email(v)


class UserResponse(BaseModel):
    """Public user representation (never includes the password hash)."""
    id: int
    name: str
    email: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
