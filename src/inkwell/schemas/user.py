# src/inkwell/schemas/user.py
"""User and authentication Pydantic schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from inkwell.models.user import UserRole

USERNAME_PATTERN = r"^[A-Za-z0-9_-]+$"
_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")


def _check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not _LETTER.search(value) or not _DIGIT.search(value):
        raise ValueError("Password must contain at least one letter and one number")
    return value


class UserSummary(BaseModel):
    """Public subset of a user embedded in posts and comments."""

    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Schema for the authenticated user's own account."""

    id: int
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    avatar: str | None
    role: UserRole
    is_active: bool
    last_login: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserRegister(BaseModel):
    """Schema for creating a new account."""

    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., max_length=128)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return _check_password_strength(value)


class UserLogin(BaseModel):
    """Credentials submitted to obtain an access token."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Token plus account returned by register and login."""

    message: str
    token: str
    user: UserResponse


class ProfileUpdate(BaseModel):
    """Editable profile fields. At least one must be provided."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    avatar: str | None = Field(None, max_length=2048)

    @model_validator(mode="after")
    def _require_a_field(self) -> "ProfileUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one profile field must be provided")
        return self


class ProfilePost(BaseModel):
    """Compact listing of a post on its author's profile."""

    id: int
    title: str
    is_published: bool
    view_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    user: UserResponse
    posts: list[ProfilePost]


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse


class PasswordChange(BaseModel):
    """Schema for changing the password of the signed-in user."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return _check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("Password confirmation does not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordResponse(BaseModel):
    """Neutral acknowledgement; `reset_token` is only populated under test."""

    message: str
    reset_token: str | None = None


class PasswordReset(BaseModel):
    """Schema for completing a password reset with an emailed token."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return _check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordReset":
        if self.new_password != self.confirm_password:
            raise ValueError("Password confirmation does not match")
        return self
