"""User schema definitions.

This module defines the Role enum, the internal User object and the request
and response models of the authentication and administration endpoints.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

import pytz
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Role(str, Enum):
    """Access level of a user."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


# Promotion moves one step right, demotion one step left
ROLE_LADDER: List[Role] = [Role.STUDENT, Role.TEACHER, Role.ADMIN]


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class User(BaseModel):
    """A registered user as held by the application (includes the hash)."""

    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    name: str
    email: str
    password_hash: str
    role: Role = Role.STUDENT
    last_score: Optional[int] = None
    last_score_at: Optional[str] = None
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )
    updated_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )

    def to_public(self) -> "UserInfo":
        return UserInfo(**self.model_dump(exclude={"password_hash"}))


class UserInfo(BaseModel):
    """User information safe to return to clients."""

    user_id: str
    name: str
    email: str
    role: Role
    last_score: Optional[int] = None
    last_score_at: Optional[str] = None
    created_at: str
    updated_at: str


class RegisterRequest(BaseModel):
    """Request schema for registering (or requesting a verification code)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: Role = Role.STUDENT
    admin_token: Optional[str] = Field(
        default=None,
        description="Required when registering with the admin role.",
    )

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return _normalize_email(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return _normalize_email(value)


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    refresh_token: str
    token_type: str = "bearer"
    role: Role
    user: UserInfo


class RefreshRequest(BaseModel):
    refresh_token: str


class RefreshResponse(BaseModel):
    token: str
    token_type: str = "bearer"


class CurrentUserResponse(BaseModel):
    user: UserInfo


class UpdateProfileRequest(BaseModel):
    """Self-service update of the current user's account."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_email(value) if value is not None else None


class AdminUpdateUserRequest(BaseModel):
    """Admin edit of another user's name or email."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_email(value) if value is not None else None


class VerifyAndRegisterRequest(BaseModel):
    email: EmailStr
    code: str = Field(pattern=r"^[0-9]{6}$")

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return _normalize_email(value)


class MessageResponse(BaseModel):
    success: bool = True
    message: str
