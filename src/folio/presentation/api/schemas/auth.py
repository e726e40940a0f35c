"""Authentication schemas for request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """Request schema for user registration.

    Email syntax is checked by the account service so the address is
    stored exactly as typed.
    """

    email: str = Field(..., max_length=255, description="User's email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="Password (8-72 characters)",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "student@example.com",
                "password": "securepassword123",
            },
        },
    )


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: str
    password: str
    remember_me: bool = Field(
        default=False,
        description="Issue a 14-day token instead of a 1-hour token",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "student@example.com",
                "password": "securepassword123",
                "remember_me": True,
            },
        },
    )


class PasswordResetRequest(BaseModel):
    """Request schema for requesting a password reset email."""

    email: str


class PasswordResetTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class PasswordResetCompleteRequest(BaseModel):
    """Request schema for resetting a password with a token."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class MessageResponse(BaseModel):
    message: str


class TokenValidResponse(BaseModel):
    valid: bool = True


class UserResponse(BaseModel):
    """Response schema for user data."""

    id: UUID
    email: str
    is_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Response schema for token data.

    The same token is also set as the HttpOnly ``jwt-token`` cookie.
    """

    access_token: str
    token_type: str = Field(default="bearer")
    expires_in: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.xxx",
                "token_type": "bearer",
                "expires_in": 3600,
            },
        },
    )
