"""
Authentication schemas.

Request/response models for signup, login, logout and me.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Signup / Login
# ---------------------------------------------------------------------------

class SignupRequest(BaseModel):
    """Request body for POST /auth/signup."""

    username: str = Field(max_length=50)
    password: str = Field(max_length=128)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserSummaryResponse(BaseModel):
    id: UUID
    username: str

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    """Response for GET /auth/me."""

    id: UUID
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Response for signup and login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token TTL in seconds")
    user: UserSummaryResponse
