"""
Authentication request/response schemas.
Pydantic models for the authenticated user and their profile.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

Role = Literal["user", "admin"]


class AuthUser(BaseModel):
    """User as known to Supabase Auth."""

    id: UUID = Field(..., description="User unique identifier")
    email: Optional[str] = Field(None, description="User email address")
    phone: Optional[str] = Field(None, description="User phone number")
    created_at: Optional[datetime] = Field(None, description="Account creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last account update")


class ProfileResponse(BaseModel):
    """Application profile of a user."""

    user_id: UUID
    role: Role
    terms_accepted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}  # Allow ORM model conversion


class MeResponse(BaseModel):
    """Response schema for GET /me."""

    user: AuthUser
    profile: ProfileResponse


class AcceptTermsResponse(BaseModel):
    """Response schema for POST /me/accept-terms."""

    message: str = "Terms accepted successfully"
    profile: ProfileResponse
    timestamp: datetime = Field(default_factory=datetime.utcnow)
