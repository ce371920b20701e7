"""
Admin request/response schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .auth import ProfileResponse


class UserWithProfile(BaseModel):
    """Supabase user joined with their profile (if any)."""

    id: UUID
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    profile: Optional[ProfileResponse] = None


class UserListResponse(BaseModel):
    users: List[UserWithProfile]
    count: int = Field(..., description="Users on this page")
    limit: int
    offset: int


class UpdateRoleRequest(BaseModel):
    role: str = Field(..., description="New role: 'user' or 'admin'")


class RoleUpdatedUser(BaseModel):
    id: UUID
    email: Optional[str] = None
    profile: ProfileResponse


class UpdateRoleResponse(BaseModel):
    message: str = "User role updated successfully"
    user: RoleUpdatedUser
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SystemStats(BaseModel):
    total_users: int
    total_admins: int
    users_with_accepted_terms: int
    recent_registrations: int = Field(..., description="Profiles created in the last 7 days")
    users_without_accepted_terms: int
    admin_percentage: int
