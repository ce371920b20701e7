"""
Authentication Endpoints
The authenticated user and their profile.
"""

import logging

from fastapi import APIRouter, Depends, status

from ..dependencies import get_current_user, get_profile_service
from ..schemas.auth import AcceptTermsResponse, AuthUser, MeResponse, ProfileResponse
from ..services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["Authentication"])


@router.get("", response_model=MeResponse, status_code=status.HTTP_200_OK)
def get_me(
    current_user: AuthUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Get the current user.

    The profile is created with the `user` role on the first call.
    """
    profile = profiles.get_or_create_profile(current_user.id)
    return MeResponse(user=current_user, profile=ProfileResponse.model_validate(profile))


@router.post("/accept-terms", response_model=AcceptTermsResponse, status_code=status.HTTP_200_OK)
def accept_terms(
    current_user: AuthUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Record that the current user accepted the terms."""
    profile = profiles.accept_terms(current_user.id)
    return AcceptTermsResponse(profile=ProfileResponse.model_validate(profile))
