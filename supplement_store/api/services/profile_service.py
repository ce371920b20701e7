"""
Profile Service
Application profiles attached to Supabase auth users.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...db.models import Profile
from ..errors import InternalError, InvalidRequestError, ResourceNotFoundError

logger = logging.getLogger(__name__)

ROLES = ("user", "admin")


class ProfileService:
    """Reads and writes rows of the profiles table."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: UUID) -> Optional[Profile]:
        try:
            return self.db.query(Profile).filter(Profile.user_id == user_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching profile: {e}", extra={"user_id": str(user_id)})
            raise InternalError("Failed to fetch profile")

    def get_profiles(self, user_ids: List[UUID]) -> List[Profile]:
        if not user_ids:
            return []
        try:
            return self.db.query(Profile).filter(Profile.user_id.in_(user_ids)).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching profiles: {e}")
            raise InternalError("Failed to fetch profiles")

    def create_profile(self, user_id: UUID, role: str = "user") -> Profile:
        """
        Create the profile of a user.

        Raises:
            InvalidRequestError: if the role is unknown
        """
        if role not in ROLES:
            raise InvalidRequestError("Role must be either 'user' or 'admin'", field="role")

        profile = Profile(user_id=user_id, role=role)
        try:
            self.db.add(profile)
            self.db.commit()
            self.db.refresh(profile)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating profile: {e}", extra={"user_id": str(user_id)})
            raise InternalError("Failed to create profile")

        logger.info("Profile created", extra={"user_id": str(user_id), "role": role})
        return profile

    def update_profile(
        self,
        user_id: UUID,
        role: Optional[str] = None,
        terms_accepted_at: Optional[datetime] = None,
    ) -> Profile:
        """
        Update a profile; fields left as None are unchanged.

        Raises:
            ResourceNotFoundError: if the user has no profile
            InvalidRequestError: if the role is unknown
        """
        if role is not None and role not in ROLES:
            raise InvalidRequestError("Role must be either 'user' or 'admin'", field="role")

        profile = self.get_profile(user_id)
        if profile is None:
            raise ResourceNotFoundError("Profile", str(user_id))

        if role is not None:
            profile.role = role
        if terms_accepted_at is not None:
            profile.terms_accepted_at = terms_accepted_at
        profile.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(profile)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating profile: {e}", extra={"user_id": str(user_id)})
            raise InternalError("Failed to update profile")

        return profile

    def get_or_create_profile(self, user_id: UUID) -> Profile:
        profile = self.get_profile(user_id)
        if profile is not None:
            return profile
        return self.create_profile(user_id)

    def accept_terms(self, user_id: UUID) -> Profile:
        """Record that the user accepted the terms now."""
        self.get_or_create_profile(user_id)
        profile = self.update_profile(user_id, terms_accepted_at=datetime.utcnow())
        logger.info("Terms accepted", extra={"user_id": str(user_id)})
        return profile

    def get_profile_stats(self, recent_days: int = 7) -> dict:
        """
        User statistics over the profiles table.

        Args:
            recent_days: Window for counting recent registrations
        """
        since = datetime.utcnow() - timedelta(days=recent_days)
        try:
            total = self.db.query(func.count(Profile.user_id)).scalar()
            admins = (
                self.db.query(func.count(Profile.user_id))
                .filter(Profile.role == "admin")
                .scalar()
            )
            accepted = (
                self.db.query(func.count(Profile.user_id))
                .filter(Profile.terms_accepted_at.isnot(None))
                .scalar()
            )
            recent = (
                self.db.query(func.count(Profile.user_id))
                .filter(Profile.created_at >= since)
                .scalar()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching profile stats: {e}")
            raise InternalError("Failed to get system statistics")

        return {
            "total_users": total,
            "total_admins": admins,
            "users_with_accepted_terms": accepted,
            "recent_registrations": recent,
            "users_without_accepted_terms": total - accepted,
            "admin_percentage": round(admins / total * 100) if total else 0,
        }
