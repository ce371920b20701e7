"""
Supabase Client
Thin wrappers over the Supabase SDK for Auth and Storage.
"""

import logging
from typing import List, Optional
from uuid import UUID

from supabase import AuthError, Client, StorageException, create_client

from .config import get_settings
from .errors import InternalError
from .schemas.auth import AuthUser

logger = logging.getLogger(__name__)

# Global client instance
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get the service-role Supabase client (singleton)."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
        logger.info(f"Supabase client created: {settings.supabase_url}")
    return _client


def _to_auth_user(user) -> AuthUser:
    return AuthUser(
        id=user.id,
        email=user.email,
        phone=user.phone or None,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class SupabaseAuthGateway:
    """Read access to Supabase Auth users."""

    def __init__(self, client: Client):
        self.client = client

    def get_user(self, token: str) -> Optional[AuthUser]:
        """Resolve the user an access token belongs to, or None if rejected."""
        try:
            response = self.client.auth.get_user(token)
        except AuthError as e:
            logger.warning(f"Supabase rejected token: {e}")
            return None

        if response is None or response.user is None:
            return None
        return _to_auth_user(response.user)

    def get_user_by_id(self, user_id: UUID) -> Optional[AuthUser]:
        """Fetch a user by id, or None if it does not exist."""
        try:
            response = self.client.auth.admin.get_user_by_id(str(user_id))
        except AuthError as e:
            logger.warning(f"User lookup failed: {e}", extra={"user_id": str(user_id)})
            return None

        if response is None or response.user is None:
            return None
        return _to_auth_user(response.user)

    def list_users(self, page: int, per_page: int) -> List[AuthUser]:
        """List one page of users (pages start at 1)."""
        try:
            users = self.client.auth.admin.list_users(page=page, per_page=per_page)
        except AuthError as e:
            logger.error(f"Failed to list users: {e}")
            raise InternalError("Failed to get users list")

        return [_to_auth_user(user) for user in users]


class SupabaseStorageGateway:
    """Object operations on a single Storage bucket."""

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def create_signed_upload_url(self, path: str) -> str:
        """Create a signed URL the client can PUT the object to."""
        try:
            result = self.client.storage.from_(self.bucket).create_signed_upload_url(path)
        except StorageException as e:
            logger.error(f"Error generating upload URL: {e}", extra={"path": path})
            raise InternalError("Failed to generate upload URL")

        return result.get("signed_url") or result.get("signedUrl")

    def get_public_url(self, path: str) -> str:
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def remove(self, paths: List[str]) -> None:
        """
        Remove objects from the bucket.

        Raises:
            StorageException: if Storage rejects the request
        """
        self.client.storage.from_(self.bucket).remove(paths)
