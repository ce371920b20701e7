"""
Image Service
Product images kept in the Supabase Storage bucket and the product_images table.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from supabase import StorageException

from ...db.models import ProductImage
from ..config import get_settings
from ..errors import InternalError, InvalidRequestError, ResourceNotFoundError
from ..storage import (
    MAX_FILE_SIZE,
    extract_path_from_url,
    generate_product_image_path,
    is_allowed_extension,
    is_allowed_mime_type,
    validate_file_size,
)
from ..supabase_client import SupabaseStorageGateway

logger = logging.getLogger(__name__)


class ImageService:
    """
    Product image operations.

    Uploads go straight from the client to Storage through a signed URL; the
    image row is registered afterwards with the object's public URL.
    """

    def __init__(self, db: Session, storage: SupabaseStorageGateway):
        self.db = db
        self.storage = storage

    def generate_upload_url(
        self,
        product_id: int,
        filename: str,
        content_type: str,
        file_size: Optional[int] = None,
    ) -> dict:
        """
        Create a signed upload URL for a new product image.

        Args:
            product_id: Product the image belongs to
            filename: Original file name (its extension is kept)
            content_type: MIME type of the file
            file_size: Size in bytes, when the client reports it

        Returns:
            Dict with upload_url, public_url, filename (object path) and expires_in

        Raises:
            InvalidRequestError: if the content type or extension is not allowed,
                or the file is larger than MAX_FILE_SIZE
        """
        if not is_allowed_mime_type(content_type):
            raise InvalidRequestError(
                f"Content type {content_type} not allowed", field="contentType"
            )
        if not is_allowed_extension(filename):
            raise InvalidRequestError(
                f"File extension not allowed for {filename}", field="filename"
            )
        if file_size is not None and not validate_file_size(file_size):
            raise InvalidRequestError(
                f"File exceeds the maximum size of {MAX_FILE_SIZE} bytes", field="fileSize"
            )

        path = generate_product_image_path(product_id, filename)
        upload_url = self.storage.create_signed_upload_url(path)
        public_url = self.storage.get_public_url(path)

        logger.info(
            "Upload URL generated",
            extra={"product_id": product_id, "path": path},
        )

        return {
            "upload_url": upload_url,
            "public_url": public_url,
            "filename": path,
            "expires_in": get_settings().signed_url_expires_in,
        }

    def add_image_to_product(
        self, product_id: int, public_url: str, is_primary: bool = False
    ) -> ProductImage:
        """
        Register an uploaded image.

        Raises:
            InvalidRequestError: if the URL does not point into the bucket
        """
        if not extract_path_from_url(public_url, self.storage.bucket):
            raise InvalidRequestError("Invalid public URL format", field="publicUrl")

        image = ProductImage(product_id=product_id, url=public_url, is_primary=is_primary)
        try:
            if is_primary:
                self._clear_primary_images(product_id)
            self.db.add(image)
            self.db.commit()
            self.db.refresh(image)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding image: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to add image to product")

        logger.info(
            "Image added to product",
            extra={"product_id": product_id, "image_id": image.id, "is_primary": is_primary},
        )
        return image

    def get_product_images(self, product_id: int) -> List[ProductImage]:
        """Images of a product, primary first then by id."""
        try:
            return (
                self.db.query(ProductImage)
                .filter(ProductImage.product_id == product_id)
                .order_by(ProductImage.is_primary.desc(), ProductImage.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching images: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to fetch product images")

    def get_image_by_id(self, image_id: int) -> Optional[ProductImage]:
        try:
            return self.db.query(ProductImage).filter(ProductImage.id == image_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching image: {e}", extra={"image_id": image_id})
            raise InternalError("Failed to fetch image")

    def update_image(self, image_id: int, is_primary: bool) -> ProductImage:
        """
        Mark an image as primary or secondary.

        Raises:
            ResourceNotFoundError: if the image does not exist
        """
        image = self.get_image_by_id(image_id)
        if image is None:
            raise ResourceNotFoundError("Image", image_id)

        try:
            if is_primary:
                self._clear_primary_images(image.product_id)
            image.is_primary = is_primary
            self.db.commit()
            self.db.refresh(image)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating image: {e}", extra={"image_id": image_id})
            raise InternalError("Failed to update image")

        return image

    def delete_image(self, image_id: int) -> None:
        """
        Delete an image row and its object.

        A failure to remove the object from Storage is logged and does not
        keep the row.

        Raises:
            ResourceNotFoundError: if the image does not exist
        """
        image = self.get_image_by_id(image_id)
        if image is None:
            raise ResourceNotFoundError("Image", image_id)

        product_id = image.product_id
        self.remove_files([image.url])

        try:
            self.db.delete(image)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting image: {e}", extra={"image_id": image_id})
            raise InternalError("Failed to delete image")

        logger.info("Image deleted", extra={"image_id": image_id, "product_id": product_id})

    def delete_all_product_images(self, product_id: int) -> int:
        """Delete every image of a product; returns how many rows were removed."""
        images = self.get_product_images(product_id)
        self.remove_files([image.url for image in images])

        try:
            self.db.query(ProductImage).filter(ProductImage.product_id == product_id).delete(
                synchronize_session="fetch"
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting images: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to delete product images")

        return len(images)

    def _clear_primary_images(self, product_id: int) -> None:
        self.db.query(ProductImage).filter(
            ProductImage.product_id == product_id,
            ProductImage.is_primary.is_(True),
        ).update({ProductImage.is_primary: False}, synchronize_session="fetch")

    def remove_files(self, urls: List[str]) -> None:
        """Remove the objects behind public URLs; Storage failures only warn."""
        paths = [p for p in (extract_path_from_url(u, self.storage.bucket) for u in urls) if p]
        if not paths:
            return
        try:
            self.storage.remove(paths)
        except StorageException as e:
            logger.warning(
                f"Could not delete files from storage: {e}",
                extra={"paths": paths},
            )
