"""
Product Image Storage
Bucket constants and path/URL helpers for product images kept in Supabase Storage.
"""

import logging
import random
import re
import string
import time
from typing import Optional
from urllib.parse import urlparse

from .config import get_settings

logger = logging.getLogger(__name__)

# Upload limits
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

PRODUCTS_DIRECTORY = "products"

_EXTENSION_RE = re.compile(r"\.[^.]+$")
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def _extension(filename: str) -> Optional[str]:
    match = _EXTENSION_RE.search(filename.lower())
    return match.group(0) if match else None


def is_allowed_mime_type(mime_type: str) -> bool:
    """Check whether a content type may be uploaded."""
    return mime_type in ALLOWED_MIME_TYPES


def is_allowed_extension(filename: str) -> bool:
    """Check whether a filename carries an allowed image extension."""
    extension = _extension(filename)
    return extension is not None and extension in ALLOWED_EXTENSIONS


def validate_file_size(content_length: int) -> bool:
    """Check a Content-Length against the upload limit."""
    return content_length <= MAX_FILE_SIZE


def generate_product_image_path(product_id: int, original_filename: str) -> str:
    """
    Generate a unique object path for a product image.

    Format: products/{product_id}/{epoch_ms}_{random6}{ext}. The extension of
    the original filename is kept (lower-cased); .jpg is used when it has none.
    """
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(_RANDOM_ALPHABET, k=6))
    extension = _extension(original_filename) or ".jpg"

    return f"{PRODUCTS_DIRECTORY}/{product_id}/{timestamp}_{suffix}{extension}"


def extract_path_from_url(public_url: str, bucket: Optional[str] = None) -> Optional[str]:
    """
    Extract the object path from a public bucket URL.

    Returns None when the URL does not point into the product images bucket.
    """
    bucket = bucket or get_settings().product_images_bucket
    try:
        parsed = urlparse(public_url)
    except (TypeError, ValueError) as e:
        logger.error(f"Error extracting path from URL: {e}", extra={"public_url": public_url})
        return None

    if not parsed.scheme or not parsed.netloc:
        return None

    match = re.search(rf"/object/public/{re.escape(bucket)}/(.+)$", parsed.path)
    return match.group(1) if match else None


def get_public_url(file_path: str, bucket: Optional[str] = None) -> str:
    """
    Build the public URL for an object in the bucket.

    Raises:
        ValueError: if the path is empty or SUPABASE_URL is not configured
    """
    if not file_path or not isinstance(file_path, str) or not file_path.strip():
        raise ValueError("file_path must be a non-empty string")

    bucket = bucket or get_settings().product_images_bucket
    if not bucket:
        raise ValueError("Product images bucket is not configured")

    supabase_url = get_settings().supabase_url
    if not supabase_url:
        raise ValueError("SUPABASE_URL environment variable is required")

    base_url = supabase_url.rstrip("/")
    normalized_path = file_path.strip().lstrip("/")
    if not normalized_path:
        raise ValueError("file_path cannot be empty after normalization")

    return f"{base_url}/storage/v1/object/public/{bucket}/{normalized_path}"
