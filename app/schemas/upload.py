"""
Pydantic schemas for image uploads.
"""
from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, Field


def is_valid_image_url(url: str) -> bool:
    """True for http(s) URLs and data:image/ URLs."""
    if not url:
        return False
    if url.startswith("data:image/"):
        return True
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ImageBucket(str, Enum):
    """Logical storage buckets for uploaded images."""

    PROJECT = "project"  # Cover images
    CONTENT = "content"  # Images embedded in content blocks


class ImageUploadResponse(BaseModel):
    """Response schema for a stored image."""

    url: str = Field(..., description="Publicly resolvable URL of the stored image")
