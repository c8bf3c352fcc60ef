"""
S3 image storage service.

Stores uploaded images and hands back their public URLs. The rest of the
service only ever keeps those URL strings, never image bytes.
"""
import logging
import secrets
import time
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.exceptions import ClientError

from app.config import get_settings
from app.schemas.upload import ImageBucket
from app.services.errors import StorageUploadError

logger = logging.getLogger(__name__)
settings = get_settings()

ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "svg", "avif"}


class S3Service:
    """
    Service for image uploads to S3.

    Objects carry a one-hour Cache-Control header. URLs are built from
    S3_PUBLIC_BASE_URL when set, otherwise from the virtual-hosted bucket host.
    """

    def __init__(self):
        """Initialize S3 client."""
        self._client = boto3.client(
            "s3",
            region_name=settings.aws_region,
        )

    def bucket_name(self, bucket: ImageBucket) -> str:
        """Map a logical bucket to its configured S3 bucket name."""
        if bucket == ImageBucket.CONTENT:
            return settings.s3_content_images_bucket
        return settings.s3_project_images_bucket

    def public_url(self, bucket_name: str, key: str) -> str:
        """Publicly resolvable URL for an object."""
        if settings.s3_public_base_url:
            return f"{settings.s3_public_base_url.rstrip('/')}/{bucket_name}/{key}"
        return f"https://{bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"

    @staticmethod
    def object_key(filename: str) -> str:
        """Unique object key: <epoch-millis>-<random>.<ext>."""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        bucket: ImageBucket = ImageBucket.PROJECT,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload an image and return its public URL.

        Args:
            content: Image bytes
            filename: Original filename (used for the extension only)
            bucket: Logical bucket (project cover or content image)
            content_type: MIME type of the file

        Returns:
            Public URL of the stored object

        Raises:
            StorageUploadError: If the upload fails
        """
        bucket_name = self.bucket_name(bucket)
        key = self.object_key(filename)

        extra_args = {"CacheControl": "max-age=3600"}
        if content_type:
            extra_args["ContentType"] = content_type
        extra_args["Metadata"] = {"original_filename": filename}

        try:
            self._client.put_object(
                Bucket=bucket_name,
                Key=key,
                Body=content,
                **extra_args,
            )
        except ClientError as e:
            logger.error(f"Failed to upload image to S3: {e}")
            raise StorageUploadError("Image upload failed", cause=e) from e

        logger.info(f"Uploaded image to s3://{bucket_name}/{key}")
        return self.public_url(bucket_name, key)

    def parse_url(self, url: str) -> Optional[tuple[str, str]]:
        """
        Recover (bucket_name, key) from a URL produced by public_url.

        Returns None for URLs that do not point at our storage.
        """
        base = settings.s3_public_base_url.rstrip("/")
        if base and url.startswith(base + "/"):
            bucket_name, _, key = url[len(base) + 1:].partition("/")
            return (bucket_name, key) if bucket_name and key else None

        parsed = urlparse(url)
        suffix = f".s3.{settings.aws_region}.amazonaws.com"
        if parsed.scheme == "https" and parsed.netloc.endswith(suffix):
            bucket_name = parsed.netloc[: -len(suffix)]
            key = parsed.path.lstrip("/")
            return (bucket_name, key) if bucket_name and key else None
        return None

    async def delete_image(self, url: str) -> bool:
        """
        Delete an image by its public URL.

        Returns:
            True if deleted, False if the URL is not one of ours or S3 refused
        """
        location = self.parse_url(url)
        if location is None:
            logger.warning(f"Not a storage URL, nothing to delete: {url}")
            return False

        bucket_name, key = location
        try:
            self._client.delete_object(Bucket=bucket_name, Key=key)
        except ClientError as e:
            logger.error(f"Failed to delete image s3://{bucket_name}/{key}: {e}")
            return False

        logger.info(f"Deleted image s3://{bucket_name}/{key}")
        return True


# Global service instance
_s3_service: Optional[S3Service] = None


def get_s3_service() -> S3Service:
    """Get the S3 service singleton."""
    global _s3_service
    if _s3_service is None:
        _s3_service = S3Service()
    return _s3_service
