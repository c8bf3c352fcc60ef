"""
Image upload API endpoints.

Images go to object storage; callers store only the returned URL on the
project (cover image) or in an image content block.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.auth import AuthenticatedUser, get_current_user
from app.schemas.upload import ImageBucket, ImageUploadResponse
from app.services.errors import NotFoundError, ValidationError
from app.services.s3 import ALLOWED_IMAGE_EXTENSIONS, S3Service, get_s3_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])

# Maximum file size: 5 MB
MAX_IMAGE_SIZE = 5 * 1024 * 1024


@router.post(
    "/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
)
async def upload_image(
    file: Annotated[UploadFile, File(description="Image file")],
    bucket: ImageBucket = Query(ImageBucket.PROJECT, description="Target bucket"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    s3: S3Service = Depends(get_s3_service),
) -> ImageUploadResponse:
    """
    Upload a cover or content image and return its public URL.

    - **file**: jpg, png, gif, webp, svg or avif (max 5MB)
    - **bucket**: "project" for cover images, "content" for block images
    """
    if not file.filename:
        raise ValidationError("Filename is required")

    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError("Invalid file type. Only image files are accepted.")

    content = await file.read()
    if not content:
        raise ValidationError("File is empty")
    if len(content) > MAX_IMAGE_SIZE:
        raise ValidationError(f"File too large. Maximum size is {MAX_IMAGE_SIZE // (1024 * 1024)}MB.")

    url = await s3.upload_image(
        content=content,
        filename=file.filename,
        bucket=bucket,
        content_type=file.content_type,
    )
    logger.info(f"Image {file.filename} uploaded by {current_user.email}")
    return ImageUploadResponse(url=url)


@router.delete(
    "/images",
    summary="Delete an uploaded image",
)
async def delete_image(
    url: str = Query(..., description="Public URL returned by the upload endpoint"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    s3: S3Service = Depends(get_s3_service),
) -> dict:
    """Remove an image from storage by its public URL."""
    if not await s3.delete_image(url):
        raise NotFoundError("Image not found")
    logger.info(f"Image {url} deleted by {current_user.email}")
    return {"success": True}
