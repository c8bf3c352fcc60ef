"""
Pydantic schemas for API request/response models.
"""
from app.schemas.contact import ContactRequest, ContactResponse
from app.schemas.content_block import BlockContent, ContentBlock, ContentBlockInput
from app.schemas.project import (
    CustomButton,
    DeleteProjectResponse,
    Project,
    ProjectDraft,
    ProjectInput,
)
from app.schemas.upload import ImageBucket, ImageUploadResponse, is_valid_image_url

__all__ = [
    # Content block schemas
    "BlockContent",
    "ContentBlock",
    "ContentBlockInput",
    # Project schemas
    "CustomButton",
    "DeleteProjectResponse",
    "Project",
    "ProjectDraft",
    "ProjectInput",
    # Contact schemas
    "ContactRequest",
    "ContactResponse",
    # Upload schemas
    "ImageBucket",
    "ImageUploadResponse",
    "is_valid_image_url",
]
