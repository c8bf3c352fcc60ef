"""
Pydantic schemas for the Projects API.

Field names are camelCase on the wire (githubUrl, customButtons, createdAt)
and snake_case in Python; both spellings are accepted on input.
"""
import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from app.config import get_settings
from app.schemas.content_block import ContentBlock, ContentBlockInput
from app.schemas.upload import is_valid_image_url

# Fixed points of app.services.projects.generate_slug
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class CustomButton(BaseModel):
    """Extra link button rendered on the project page."""

    label: str = Field(..., min_length=1, max_length=50)
    url: str = Field(..., min_length=1, max_length=512)


class ProjectInput(BaseModel):
    """Request schema for creating or fully replacing a project."""

    slug: Optional[str] = Field(
        None,
        max_length=255,
        description="URL slug; derived from the title when omitted",
    )
    title: str = Field(..., max_length=255)
    summary: str
    description: list[ContentBlockInput] = Field(
        default_factory=list,
        description="Ordered content blocks; order is preserved",
    )
    tags: list[str] = Field(default_factory=list)
    image: str = Field(..., description="Public URL of the cover image")
    github_url: Optional[str] = Field(None, max_length=512)
    custom_buttons: list[CustomButton] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("title", "summary", "image")
    @classmethod
    def require_text(cls, v: str, info: ValidationInfo) -> str:
        """Required display fields cannot be blank."""
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} is required")
        return v

    @field_validator("image")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        if not is_valid_image_url(v):
            raise ValueError("image must be an http(s) URL or a data:image/ URL")
        return v

    @field_validator("slug", "github_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        """An explicit slug must already be in the form titles are slugged to."""
        if v is not None and not SLUG_PATTERN.match(v):
            raise ValueError("slug may only contain lowercase letters, digits and single hyphens")
        return v

    @field_validator("description")
    @classmethod
    def unique_block_ids(cls, v: list[ContentBlockInput]) -> list[ContentBlockInput]:
        seen = set()
        for block in v:
            if block.id is None:
                continue
            if block.id in seen:
                raise ValueError(f"Duplicate content block id {block.id}")
            seen.add(block.id)
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Trim tags, drop blanks and enforce the configured count and length caps."""
        settings = get_settings()
        tags = [tag.strip() for tag in v if tag.strip()]
        if len(tags) > settings.max_tags:
            raise ValueError(f"At most {settings.max_tags} tags are allowed")
        for tag in tags:
            if len(tag) > settings.max_tag_length:
                raise ValueError(f"Tags can be at most {settings.max_tag_length} characters")
        return tags

    @field_validator("custom_buttons")
    @classmethod
    def limit_custom_buttons(cls, v: list[CustomButton]) -> list[CustomButton]:
        max_buttons = get_settings().max_custom_buttons
        if len(v) > max_buttons:
            raise ValueError(f"At most {max_buttons} custom buttons are allowed")
        return v


class ProjectDraft(BaseModel):
    """Normalized write payload handed to a project repository."""

    slug: str
    title: str
    summary: str
    description: list[ContentBlock]
    tags: list[str]
    image: str
    github_url: Optional[str] = None
    custom_buttons: list[CustomButton] = Field(default_factory=list)


class Project(BaseModel):
    """A project with its ordered description blocks."""

    id: UUID
    slug: str
    title: str
    summary: str
    description: list[ContentBlock] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    image: str
    github_url: Optional[str] = None
    custom_buttons: list[CustomButton] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class DeleteProjectResponse(BaseModel):
    """Response for a successful delete."""

    success: bool = True
