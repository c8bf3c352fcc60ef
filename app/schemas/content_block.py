"""
Pydantic schemas for content blocks.

A project's description is an ordered list of typed blocks. The block type
fixes the shape of its content: a list of strings for "list", a single
string for everything else.
"""
from typing import Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

from app.models.content_block import BlockType
from app.schemas.upload import is_valid_image_url

BlockContent = Union[str, list[str]]


def _check_shape(block_type: BlockType, content: BlockContent) -> None:
    if block_type == BlockType.LIST:
        if not isinstance(content, list):
            raise ValueError("List blocks must have a list of strings as content")
    elif not isinstance(content, str):
        raise ValueError(f"{block_type.value.capitalize()} blocks must have a string as content")


class ContentBlock(BaseModel):
    """One typed unit of a project description. Immutable value type."""

    id: UUID = Field(default_factory=uuid4)
    type: BlockType
    content: BlockContent

    class Config:
        frozen = True

    @model_validator(mode="after")
    def validate_content_shape(self) -> "ContentBlock":
        _check_shape(self.type, self.content)
        return self


class ContentBlockInput(BaseModel):
    """
    Block as submitted by the admin editor.

    Stricter than ContentBlock: scalar content is trimmed and must not be
    blank, list items are trimmed and blank items dropped, and a list left
    empty is rejected.
    An id is optional; supplying one keeps the block id stable across updates.
    """

    id: Optional[UUID] = None
    type: BlockType
    content: BlockContent

    @model_validator(mode="after")
    def validate_content(self) -> "ContentBlockInput":
        _check_shape(self.type, self.content)
        if isinstance(self.content, list):
            items = [item.strip() for item in self.content if item.strip()]
            if not items:
                raise ValueError("List blocks need at least one non-blank item")
            self.content = items
        else:
            content = self.content.strip()
            if not content:
                raise ValueError(f"{self.type.value.capitalize()} block content cannot be blank")
            if self.type == BlockType.IMAGE and not is_valid_image_url(content):
                raise ValueError("Image block content must be an image URL")
            self.content = content
        return self

    def to_block(self) -> ContentBlock:
        """Build the value-type block, assigning a fresh id when none was given."""
        if self.id is None:
            return ContentBlock(type=self.type, content=self.content)
        return ContentBlock(id=self.id, type=self.type, content=self.content)
