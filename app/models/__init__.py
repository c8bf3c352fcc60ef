"""
SQLAlchemy models for the portfolio projects store.
"""
from app.models.base import Base, TimestampMixin, UUIDMixin
from app.models.content_block import BlockType, ContentBlock
from app.models.project import Project

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Models
    "Project",
    "ContentBlock",
    # Enums
    "BlockType",
]
