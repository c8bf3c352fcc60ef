"""
ContentBlock model - one ordered unit of a project's description.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, UUIDMixin

if TYPE_CHECKING:
    from app.models.project import Project


class BlockType(str, Enum):
    """Closed set of content block variants."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    QUOTE = "quote"
    IMAGE = "image"
    LIST = "list"


class ContentBlock(Base, UUIDMixin):
    """
    Content block row.

    content is a JSON string for scalar types and a JSON array of strings
    for lists. Sequence is carried by order_index only.
    """

    __tablename__ = "content_blocks"

    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    content: Mapped[Any] = mapped_column(
        JSONB,
        nullable=False,
    )
    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    project: Mapped["Project"] = relationship(
        "Project",
        back_populates="blocks",
    )

    def __repr__(self) -> str:
        return f"<ContentBlock {self.type} #{self.order_index}>"
