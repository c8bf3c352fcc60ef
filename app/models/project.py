"""
Project model - one portfolio entry.
"""
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.content_block import ContentBlock


class Project(Base, UUIDMixin, TimestampMixin):
    """
    Project model holding the scalar fields of a portfolio entry.

    The rich-text description lives in content_blocks, one row per block,
    ordered by ContentBlock.order_index.
    """

    __tablename__ = "projects"

    # Derived from title; not unique (see DESIGN.md)
    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    summary: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(100)),
        nullable=False,
    )

    # Public URL of the cover image in object storage
    image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    github_url: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
    )
    # [{"label": ..., "url": ...}], at most two
    custom_buttons: Mapped[list[dict]] = mapped_column(
        JSONB,
        nullable=False,
    )

    blocks: Mapped[list["ContentBlock"]] = relationship(
        "ContentBlock",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ContentBlock.order_index",
    )

    def __repr__(self) -> str:
        return f"<Project {self.slug}>"
