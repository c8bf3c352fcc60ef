"""
Persistence synchronizer between the Project aggregate and its two tables.

A project is stored as one `projects` row plus one `content_blocks` row per
description block. Block order is carried only by the explicit order_index
column, written as the block's position at write time and read back with
ORDER BY order_index.

Write paths:
- create: insert the project row, then the block rows. If the blocks fail,
  a compensating delete removes the fresh project row so no project is left
  without its description.
- update: update the project row, delete all its block rows, insert the new
  set. Blocks are replaced, never diffed. A failure after the delete leaves
  the project with no blocks; that state is logged and surfaced, not healed.
- delete: one project-row delete; block rows go with it by cascade.

Listing uses exactly two store calls: all projects, then all their blocks in
one batched fetch, grouped by project id in a single pass.
"""
import logging
from collections import defaultdict
from uuid import UUID

from app.schemas.content_block import ContentBlock
from app.schemas.project import Project, ProjectDraft
from app.services.errors import DuplicateBlockIdError, ProjectNotFoundError, StoreError
from app.services.project_store import ProjectRowStore, Row
from app.services.projects import ProjectRepository

logger = logging.getLogger(__name__)


def project_values(draft: ProjectDraft) -> Row:
    """Scalar columns of the projects row for a draft."""
    return {
        "slug": draft.slug,
        "title": draft.title,
        "summary": draft.summary,
        "tags": list(draft.tags),
        "image": draft.image,
        "github_url": draft.github_url,
        "custom_buttons": [button.model_dump() for button in draft.custom_buttons],
    }


def block_rows(project_id: UUID, blocks: list[ContentBlock]) -> list[Row]:
    """content_blocks rows for a block sequence, order_index = position."""
    return [
        {
            "id": block.id,
            "project_id": project_id,
            "type": block.type.value,
            "content": list(block.content) if isinstance(block.content, list) else block.content,
            "order_index": index,
        }
        for index, block in enumerate(blocks)
    ]


def group_blocks_by_project(rows: list[Row]) -> dict[UUID, list[ContentBlock]]:
    """
    Group block rows by project_id in one pass.

    Rows must already be ordered by order_index; the per-project lists keep
    that order.
    """
    grouped: dict[UUID, list[ContentBlock]] = defaultdict(list)
    for row in rows:
        grouped[row["project_id"]].append(row_to_block(row))
    return dict(grouped)


def row_to_block(row: Row) -> ContentBlock:
    return ContentBlock(id=row["id"], type=row["type"], content=row["content"])


def row_to_project(row: Row, blocks: list[ContentBlock]) -> Project:
    return Project(
        id=row["id"],
        slug=row["slug"],
        title=row["title"],
        summary=row["summary"],
        description=blocks,
        tags=list(row.get("tags") or []),
        image=row["image"],
        github_url=row.get("github_url"),
        custom_buttons=row.get("custom_buttons") or [],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class ProjectSynchronizer(ProjectRepository):
    """Database-backed ProjectRepository over a ProjectRowStore."""

    def __init__(self, store: ProjectRowStore):
        self._store = store

    async def _load_blocks(self, project_id: UUID) -> list[ContentBlock]:
        rows = await self._store.fetch_blocks([project_id])
        return [row_to_block(row) for row in rows]

    async def get_by_id(self, project_id: UUID) -> Project:
        row = await self._store.fetch_project(project_id)
        if row is None:
            raise ProjectNotFoundError(project_id)
        return row_to_project(row, await self._load_blocks(project_id))

    async def get_by_slug(self, slug: str) -> Project:
        row = await self._store.fetch_project_by_slug(slug)
        if row is None:
            raise ProjectNotFoundError(slug)
        return row_to_project(row, await self._load_blocks(row["id"]))

    async def list_all(self) -> list[Project]:
        rows = await self._store.fetch_projects()
        if not rows:
            return []

        blocks_by_project = group_blocks_by_project(
            await self._store.fetch_blocks([row["id"] for row in rows])
        )
        return [row_to_project(row, blocks_by_project.get(row["id"], [])) for row in rows]

    async def create(self, draft: ProjectDraft) -> Project:
        row = await self._store.insert_project(project_values(draft))
        project_id = row["id"]

        rows = block_rows(project_id, draft.description)
        if rows:
            try:
                await self._store.insert_blocks(rows)
            except (StoreError, DuplicateBlockIdError):
                logger.error(f"Block insert failed for new project {project_id}; removing project row")
                await self._compensate_create(project_id)
                raise

        return row_to_project(row, await self._load_blocks(project_id))

    async def _compensate_create(self, project_id: UUID) -> None:
        try:
            await self._store.delete_project(project_id)
        except StoreError as e:
            logger.error(f"Compensating delete failed; project {project_id} left without blocks: {e}")

    async def update(self, project_id: UUID, draft: ProjectDraft) -> Project:
        row = await self._store.update_project(project_id, project_values(draft))
        if row is None:
            raise ProjectNotFoundError(project_id)

        removed = await self._store.delete_blocks(project_id)
        rows = block_rows(project_id, draft.description)
        if rows:
            try:
                await self._store.insert_blocks(rows)
            except (StoreError, DuplicateBlockIdError):
                logger.error(
                    f"Block insert failed for project {project_id} after removing "
                    f"{removed} old blocks; project now has no content blocks"
                )
                raise

        return row_to_project(row, await self._load_blocks(project_id))

    async def delete(self, project_id: UUID) -> None:
        if not await self._store.delete_project(project_id):
            raise ProjectNotFoundError(project_id)
