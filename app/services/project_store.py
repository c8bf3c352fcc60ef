"""
Table-level gateway to the projects and content_blocks tables.

Rows are plain dicts keyed by column name. ProjectSynchronizer builds the
Project aggregate on top of these calls; nothing here knows about blocks
belonging to a project beyond the project_id column.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional, Union
from uuid import UUID

from sqlalchemy import delete, event, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.models.content_block import ContentBlock
from app.models.project import Project
from app.services.errors import DuplicateBlockIdError, StoreError

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class ProjectRowStore(ABC):
    """
    Row operations on the two project tables.

    Every method raises StoreError when the underlying store fails.
    """

    @abstractmethod
    async def insert_project(self, values: Row) -> Row:
        """Insert a project row and return it with its generated id and timestamps."""

    @abstractmethod
    async def update_project(self, project_id: UUID, values: Row) -> Optional[Row]:
        """Update a project row; None if no row has that id."""

    @abstractmethod
    async def delete_project(self, project_id: UUID) -> bool:
        """Delete a project row and, by cascade, its block rows. False if missing."""

    @abstractmethod
    async def fetch_project(self, project_id: UUID) -> Optional[Row]:
        ...

    @abstractmethod
    async def fetch_project_by_slug(self, slug: str) -> Optional[Row]:
        """Most recently created project row with this exact slug."""

    @abstractmethod
    async def fetch_projects(self) -> list[Row]:
        """All project rows, most recently created first."""

    @abstractmethod
    async def insert_blocks(self, rows: list[Row]) -> None:
        """Insert block rows in a single call; DuplicateBlockIdError if an id is taken."""

    @abstractmethod
    async def delete_blocks(self, project_id: UUID) -> int:
        """Delete every block row of a project; returns the number removed."""

    @abstractmethod
    async def fetch_blocks(self, project_ids: list[UUID]) -> list[Row]:
        ...


projects_table = Project.__table__
blocks_table = ContentBlock.__table__

# session.info key set by any write through SQLAlchemyRowStore
PROJECTS_CHANGED = "projects_changed"


def mark_projects_changed(session: Union[AsyncSession, Session]) -> None:
    session.info[PROJECTS_CHANGED] = True


def invalidate_after_commit(session: Union[AsyncSession, Session], invalidate: Callable[[], None]) -> None:
    """
    Call `invalidate` once the outer transaction of `session` commits, if the
    transaction wrote to the project tables.

    Readers that run between the write and the commit still see the old
    rows; invalidating on commit drops whatever they cached meanwhile.
    """
    sync_session = getattr(session, "sync_session", session)

    def _after_commit(committed: Session) -> None:
        if committed.info.pop(PROJECTS_CHANGED, False):
            invalidate()

    event.listen(sync_session, "after_commit", _after_commit)


class SQLAlchemyRowStore(ProjectRowStore):
    """
    PostgreSQL row store on an AsyncSession.

    Each call runs in its own SAVEPOINT so a failed statement is rolled back
    on its own and the caller can still issue follow-up statements (the
    compensating delete after a failed block insert) in the same request
    transaction. The outer transaction is committed by app.database.get_db.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _execute(self, operation: str, statement, params=None):
        try:
            async with self._session.begin_nested():
                if params is None:
                    return await self._session.execute(statement)
                return await self._session.execute(statement, params)
        except SQLAlchemyError as e:
            logger.error(f"Database {operation} failed: {e}")
            raise StoreError(f"Database {operation} failed", cause=e) from e

    async def _write(self, operation: str, statement, params=None):
        result = await self._execute(operation, statement, params)
        mark_projects_changed(self._session)
        return result

    async def insert_project(self, values: Row) -> Row:
        result = await self._write(
            "insert into projects",
            insert(projects_table).values(**values).returning(*projects_table.c),
        )
        return dict(result.mappings().one())

    async def update_project(self, project_id: UUID, values: Row) -> Optional[Row]:
        result = await self._write(
            "update of projects",
            update(projects_table)
            .where(projects_table.c.id == project_id)
            .values(**values)
            .returning(*projects_table.c),
        )
        row = result.mappings().one_or_none()
        return dict(row) if row is not None else None

    async def delete_project(self, project_id: UUID) -> bool:
        # content_blocks.project_id is ON DELETE CASCADE
        result = await self._write(
            "delete from projects",
            delete(projects_table).where(projects_table.c.id == project_id),
        )
        return result.rowcount > 0

    async def fetch_project(self, project_id: UUID) -> Optional[Row]:
        result = await self._execute(
            "select from projects",
            select(projects_table).where(projects_table.c.id == project_id),
        )
        row = result.mappings().one_or_none()
        return dict(row) if row is not None else None

    async def fetch_project_by_slug(self, slug: str) -> Optional[Row]:
        result = await self._execute(
            "select from projects",
            select(projects_table)
            .where(projects_table.c.slug == slug)
            .order_by(projects_table.c.created_at.desc())
            .limit(1),
        )
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def fetch_projects(self) -> list[Row]:
        result = await self._execute(
            "select from projects",
            select(projects_table).order_by(projects_table.c.created_at.desc()),
        )
        return [dict(row) for row in result.mappings().all()]

    async def insert_blocks(self, rows: list[Row]) -> None:
        if not rows:
            return
        try:
            async with self._session.begin_nested():
                await self._session.execute(insert(blocks_table), rows)
        except IntegrityError as e:
            # Only the primary key can collide; project_id and type are checked upstream
            logger.warning(f"Content block insert rejected: {e.orig}")
            raise DuplicateBlockIdError() from e
        except SQLAlchemyError as e:
            logger.error(f"Database insert into content_blocks failed: {e}")
            raise StoreError("Database insert into content_blocks failed", cause=e) from e
        mark_projects_changed(self._session)

    async def delete_blocks(self, project_id: UUID) -> int:
        result = await self._write(
            "delete from content_blocks",
            delete(blocks_table).where(blocks_table.c.project_id == project_id),
        )
        return result.rowcount

    async def fetch_blocks(self, project_ids: list[UUID]) -> list[Row]:
        if not project_ids:
            return []
        result = await self._execute(
            "select from content_blocks",
            select(blocks_table)
            .where(blocks_table.c.project_id.in_(project_ids))
            .order_by(blocks_table.c.order_index.asc()),
        )
        return [dict(row) for row in result.mappings().all()]
