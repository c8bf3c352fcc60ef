"""
JSON-file project repository.

Keeps every project in a single JSON document, loaded on init and written
after every mutation. Selected with PROJECT_STORE=file for local use and
demos without a database; app.migrate copies its contents into PostgreSQL.

Writes go to a temporary file that replaces the document, and the in-memory
copy changes only once that replace has succeeded.
"""
import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from app.schemas.project import Project, ProjectDraft
from app.services.errors import DuplicateBlockIdError, ProjectNotFoundError, StoreError
from app.services.projects import ProjectRepository

logger = logging.getLogger(__name__)


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization. Projects are kept newest first."""

    projects: list[Project] = Field(default_factory=list)


class FileProjectRepository(ProjectRepository):
    """ProjectRepository persisted to one JSON file."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> _StoreData:
        if not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValueError) as e:
            logger.error(f"Corrupt project store at {self._path}: {e}")
            raise StoreError(f"Project store file {self._path} is unreadable", cause=e) from e

    def _commit(self, data: _StoreData) -> None:
        """Write `data` to disk, then make it the current state."""
        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(data.model_dump_json(indent=2, by_alias=True))
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(f"Failed to write project store {self._path}: {e}")
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreError("Failed to write project store", cause=e) from e

        self._data = data

    def _index_of(self, project_id: UUID) -> int:
        for index, project in enumerate(self._data.projects):
            if project.id == project_id:
                return index
        raise ProjectNotFoundError(project_id)

    def _check_block_ids(self, draft: ProjectDraft, owner: Optional[UUID]) -> None:
        """Block ids may not belong to a block of any other project."""
        wanted = {block.id for block in draft.description}
        for project in self._data.projects:
            if project.id == owner:
                continue
            if any(block.id in wanted for block in project.description):
                raise DuplicateBlockIdError()

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, project_id: UUID) -> Project:
        return self._data.projects[self._index_of(project_id)]

    async def get_by_slug(self, slug: str) -> Project:
        for project in self._data.projects:
            if project.slug == slug:
                return project
        raise ProjectNotFoundError(slug)

    async def list_all(self) -> list[Project]:
        return list(self._data.projects)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _build(self, project_id: UUID, draft: ProjectDraft, created_at: Optional[datetime]) -> Project:
        now = self._now()
        return Project(
            id=project_id,
            created_at=created_at or now,
            updated_at=now,
            **draft.model_dump(),
        )

    async def create(self, draft: ProjectDraft) -> Project:
        with self._lock:
            self._check_block_ids(draft, owner=None)
            project = self._build(uuid4(), draft, created_at=None)
            self._commit(_StoreData(projects=[project, *self._data.projects]))
        return project

    async def update(self, project_id: UUID, draft: ProjectDraft) -> Project:
        with self._lock:
            index = self._index_of(project_id)
            self._check_block_ids(draft, owner=project_id)
            project = self._build(project_id, draft, created_at=self._data.projects[index].created_at)
            projects = list(self._data.projects)
            projects[index] = project
            self._commit(_StoreData(projects=projects))
        return project

    async def delete(self, project_id: UUID) -> None:
        with self._lock:
            index = self._index_of(project_id)
            projects = list(self._data.projects)
            del projects[index]
            self._commit(_StoreData(projects=projects))
