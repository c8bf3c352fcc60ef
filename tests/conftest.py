from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import pytest

from app.services.errors import DuplicateBlockIdError, StoreError
from app.services.project_store import ProjectRowStore, Row

IMAGE_URL = "https://project-images.s3.us-east-1.amazonaws.com/cover.png"


class FakeRowStore(ProjectRowStore):
    """
    In-memory row store with the same contract as SQLAlchemyRowStore.

    Counts calls per operation, emulates ON DELETE CASCADE and the block
    primary key, and can be told to fail specific operations via `fail_on`.
    """

    def __init__(self):
        self.projects: dict[UUID, Row] = {}
        self.blocks: list[Row] = []
        self.calls: Counter = Counter()
        self.fail_on: set[str] = set()
        self._seq = 0

    def _call(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed")

    def _tick(self) -> datetime:
        self._seq += 1
        return datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=self._seq)

    async def insert_project(self, values: Row) -> Row:
        self._call("insert_project")
        now = self._tick()
        row = {"id": uuid4(), **values, "created_at": now, "updated_at": now}
        self.projects[row["id"]] = row
        return dict(row)

    async def update_project(self, project_id: UUID, values: Row) -> Optional[Row]:
        self._call("update_project")
        row = self.projects.get(project_id)
        if row is None:
            return None
        row.update(values, updated_at=self._tick())
        return dict(row)

    async def delete_project(self, project_id: UUID) -> bool:
        self._call("delete_project")
        if self.projects.pop(project_id, None) is None:
            return False
        self.blocks = [b for b in self.blocks if b["project_id"] != project_id]
        return True

    async def fetch_project(self, project_id: UUID) -> Optional[Row]:
        self._call("fetch_project")
        row = self.projects.get(project_id)
        return dict(row) if row is not None else None

    async def fetch_project_by_slug(self, slug: str) -> Optional[Row]:
        self._call("fetch_project_by_slug")
        matches = [r for r in self.projects.values() if r["slug"] == slug]
        if not matches:
            return None
        return dict(max(matches, key=lambda r: r["created_at"]))

    async def fetch_projects(self) -> list[Row]:
        self._call("fetch_projects")
        rows = sorted(self.projects.values(), key=lambda r: r["created_at"], reverse=True)
        return [dict(r) for r in rows]

    async def insert_blocks(self, rows: list[Row]) -> None:
        self._call("insert_blocks")
        taken = {b["id"] for b in self.blocks}
        ids = [r["id"] for r in rows]
        if len(set(ids)) != len(ids) or taken.intersection(ids):
            raise DuplicateBlockIdError()
        self.blocks.extend(dict(r) for r in rows)

    async def delete_blocks(self, project_id: UUID) -> int:
        self._call("delete_blocks")
        before = len(self.blocks)
        self.blocks = [b for b in self.blocks if b["project_id"] != project_id]
        return before - len(self.blocks)

    async def fetch_blocks(self, project_ids: list[UUID]) -> list[Row]:
        self._call("fetch_blocks")
        wanted = set(project_ids)
        rows = [dict(b) for b in self.blocks if b["project_id"] in wanted]
        return sorted(rows, key=lambda r: r["order_index"])


@pytest.fixture
def row_store():
    return FakeRowStore()


@pytest.fixture
def project_payload():
    """A valid create/update request body (camelCase, as the editor sends it)."""
    return {
        "title": "Hello, World! 2024",
        "summary": "A short summary",
        "image": IMAGE_URL,
        "tags": ["python", " fastapi ", ""],
        "githubUrl": "https://github.com/example/hello",
        "customButtons": [{"label": "Demo", "url": "https://example.com/demo"}],
        "description": [
            {"type": "heading", "content": "Overview"},
            {"type": "paragraph", "content": "Some text."},
            {"type": "list", "content": ["one", " two ", ""]},
        ],
    }
