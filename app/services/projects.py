"""
Project aggregate service.

ProjectService is the single entry point the API uses for projects. It
normalizes input (slug derivation, block ids), delegates persistence to a
ProjectRepository and keeps an explicit listing cache in step with every
mutation.
"""
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.schemas.project import Project, ProjectDraft, ProjectInput
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_slug(title: str) -> str:
    """
    Derive a URL-safe slug from a title.

    Lowercases, collapses every run of characters outside [a-z0-9] into a
    single "-" and strips leading/trailing separators.

    >>> generate_slug("Hello, World! 2024")
    'hello-world-2024'
    """
    return _NON_ALNUM.sub("-", title.lower()).strip("-")


class ProjectRepository(ABC):
    """
    Persistence capability set for projects.

    Implementations raise ProjectNotFoundError for unknown ids/slugs and
    StoreError when the backing store fails.
    """

    @abstractmethod
    async def create(self, draft: ProjectDraft) -> Project:
        """Persist a new project; the repository assigns its id."""

    @abstractmethod
    async def update(self, project_id: UUID, draft: ProjectDraft) -> Project:
        """Replace every field and the whole block sequence of a project."""

    @abstractmethod
    async def delete(self, project_id: UUID) -> None:
        """Remove a project together with all of its blocks."""

    @abstractmethod
    async def get_by_id(self, project_id: UUID) -> Project:
        ...

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Project:
        """Newest project whose stored slug equals slug exactly."""

    @abstractmethod
    async def list_all(self) -> list[Project]:
        """All projects, most recently created first."""


class ProjectListCache:
    """
    Holds the last project listing until a mutation invalidates it.

    One instance is owned by the application (app.state.project_cache) and
    shared by the per-request services.
    """

    def __init__(self):
        self._projects: Optional[list[Project]] = None

    def get(self) -> Optional[list[Project]]:
        if self._projects is None:
            return None
        return list(self._projects)

    def set(self, projects: list[Project]) -> None:
        self._projects = list(projects)

    def invalidate(self) -> None:
        self._projects = None

    @property
    def is_warm(self) -> bool:
        return self._projects is not None


class ProjectService:
    """Use cases for the Project aggregate."""

    def __init__(
        self,
        repository: ProjectRepository,
        cache: Optional[ProjectListCache] = None,
    ):
        self._repository = repository
        self._cache = cache if cache is not None else ProjectListCache()

    @staticmethod
    def build_draft(data: ProjectInput) -> ProjectDraft:
        """
        Normalize input into the repository write payload.

        Raises:
            ValidationError: If no slug was given and none can be derived
        """
        slug = data.slug or generate_slug(data.title)
        if not slug:
            raise ValidationError("Could not derive a slug from the title; provide one explicitly")

        return ProjectDraft(
            slug=slug,
            title=data.title,
            summary=data.summary,
            description=[block.to_block() for block in data.description],
            tags=list(data.tags),
            image=data.image,
            github_url=data.github_url,
            custom_buttons=list(data.custom_buttons),
        )

    async def list_all(self) -> list[Project]:
        cached = self._cache.get()
        if cached is not None:
            return cached

        projects = await self._repository.list_all()
        self._cache.set(projects)
        return projects

    async def list_slugs(self) -> list[str]:
        return [project.slug for project in await self.list_all()]

    async def get_by_id(self, project_id: UUID) -> Project:
        return await self._repository.get_by_id(project_id)

    async def get_by_slug(self, slug: str) -> Project:
        return await self._repository.get_by_slug(slug)

    async def create(self, data: ProjectInput) -> Project:
        draft = self.build_draft(data)
        try:
            project = await self._repository.create(draft)
        finally:
            self._cache.invalidate()

        logger.info(f"Created project {project.id} ({project.slug}) with {len(project.description)} blocks")
        return project

    async def update(self, project_id: UUID, data: ProjectInput) -> Project:
        draft = self.build_draft(data)
        try:
            project = await self._repository.update(project_id, draft)
        finally:
            self._cache.invalidate()

        logger.info(f"Updated project {project.id} ({project.slug}) with {len(project.description)} blocks")
        return project

    async def delete(self, project_id: UUID) -> None:
        try:
            await self._repository.delete(project_id)
        finally:
            self._cache.invalidate()

        logger.info(f"Deleted project {project_id}")
