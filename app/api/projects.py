"""
Project management API endpoints.

Reads are public. Create is rate-limited per client IP and requires
authentication; update and delete require authentication.
"""
import logging
from pathlib import Path
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import AuthenticatedUser, get_current_user
from app.config import get_settings
from app.database import get_db
from app.schemas.project import DeleteProjectResponse, Project, ProjectInput
from app.services.file_project_store import FileProjectRepository
from app.services.project_store import SQLAlchemyRowStore, invalidate_after_commit
from app.services.project_sync import ProjectSynchronizer
from app.services.projects import ProjectListCache, ProjectRepository, ProjectService
from app.services.rate_limit import RateLimit

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/projects", tags=["Projects"])

create_rate_limit = RateLimit(
    "projects-create",
    limit=settings.project_create_limit,
    window_s=settings.project_create_window_s,
)


# =============================================================================
# Dependencies
# =============================================================================


def get_file_repository(request: Request) -> FileProjectRepository:
    """App-scoped file repository, opened on first use."""
    repository = getattr(request.app.state, "file_repository", None)
    if repository is None:
        repository = FileProjectRepository(Path(settings.projects_file))
        request.app.state.file_repository = repository
        logger.info(f"Using file project store at {repository.path}")
    return repository


def get_project_cache(request: Request) -> ProjectListCache:
    cache = getattr(request.app.state, "project_cache", None)
    if cache is None:
        cache = ProjectListCache()
        request.app.state.project_cache = cache
    return cache


def get_project_repository(
    request: Request,
    db: AsyncSession = Depends(get_db),
    cache: ProjectListCache = Depends(get_project_cache),
) -> ProjectRepository:
    """Repository for the configured persistence strategy (PROJECT_STORE)."""
    if settings.project_store == "file":
        return get_file_repository(request)

    # get_db commits after the handler returns; drop listings cached before that
    invalidate_after_commit(db, cache.invalidate)
    return ProjectSynchronizer(SQLAlchemyRowStore(db))


def get_project_service(
    repository: ProjectRepository = Depends(get_project_repository),
    cache: ProjectListCache = Depends(get_project_cache),
) -> ProjectService:
    return ProjectService(repository, cache=cache)


# =============================================================================
# Public reads (static paths before /{project_id})
# =============================================================================


@router.get(
    "",
    response_model=list[Project],
    summary="List projects",
    description="All projects with their content blocks, most recent first.",
)
async def list_projects(
    service: ProjectService = Depends(get_project_service),
) -> list[Project]:
    return await service.list_all()


@router.get(
    "/slugs",
    response_model=list[str],
    summary="List project slugs",
)
async def list_project_slugs(
    service: ProjectService = Depends(get_project_service),
) -> list[str]:
    """Slugs of all projects, for static page generation."""
    return await service.list_slugs()


@router.get(
    "/slug/{slug}",
    response_model=Project,
    summary="Get a project by slug",
)
async def get_project_by_slug(
    slug: str,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    return await service.get_by_slug(slug)


@router.get(
    "/{project_id}",
    response_model=Project,
    summary="Get a project",
)
async def get_project(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    return await service.get_by_id(project_id)


# =============================================================================
# Authenticated writes
# =============================================================================


@router.post(
    "",
    response_model=Project,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    dependencies=[Depends(create_rate_limit)],
)
async def create_project(
    data: ProjectInput,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """
    Create a project with its ordered content blocks.

    The slug is derived from the title unless one is supplied.
    """
    project = await service.create(data)
    logger.info(f"Project {project.id} created by {current_user.email}")
    return project


@router.put(
    "/{project_id}",
    response_model=Project,
    summary="Replace a project",
)
async def update_project(
    project_id: UUID,
    data: ProjectInput,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """
    Replace every field of a project.

    The block list is replaced as a whole: blocks not in the request are
    removed, and blocks without an id get a new one.
    """
    project = await service.update(project_id, data)
    logger.info(f"Project {project_id} updated by {current_user.email}")
    return project


@router.delete(
    "/{project_id}",
    response_model=DeleteProjectResponse,
    summary="Delete a project",
)
async def delete_project(
    project_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> DeleteProjectResponse:
    """Delete a project and all of its content blocks."""
    await service.delete(project_id)
    logger.info(f"Project {project_id} deleted by {current_user.email}")
    return DeleteProjectResponse()
