"""
Business logic services for the portfolio projects API.
"""
from app.services.contact import ContactService, get_contact_service
from app.services.errors import (
    ContactDeliveryError,
    DuplicateBlockIdError,
    NotFoundError,
    PortfolioError,
    ProjectNotFoundError,
    RateLimitedError,
    StorageUploadError,
    StoreError,
    UnauthorizedError,
    ValidationError,
)
from app.services.file_project_store import FileProjectRepository
from app.services.project_store import ProjectRowStore, SQLAlchemyRowStore
from app.services.project_sync import ProjectSynchronizer, group_blocks_by_project
from app.services.projects import (
    ProjectListCache,
    ProjectRepository,
    ProjectService,
    generate_slug,
)
from app.services.rate_limit import RateLimit, RateLimiter, RateLimitResult, get_client_ip
from app.services.s3 import S3Service, get_s3_service

__all__ = [
    # Project aggregate
    "ProjectService",
    "ProjectRepository",
    "ProjectListCache",
    "generate_slug",
    # Persistence
    "ProjectSynchronizer",
    "ProjectRowStore",
    "SQLAlchemyRowStore",
    "FileProjectRepository",
    "group_blocks_by_project",
    # Rate limiting
    "RateLimiter",
    "RateLimit",
    "RateLimitResult",
    "get_client_ip",
    # External collaborators
    "S3Service",
    "get_s3_service",
    "ContactService",
    "get_contact_service",
    # Errors
    "PortfolioError",
    "ValidationError",
    "DuplicateBlockIdError",
    "NotFoundError",
    "ProjectNotFoundError",
    "UnauthorizedError",
    "RateLimitedError",
    "StoreError",
    "StorageUploadError",
    "ContactDeliveryError",
]
