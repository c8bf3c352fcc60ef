"""
Error taxonomy for the projects service.

Services raise these; app.main maps each to an HTTP status and renders
{"error": message}.
"""
from typing import Optional


class PortfolioError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortfolioError):
    """Missing/malformed input or a content/type mismatch."""

    status_code = 400


class NotFoundError(PortfolioError):
    """Unknown resource id."""

    status_code = 404


class ProjectNotFoundError(NotFoundError):
    """No project with the requested id or slug."""

    def __init__(self, key: object):
        super().__init__("Project not found")
        self.key = key


class UnauthorizedError(PortfolioError):
    """Authentication missing or rejected by the provider."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class RateLimitedError(PortfolioError):
    """Fixed-window limit exhausted for the caller."""

    status_code = 429

    def __init__(
        self,
        retry_after: int,
        message: str = "Too many requests. Please try again later.",
    ):
        super().__init__(message)
        self.retry_after = retry_after


class StoreError(PortfolioError):
    """An external store (database, object storage, provider) call failed."""

    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StorageUploadError(StoreError):
    """Image upload to object storage failed."""


class ContactDeliveryError(StoreError):
    """The email relay rejected or failed to deliver a contact message."""


class DuplicateBlockIdError(ValidationError):
    """A supplied content block id is already used by another block."""

    def __init__(self, message: str = "Content block ids must be unique"):
        super().__init__(message)
