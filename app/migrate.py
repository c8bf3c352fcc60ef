"""
Import prototype projects into the configured project store.

The first version of the site kept projects in the browser as a JSON array
(or, later, in the file store). This script replays each of those projects
through the normal create path so they get fresh ids, derived slugs where
missing, and properly ordered content blocks.

Run with: python -m app.migrate --source data/projects.json
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from app.config import get_settings
from app.schemas.project import ProjectInput
from app.services.errors import PortfolioError, ValidationError
from app.services.projects import ProjectService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Outcome of a migration run."""

    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


def load_source(path: Path) -> list[dict[str, Any]]:
    """
    Read prototype projects from a JSON file.

    Accepts a bare array of projects or a file-store document
    ({"projects": [...]}).

    Raises:
        ValidationError: If the file is not one of those shapes
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("projects")
    if not isinstance(raw, list):
        raise ValidationError(f"{path} does not contain a list of projects")
    return raw


def to_project_input(record: dict[str, Any]) -> ProjectInput:
    """
    Validate one prototype record.

    Prototype ids (project and block) are dropped; the target store assigns
    new ones.
    """
    data = {key: value for key, value in record.items() if key not in ("id", "createdAt", "updatedAt")}
    blocks = data.get("description")
    if isinstance(blocks, list):
        data["description"] = [
            {key: value for key, value in block.items() if key != "id"}
            if isinstance(block, dict) else block
            for block in blocks
        ]
    return ProjectInput.model_validate(data)


async def migrate_projects(records: list[dict[str, Any]], service: ProjectService) -> MigrationResult:
    """Create every record through `service`, collecting per-project failures."""
    result = MigrationResult()

    for record in records:
        title = (record.get("title") or "(untitled)") if isinstance(record, dict) else "(invalid)"
        try:
            if not isinstance(record, dict):
                raise ValidationError("Project entry is not an object")
            project = await service.create(to_project_input(record))
        except PydanticValidationError as e:
            result.failed += 1
            result.errors.append(f"{title}: {e.errors()[0].get('msg', 'invalid project')}")
            continue
        except PortfolioError as e:
            result.failed += 1
            result.errors.append(f"{title}: {e.message}")
            continue

        result.success += 1
        logger.info(f"Migrated {title} -> {project.id}")

    return result


async def run(source: Path) -> MigrationResult:
    """Migrate `source` into the store selected by PROJECT_STORE."""
    from app.services.file_project_store import FileProjectRepository

    settings = get_settings()
    records = load_source(source)
    logger.info(f"Migrating {len(records)} projects from {source} into {settings.project_store} store")

    if settings.project_store == "file":
        repository = FileProjectRepository(Path(settings.projects_file))
        return await migrate_projects(records, ProjectService(repository))

    from app.database import async_session_maker, engine
    from app.services.project_store import SQLAlchemyRowStore
    from app.services.project_sync import ProjectSynchronizer

    try:
        async with async_session_maker() as session:
            service = ProjectService(ProjectSynchronizer(SQLAlchemyRowStore(session)))
            result = await migrate_projects(records, service)
            await session.commit()
    finally:
        await engine.dispose()
    return result


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the migration script."""
    parser = argparse.ArgumentParser(description="Import prototype projects into the project store")
    parser.add_argument("--source", type=Path, required=True, help="JSON file with the projects to import")
    args = parser.parse_args(argv)

    try:
        result = asyncio.run(run(args.source))
    except PortfolioError as e:
        logger.error(f"Migration aborted: {e.message}")
        return 1

    logger.info(f"Migration finished: {result.success} succeeded, {result.failed} failed")
    for error in result.errors:
        logger.warning(error)
    return 0 if result.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
