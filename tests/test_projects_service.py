from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.schemas.project import Project, ProjectDraft, ProjectInput
from app.services.errors import ProjectNotFoundError, StoreError, ValidationError
from app.services.projects import (
    ProjectListCache,
    ProjectRepository,
    ProjectService,
    generate_slug,
)


class DummyRepository(ProjectRepository):
    """Records calls and keeps projects in a list, newest first."""

    def __init__(self):
        self.projects: list[Project] = []
        self.list_calls = 0
        self.fail_create = False

    async def create(self, draft: ProjectDraft) -> Project:
        if self.fail_create:
            raise StoreError("insert failed")
        project = Project(id=uuid4(), **draft.model_dump())
        self.projects.insert(0, project)
        return project

    async def update(self, project_id, draft: ProjectDraft) -> Project:
        for index, project in enumerate(self.projects):
            if project.id == project_id:
                updated = Project(id=project_id, **draft.model_dump())
                self.projects[index] = updated
                return updated
        raise ProjectNotFoundError(project_id)

    async def delete(self, project_id) -> None:
        before = len(self.projects)
        self.projects = [p for p in self.projects if p.id != project_id]
        if len(self.projects) == before:
            raise ProjectNotFoundError(project_id)

    async def get_by_id(self, project_id) -> Project:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise ProjectNotFoundError(project_id)

    async def get_by_slug(self, slug: str) -> Project:
        for project in self.projects:
            if project.slug == slug:
                return project
        raise ProjectNotFoundError(slug)

    async def list_all(self) -> list[Project]:
        self.list_calls += 1
        return list(self.projects)


@pytest.fixture
def repository():
    return DummyRepository()


@pytest.fixture
def service(repository):
    return ProjectService(repository, cache=ProjectListCache())


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Hello, World! 2024", "hello-world-2024"),
        ("  --Foo--  ", "foo"),
        ("Already-a-slug", "already-a-slug"),
        ("Ünïcode & Stuff", "n-code-stuff"),
        ("!!!", ""),
    ],
)
def test_generate_slug(title, expected):
    assert generate_slug(title) == expected


def test_build_draft_derives_slug_and_block_ids(project_payload):
    draft = ProjectService.build_draft(ProjectInput.model_validate(project_payload))

    assert draft.slug == "hello-world-2024"
    assert draft.tags == ["python", "fastapi"]
    assert [block.type.value for block in draft.description] == ["heading", "paragraph", "list"]
    assert draft.description[2].content == ["one", "two"]
    assert len({block.id for block in draft.description}) == 3


def test_build_draft_keeps_explicit_slug(project_payload):
    project_payload["slug"] = "custom-slug"
    draft = ProjectService.build_draft(ProjectInput.model_validate(project_payload))
    assert draft.slug == "custom-slug"


def test_build_draft_rejects_underivable_slug(project_payload):
    project_payload["title"] = "!!!"
    with pytest.raises(ValidationError):
        ProjectService.build_draft(ProjectInput.model_validate(project_payload))


@pytest.mark.parametrize("field", ["title", "summary", "image"])
def test_input_requires_display_fields(project_payload, field):
    project_payload[field] = "   "
    with pytest.raises(PydanticValidationError):
        ProjectInput.model_validate(project_payload)


def test_input_caps_tags_and_buttons(project_payload):
    project_payload["tags"] = [f"tag{i}" for i in range(6)]
    with pytest.raises(PydanticValidationError):
        ProjectInput.model_validate(project_payload)

    project_payload["tags"] = []
    project_payload["customButtons"] = [{"label": f"b{i}", "url": "https://example.com"} for i in range(3)]
    with pytest.raises(PydanticValidationError):
        ProjectInput.model_validate(project_payload)


@pytest.mark.asyncio
async def test_list_is_cached_until_mutation(service, repository, project_payload):
    assert await service.list_all() == []
    assert await service.list_all() == []
    assert repository.list_calls == 1

    created = await service.create(ProjectInput.model_validate(project_payload))

    listed = await service.list_all()
    assert [p.id for p in listed] == [created.id]
    assert repository.list_calls == 2

    await service.delete(created.id)
    assert await service.list_all() == []
    assert repository.list_calls == 3


@pytest.mark.asyncio
async def test_cache_invalidated_when_create_fails(service, repository, project_payload):
    await service.list_all()
    repository.fail_create = True

    with pytest.raises(StoreError):
        await service.create(ProjectInput.model_validate(project_payload))

    await service.list_all()
    assert repository.list_calls == 2


@pytest.mark.asyncio
async def test_cached_list_is_a_copy(service, project_payload):
    await service.create(ProjectInput.model_validate(project_payload))
    first = await service.list_all()
    first.clear()
    assert len(await service.list_all()) == 1


@pytest.mark.asyncio
async def test_list_slugs(service, project_payload):
    await service.create(ProjectInput.model_validate(project_payload))
    project_payload["title"] = "Second One"
    await service.create(ProjectInput.model_validate(project_payload))

    assert await service.list_slugs() == ["second-one", "hello-world-2024"]


@pytest.mark.asyncio
async def test_unknown_project_raises_not_found(service):
    with pytest.raises(ProjectNotFoundError):
        await service.get_by_id(uuid4())
    with pytest.raises(ProjectNotFoundError):
        await service.get_by_slug("missing")
    with pytest.raises(ProjectNotFoundError):
        await service.delete(uuid4())


def test_input_rejects_repeated_block_ids(project_payload):
    block_id = str(uuid4())
    project_payload["description"] = [
        {"id": block_id, "type": "paragraph", "content": "first"},
        {"id": block_id, "type": "paragraph", "content": "second"},
    ]
    with pytest.raises(PydanticValidationError, match="Duplicate content block id"):
        ProjectInput.model_validate(project_payload)


def test_input_allows_blocks_without_ids_alongside_supplied_ones(project_payload):
    project_payload["description"] = [
        {"id": str(uuid4()), "type": "paragraph", "content": "kept"},
        {"type": "paragraph", "content": "new"},
        {"type": "paragraph", "content": "also new"},
    ]
    draft = ProjectService.build_draft(ProjectInput.model_validate(project_payload))
    assert len({block.id for block in draft.description}) == 3


def test_input_rejects_overlong_tag(project_payload):
    project_payload["tags"] = ["x" * 101]
    with pytest.raises(PydanticValidationError, match="at most 100 characters"):
        ProjectInput.model_validate(project_payload)

    project_payload["tags"] = ["x" * 100]
    assert ProjectInput.model_validate(project_payload).tags == ["x" * 100]


@pytest.mark.parametrize("slug", ["Hello World!", "UPPER", "double--hyphen", "-leading", "trailing-", "ünï"])
def test_input_rejects_non_url_safe_slug(project_payload, slug):
    project_payload["slug"] = slug
    with pytest.raises(PydanticValidationError):
        ProjectInput.model_validate(project_payload)


@pytest.mark.parametrize("slug", ["foo", "hello-world-2024", "v2"])
def test_input_accepts_slugs_generate_slug_would_keep(project_payload, slug):
    project_payload["slug"] = slug
    assert ProjectInput.model_validate(project_payload).slug == slug
    assert generate_slug(slug) == slug
