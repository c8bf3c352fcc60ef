import json

import pytest

from app import migrate
from app.config import get_settings
from app.services.errors import ValidationError
from app.services.file_project_store import FileProjectRepository
from app.services.projects import ProjectService

from conftest import IMAGE_URL


def prototype_record(title: str, **extra) -> dict:
    record = {
        "id": "1700000000000",
        "title": title,
        "summary": "From the prototype",
        "image": IMAGE_URL,
        "tags": ["legacy"],
        "description": [
            {"id": "b1", "type": "paragraph", "content": "First"},
            {"id": "b2", "type": "list", "content": ["x", "y"]},
        ],
        "createdAt": "2024-01-01T00:00:00Z",
    }
    record.update(extra)
    return record


def test_load_source_accepts_array_and_store_document(tmp_path):
    array_file = tmp_path / "array.json"
    array_file.write_text(json.dumps([prototype_record("A")]), encoding="utf-8")
    doc_file = tmp_path / "doc.json"
    doc_file.write_text(json.dumps({"projects": [prototype_record("B")]}), encoding="utf-8")

    assert migrate.load_source(array_file)[0]["title"] == "A"
    assert migrate.load_source(doc_file)[0]["title"] == "B"


@pytest.mark.parametrize("content", ['{"items": []}', "not json", '"text"'])
def test_load_source_rejects_other_shapes(tmp_path, content):
    source = tmp_path / "bad.json"
    source.write_text(content, encoding="utf-8")

    with pytest.raises(ValidationError):
        migrate.load_source(source)


def test_to_project_input_drops_prototype_ids():
    data = migrate.to_project_input(prototype_record("Legacy Project"))

    assert data.title == "Legacy Project"
    assert all(block.id is None for block in data.description)


@pytest.mark.asyncio
async def test_migrate_projects_collects_failures(tmp_path):
    service = ProjectService(FileProjectRepository(tmp_path / "projects.json"))
    records = [
        prototype_record("Good One"),
        prototype_record("Bad Image", image="not a url"),
        "not an object",
    ]

    result = await migrate.migrate_projects(records, service)

    assert result.success == 1
    assert result.failed == 2
    assert result.errors[0].startswith("Bad Image:")
    assert [p.slug for p in await service.list_all()] == ["good-one"]


def test_main_into_file_store(tmp_path, monkeypatch):
    target = tmp_path / "store" / "projects.json"
    source = tmp_path / "legacy.json"
    source.write_text(json.dumps([prototype_record("One"), prototype_record("Two")]), encoding="utf-8")
    settings = get_settings()
    monkeypatch.setattr(settings, "project_store", "file")
    monkeypatch.setattr(settings, "projects_file", str(target))

    assert migrate.main(["--source", str(source)]) == 0

    titles = {p["title"] for p in json.loads(target.read_text(encoding="utf-8"))["projects"]}
    assert titles == {"One", "Two"}


def test_main_reports_unreadable_source(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "project_store", "file")
    monkeypatch.setattr(get_settings(), "projects_file", str(tmp_path / "p.json"))

    assert migrate.main(["--source", str(tmp_path / "missing.json")]) == 1
