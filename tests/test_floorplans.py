# Standard library imports
import json

# Third-party imports
import pytest

# Plancanvas imports
from plancanvas.errors import ExternalServiceFailure, InputValidationError
from plancanvas.floorplans import FloorPlan, JsonFloorPlanRepository, LocalUploadStore, UserContext


@pytest.fixture
def catalog(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"projects": [
        {"id": "p1", "name": "Apartment", "userId": "alice",
         "floorPlans": [{"id": "fp1", "name": "Level 1", "imageUrl": "/uploads/l1.png"}]},
        {"id": "p2", "name": "Office", "userId": "bob", "floorPlans": []},
    ]}))
    return path


class TestJsonFloorPlanRepository:
    """Tests for catalog lookup scoped by user context"""

    def test_get_for_owner(self, catalog):
        repo = JsonFloorPlanRepository(catalog)
        fp = repo.get("fp1", UserContext("alice"))
        assert fp == FloorPlan(id="fp1", name="Level 1", image_url="/uploads/l1.png")

    def test_get_for_other_user_fails(self, catalog):
        with pytest.raises(ExternalServiceFailure):
            JsonFloorPlanRepository(catalog).get("fp1", UserContext("bob"))

    def test_list_projects_filters_by_user(self, catalog):
        projects = JsonFloorPlanRepository(catalog).list_projects(UserContext("bob"))
        assert [p.name for p in projects] == ["Office"]

    def test_missing_catalog_is_empty(self, tmp_path):
        assert JsonFloorPlanRepository(tmp_path / "none.json").list_projects(UserContext("x")) == []

    def test_corrupt_catalog(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ExternalServiceFailure):
            JsonFloorPlanRepository(path).list_projects(UserContext("x"))

    def test_create_project_and_add_floor_plan(self, tmp_path):
        repo = JsonFloorPlanRepository(tmp_path / "cat.json")
        user = UserContext("carol")
        project = repo.create_project("House", user)
        fp = repo.add_floor_plan(project.id, "Ground", "/uploads/g.png", user)
        assert repo.get(fp.id, user).name == "Ground"

    def test_add_floor_plan_requires_fields(self, tmp_path):
        repo = JsonFloorPlanRepository(tmp_path / "cat.json")
        with pytest.raises(InputValidationError):
            repo.add_floor_plan("p1", "", "/uploads/g.png", UserContext("carol"))


class TestLocalUploadStore:
    """Tests for storing uploads and resolving their URLs"""

    def test_save_and_resolve(self, tmp_path):
        uploads = LocalUploadStore(tmp_path / "uploads")
        url = uploads.save("plan.png", b"\x89PNG")
        assert url == "/uploads/plan.png"
        assert uploads.resolve(url).read_bytes() == b"\x89PNG"

    def test_rejects_unsupported_extension(self, tmp_path):
        with pytest.raises(InputValidationError):
            LocalUploadStore(tmp_path).save("notes.txt", b"")

    def test_resolve_foreign_url(self, tmp_path):
        assert LocalUploadStore(tmp_path).resolve("https://example.com/a.png") is None
