"""
Floor plan collaborators: catalog lookup and upload storage.

The editor only needs a floor plan's identity and an image it can load.
These classes provide that contract over a JSON catalog file and a local
uploads directory. The requesting user is passed explicitly as a
UserContext on every catalog call.

Catalog format:
    {
      "projects": [
        {"id": "p1", "name": "Apartment", "userId": "demo-user",
         "floorPlans": [{"id": "fp1", "name": "Level 1", "imageUrl": "/uploads/l1.png"}]}
      ]
    }
"""

# Standard library imports
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

# Plancanvas imports
from plancanvas import config
from plancanvas.errors import ExternalServiceFailure, InputValidationError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads/"


@dataclass(frozen=True)
class UserContext:
    """Identity of the user on whose behalf catalog calls are made."""

    user_id: str


@dataclass
class FloorPlan:
    id:         str
    name:       str
    image_url:  str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "imageUrl": self.image_url}

    @classmethod
    def from_dict(cls, data: dict) -> "FloorPlan":
        return cls(id=str(data["id"]), name=str(data.get("name", "")), image_url=str(data.get("imageUrl", "")))


@dataclass
class Project:
    id:             str
    name:           str
    user_id:        str
    floor_plans:    List[FloorPlan] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id":         self.id,
            "name":       self.name,
            "userId":     self.user_id,
            "floorPlans": [fp.to_dict() for fp in self.floor_plans],
        }


class JsonFloorPlanRepository:
    """Projects and floor plans stored in a single JSON catalog file."""

    def __init__(self, catalog_path: Union[Path, str] = config.CATALOG_PATH):
        self.catalog_path = Path(catalog_path)

    def _load(self) -> List[Project]:
        if not self.catalog_path.exists():
            return []
        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [
                Project(
                    id=str(p["id"]),
                    name=str(p.get("name", "")),
                    user_id=str(p.get("userId", "")),
                    floor_plans=[FloorPlan.from_dict(fp) for fp in p.get("floorPlans", [])],
                )
                for p in data.get("projects", [])
            ]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise ExternalServiceFailure(f"Could not read catalog {self.catalog_path}: {exc}") from exc

    def _save(self, projects: List[Project]) -> None:
        try:
            self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.catalog_path, 'w', encoding='utf-8') as f:
                json.dump({"projects": [p.to_dict() for p in projects]}, f, indent=2)
        except OSError as exc:
            raise ExternalServiceFailure(f"Could not write catalog {self.catalog_path}: {exc}") from exc

    def list_projects(self, user: UserContext) -> List[Project]:
        return [p for p in self._load() if p.user_id == user.user_id]

    def get(self, floor_plan_id: str, user: UserContext) -> FloorPlan:
        """Look up a floor plan visible to ``user``.

        Raises:
            ExternalServiceFailure: If the catalog is unreadable or the floor
                plan does not exist for this user.
        """
        for project in self.list_projects(user):
            for fp in project.floor_plans:
                if fp.id == floor_plan_id:
                    return fp
        raise ExternalServiceFailure(f"Floor plan '{floor_plan_id}' not found for user '{user.user_id}'")

    def create_project(self, name: str, user: UserContext) -> Project:
        if not name or not user.user_id:
            raise InputValidationError("Missing name or userId")
        projects = self._load()
        project = Project(id=uuid.uuid4().hex[:12], name=name, user_id=user.user_id)
        projects.append(project)
        self._save(projects)
        logger.info(f"Created project '{name}' ({project.id}) for {user.user_id}")
        return project

    def add_floor_plan(self, project_id: str, name: str, image_url: str, user: UserContext) -> FloorPlan:
        if not project_id or not name or not image_url:
            raise InputValidationError("Missing required fields")
        projects = self._load()
        for project in projects:
            if project.id == project_id and project.user_id == user.user_id:
                floor_plan = FloorPlan(id=uuid.uuid4().hex[:12], name=name, image_url=image_url)
                project.floor_plans.insert(0, floor_plan)
                self._save(projects)
                logger.info(f"Added floor plan '{name}' to project {project_id}")
                return floor_plan
        raise ExternalServiceFailure(f"Project '{project_id}' not found for user '{user.user_id}'")


class LocalUploadStore:
    """Saves uploaded floor plan files and hands back a URL for them."""

    def __init__(self, uploads_dir: Union[Path, str] = config.UPLOADS_DIR):
        self.uploads_dir = Path(uploads_dir)

    def save(self, filename: str, content: bytes) -> str:
        name = Path(filename).name
        if not name:
            raise InputValidationError("No file uploaded")
        if Path(name).suffix.lower() not in config.UPLOAD_EXTENSIONS:
            raise InputValidationError(f"Unsupported file type '{name}'. Allowed: {', '.join(config.UPLOAD_EXTENSIONS)}")
        try:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            (self.uploads_dir / name).write_bytes(content)
        except OSError as exc:
            raise ExternalServiceFailure(f"Upload of '{name}' failed: {exc}") from exc
        logger.info(f"Stored upload {name} ({len(content)} bytes)")
        return f"{UPLOAD_URL_PREFIX}{name}"

    def resolve(self, url: str) -> Optional[Path]:
        """Local path behind an upload URL, or None for foreign URLs."""
        if not url.startswith(UPLOAD_URL_PREFIX):
            return None
        path = self.uploads_dir / url[len(UPLOAD_URL_PREFIX):]
        return path if path.exists() else None
