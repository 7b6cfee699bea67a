"""
Project stores.

The catalog keeps its records in a store object. Two implementations:
an in-process store that starts empty and is lost on restart, and a
thin repository over a Supabase table.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from projectbank.config import Settings
from projectbank.models.project import Project
from projectbank.services.database import SupabaseClient, get_supabase_client

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Storage backend error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ProjectStore(ABC):
    """
    Repository interface for project records.

    Implementations hand out copies: mutating a returned Project never
    changes stored state until it is passed back to save().
    """

    @abstractmethod
    def all(self) -> list[Project]:
        """Every project, in insertion order."""

    @abstractmethod
    def get(self, project_id: str) -> Optional[Project]:
        """Project by id, or None."""

    @abstractmethod
    def add(self, project: Project) -> Project:
        """Append a new project."""

    @abstractmethod
    def save(self, project: Project) -> Project:
        """Overwrite an existing project."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored projects."""

    def ping(self) -> bool:
        """Check the backend is reachable."""
        return True

    @property
    def backend(self) -> str:
        return "unknown"


class InMemoryProjectStore(ProjectStore):
    """Process-local store. Empty at start, nothing persisted."""

    def __init__(self):
        self._projects: dict[str, Project] = {}

    def all(self) -> list[Project]:
        return [p.model_copy(deep=True) for p in self._projects.values()]

    def get(self, project_id: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    def add(self, project: Project) -> Project:
        if project.id in self._projects:
            raise StoreError(f"Project {project.id} already exists")
        self._projects[project.id] = project.model_copy(deep=True)
        return project

    def save(self, project: Project) -> Project:
        if project.id not in self._projects:
            raise StoreError(f"Project {project.id} does not exist")
        self._projects[project.id] = project.model_copy(deep=True)
        return project

    def count(self) -> int:
        return len(self._projects)

    @property
    def backend(self) -> str:
        return "memory"


class SupabaseProjectStore(ProjectStore):
    """
    Project store backed by a Supabase table.

    One row per project with snake_case columns; tags, ratings and
    files are JSON columns. Rows are validated back into Project models.
    """

    def __init__(self, client: SupabaseClient, table: str = "project"):
        self.client = client
        self.table = table

    def _rows(self, result) -> list[dict]:
        return result.data or []

    def _to_row(self, project: Project) -> dict:
        return project.model_dump(mode="json")

    def all(self) -> list[Project]:
        try:
            result = self.client.table(self.table)\
                .select("*")\
                .order("created_at")\
                .execute()
        except Exception as e:
            logger.exception(f"Error listing projects from {self.table}: {e}")
            raise StoreError(f"Database error: {str(e)}")

        return [Project.model_validate(row) for row in self._rows(result)]

    def get(self, project_id: str) -> Optional[Project]:
        try:
            result = self.client.table(self.table)\
                .select("*")\
                .eq("id", project_id)\
                .execute()
        except Exception as e:
            logger.exception(f"Error getting project {project_id}: {e}")
            raise StoreError(f"Database error: {str(e)}")

        rows = self._rows(result)
        if not rows:
            return None
        return Project.model_validate(rows[0])

    def add(self, project: Project) -> Project:
        try:
            result = self.client.table(self.table)\
                .insert(self._to_row(project))\
                .execute()
        except Exception as e:
            logger.exception(f"Error inserting project {project.id}: {e}")
            raise StoreError(f"Database error: {str(e)}")

        if not self._rows(result):
            raise StoreError("Failed to create project")
        return project

    def save(self, project: Project) -> Project:
        row = self._to_row(project)
        row.pop("id")
        try:
            result = self.client.table(self.table)\
                .update(row)\
                .eq("id", project.id)\
                .execute()
        except Exception as e:
            logger.exception(f"Error updating project {project.id}: {e}")
            raise StoreError(f"Database error: {str(e)}")

        if not self._rows(result):
            raise StoreError(f"Project {project.id} does not exist")
        return project

    def count(self) -> int:
        try:
            result = self.client.table(self.table)\
                .select("id", count="exact")\
                .execute()
        except Exception as e:
            logger.exception(f"Error counting projects: {e}")
            raise StoreError(f"Database error: {str(e)}")
        return result.count or 0

    def ping(self) -> bool:
        try:
            self.client.table(self.table).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    @property
    def backend(self) -> str:
        return "supabase"


def create_project_store(settings: Settings) -> ProjectStore:
    """
    Build the store selected by configuration.

    Args:
        settings: Application settings.

    Returns:
        A fresh ProjectStore.
    """
    if settings.storage_backend == "supabase":
        client = get_supabase_client(settings)
        logger.info(f"Using Supabase project store (table={settings.supabase_project_table})")
        return SupabaseProjectStore(client, table=settings.supabase_project_table)

    logger.info("Using in-memory project store")
    return InMemoryProjectStore()
