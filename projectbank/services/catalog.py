"""
Project catalog service.

Owns the project collection (through a ProjectStore) and implements
listing with filter/sort/paginate, lookups, creation and updates,
view counting, rating, faculty review and aggregate statistics.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Optional
from uuid import uuid4

from pydantic import ValidationError

from projectbank.models.project import (
    FacultyValidationStatus,
    Project,
    ProjectPage,
    ProjectRating,
    ProjectStats,
    SortKey,
)
from projectbank.services.store import ProjectStore

logger = logging.getLogger(__name__)

ALL = "all"
DEFAULT_LIMIT = 20
DEFAULT_OFFSET = 0

# Fields a project's author may change after creation.
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "department",
    "year",
    "category",
    "level",
    "tags",
    "features",
    "supervisor",
    "collaborators",
    "github_repo",
    "deploy_link",
    "github_id",
    "gmail_id",
})

SETTABLE_VALIDATION_STATUSES = (
    FacultyValidationStatus.APPROVED,
    FacultyValidationStatus.DISAPPROVED,
)


class CatalogError(Exception):
    """Catalog operation error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ProjectNotFoundError(CatalogError):
    """No project with the requested id."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__("Project not found")


class InvalidInputError(CatalogError):
    """Operation arguments are out of range or malformed."""


@dataclass
class ProjectFilter:
    """Listing filters. None, empty or "all" disables a filter."""

    year: Optional[str] = None
    department: Optional[str] = None
    category: Optional[str] = None
    search: Optional[str] = None


# =============================================================================
# Pure helpers
# =============================================================================

def parse_non_negative_int(value: Any, default: int) -> int:
    """
    Parse a query value as a non-negative integer.

    Falls back to default for None, non-numeric or negative input
    instead of raising.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value >= 0 else default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _is_active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def filter_projects(projects: Iterable[Project], criteria: ProjectFilter) -> list[Project]:
    """Apply year, department, category and search filters in that order."""
    result = list(projects)

    if _is_active(criteria.year):
        result = [p for p in result if p.year == criteria.year]

    if _is_active(criteria.department):
        department = criteria.department.lower()
        result = [p for p in result if department in p.department.lower()]

    if _is_active(criteria.category):
        result = [p for p in result if p.category == criteria.category]

    if criteria.search:
        term = criteria.search.lower()
        result = [
            p for p in result
            if term in p.title.lower()
            or term in p.description.lower()
            or term in p.author.lower()
            or any(term in tag.lower() for tag in p.tags)
        ]

    return result


def resolve_sort_key(sort_by: Optional[str]) -> SortKey:
    """Map a raw sortBy value to a SortKey; unknown values mean recent."""
    try:
        return SortKey(sort_by)
    except ValueError:
        return SortKey.RECENT


def sort_projects(projects: list[Project], sort_by: Optional[str]) -> list[Project]:
    """Sort descending by the requested key. Ties keep their existing order."""
    key = resolve_sort_key(sort_by)

    if key == SortKey.POPULAR:
        return sorted(projects, key=lambda p: p.views, reverse=True)
    if key == SortKey.RATING:
        return sorted(projects, key=lambda p: p.rating, reverse=True)
    if key == SortKey.YEAR:
        return sorted(projects, key=lambda p: p.year, reverse=True)
    return sorted(projects, key=lambda p: p.created_at, reverse=True)


def average_rating(ratings: Iterable[ProjectRating]) -> float:
    """Mean of the rating values rounded half-up to one decimal, 0 when empty."""
    values = [r.rating for r in ratings]
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Catalog
# =============================================================================

class ProjectCatalog:
    """
    The project bank's single source of truth.

    Every operation runs under one re-entrant lock, so read-modify-write
    mutators (views, ratings) never lose updates when handlers run on
    worker threads. Authorization is not checked here; callers gate
    access before invoking mutators.

    Usage:
        catalog = ProjectCatalog(InMemoryProjectStore())
        project = catalog.create({...}, author_id="u1", author_name="Ada")
        page = catalog.list_projects(ProjectFilter(department="computer"), sort_by="popular")
        catalog.record_view(project.id)
    """

    def __init__(
        self,
        store: ProjectStore,
        clock: Optional[Callable[[], datetime]] = None,
        default_limit: int = DEFAULT_LIMIT,
    ):
        """
        Initialize the catalog.

        Args:
            store: Backing store for project records.
            clock: Returns the current time; defaults to UTC now.
            default_limit: Page size used when limit is missing or malformed.
        """
        self.store = store
        self.clock = clock or _utc_now
        self.default_limit = default_limit
        self._lock = threading.RLock()

    def _require(self, project_id: str) -> Project:
        project = self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _new_id(self) -> str:
        project_id = str(uuid4())
        while self.store.get(project_id) is not None:
            project_id = str(uuid4())
        return project_id

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_projects(
        self,
        criteria: Optional[ProjectFilter] = None,
        sort_by: Optional[str] = SortKey.RECENT.value,
        limit: Any = None,
        offset: Any = None,
    ) -> ProjectPage:
        """
        List projects matching the filters, sorted and paginated.

        Args:
            criteria: Filters to apply; None lists everything.
            sort_by: One of recent, popular, rating, year.
            limit: Page size; parsed leniently.
            offset: Items to skip; parsed leniently.

        Returns:
            ProjectPage with the page slice, filtered total and has_more.
        """
        limit_num = parse_non_negative_int(limit, self.default_limit)
        offset_num = parse_non_negative_int(offset, DEFAULT_OFFSET)

        with self._lock:
            projects = self.store.all()

        matched = filter_projects(projects, criteria or ProjectFilter())
        ordered = sort_projects(matched, sort_by)
        total = len(ordered)

        return ProjectPage(
            projects=ordered[offset_num:offset_num + limit_num],
            total=total,
            has_more=offset_num + limit_num < total,
        )

    def get(self, project_id: str) -> Project:
        """Get a project by id. Raises ProjectNotFoundError."""
        with self._lock:
            return self._require(project_id)

    def stats(self) -> ProjectStats:
        """Counts by year, department and category plus totals, over every project."""
        with self._lock:
            projects = self.store.all()

        return ProjectStats(
            by_year=dict(Counter(p.year for p in projects)),
            by_department=dict(Counter(p.department for p in projects)),
            by_category=dict(Counter(p.category for p in projects)),
            total=len(projects),
            total_views=sum(p.views for p in projects),
        )

    def available_years(self) -> list[str]:
        """Distinct years, newest first (string order)."""
        with self._lock:
            projects = self.store.all()
        return sorted({p.year for p in projects}, reverse=True)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, fields: dict, author_id: str, author_name: str) -> Project:
        """
        Create a project authored by the given user.

        Args:
            fields: Descriptive fields supplied by the caller.
            author_id: Id of the authenticated author.
            author_name: Display name of the author.

        Returns:
            The stored project.

        Raises:
            InvalidInputError: If required fields are missing or malformed.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Unsupported fields: {', '.join(sorted(unknown))}")

        with self._lock:
            now = self.clock()
            data = {
                **fields,
                "tags": list(fields.get("tags") or []),
                "id": self._new_id(),
                "author": author_name,
                "author_id": author_id,
                "views": 0,
                "rating": 0.0,
                "ratings": [],
                "files": [],
                "faculty_validation": FacultyValidationStatus.PENDING,
                "created_at": now,
                "updated_at": now,
            }
            try:
                project = Project.model_validate(data)
            except ValidationError as e:
                raise InvalidInputError(_describe_validation_error(e))

            self.store.add(project)

        logger.info(f"Created project {project.id} for user {author_id}")
        return project

    def update(self, project_id: str, fields: dict) -> Project:
        """
        Merge descriptive fields onto an existing project.

        Unspecified fields are left untouched and updated_at is refreshed.

        Raises:
            ProjectNotFoundError: If the id is unknown.
            InvalidInputError: If a protected field is supplied or a value is invalid.
        """
        protected = set(fields) - UPDATABLE_FIELDS
        if protected:
            raise InvalidInputError(f"Fields cannot be updated: {', '.join(sorted(protected))}")

        with self._lock:
            current = self._require(project_id)
            merged = {**current.model_dump(), **fields, "updated_at": self.clock()}
            try:
                project = Project.model_validate(merged)
            except ValidationError as e:
                raise InvalidInputError(_describe_validation_error(e))
            self.store.save(project)

        logger.info(f"Updated project {project_id} ({', '.join(sorted(fields)) or 'no fields'})")
        return project

    def record_view(self, project_id: str) -> int:
        """Increment the view counter by one and return the new count."""
        with self._lock:
            project = self._require(project_id)
            project.views += 1
            self.store.save(project)
            return project.views

    def rate(self, project_id: str, rater_id: str, value: Any) -> float:
        """
        Record a rater's score and return the new average.

        A rater who has already rated the project has their score replaced.

        Raises:
            ProjectNotFoundError: If the id is unknown.
            InvalidInputError: If value is not an integer from 1 to 5.
        """
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise InvalidInputError("Rating must be an integer between 1 and 5")
        if not rater_id:
            raise InvalidInputError("Rater id is required")

        with self._lock:
            project = self._require(project_id)

            for entry in project.ratings:
                if entry.user_id == rater_id:
                    entry.rating = value
                    break
            else:
                project.ratings.append(ProjectRating(user_id=rater_id, rating=value))

            project.rating = average_rating(project.ratings)
            self.store.save(project)

        logger.info(f"Project {project_id} rated {value} by {rater_id} (avg {project.rating})")
        return project.rating

    def set_faculty_validation(
        self,
        project_id: str,
        status: Any,
        comments: Optional[str] = None,
    ) -> Project:
        """
        Approve or disapprove a project.

        The previous decision and comments are overwritten; pending cannot be set.

        Raises:
            ProjectNotFoundError: If the id is unknown.
            InvalidInputError: If status is not approved or disapproved.
        """
        try:
            decision = FacultyValidationStatus(status)
        except ValueError:
            decision = None
        if decision not in SETTABLE_VALIDATION_STATUSES:
            raise InvalidInputError("Status must be 'approved' or 'disapproved'")

        with self._lock:
            project = self._require(project_id)
            project.faculty_validation = decision
            project.faculty_comments = comments
            project.updated_at = self.clock()
            self.store.save(project)

        logger.info(f"Project {project_id} marked {decision.value}")
        return project


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid value"))
    return "; ".join(parts) or "Invalid input"
