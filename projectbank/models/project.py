"""
Project Pydantic models.

Models for the project bank: the stored record, request bodies
and the response envelopes returned by the project routes.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from projectbank.models.common import CamelModel


class FacultyValidationStatus(str, Enum):
    """Faculty review state of a project."""

    PENDING = "pending"
    APPROVED = "approved"
    DISAPPROVED = "disapproved"


class SortKey(str, Enum):
    """Supported orderings for project listings."""

    RECENT = "recent"
    POPULAR = "popular"
    RATING = "rating"
    YEAR = "year"


class ProjectFile(CamelModel):
    """File attached to a project."""

    type: str
    name: str
    url: str


class ProjectRating(CamelModel):
    """A single rater's score."""

    user_id: str
    rating: int = Field(..., ge=1, le=5)


class Project(CamelModel):
    """A student project record as stored in the catalog."""

    id: str
    title: str
    description: str
    author: str
    author_id: str
    department: str
    year: str
    category: str
    level: str
    tags: list[str] = Field(default_factory=list)
    features: Optional[str] = None
    supervisor: Optional[str] = None
    collaborators: Optional[str] = None
    github_repo: Optional[str] = None
    deploy_link: Optional[str] = None
    github_id: Optional[str] = None
    gmail_id: Optional[str] = None

    # Engagement
    views: int = Field(default=0, ge=0)
    rating: float = Field(default=0.0, ge=0, le=5)
    ratings: list[ProjectRating] = Field(default_factory=list)
    files: list[ProjectFile] = Field(default_factory=list)

    # Faculty review
    faculty_validation: FacultyValidationStatus = FacultyValidationStatus.PENDING
    faculty_comments: Optional[str] = None

    created_at: datetime
    updated_at: datetime


class ProjectCreate(CamelModel):
    """Request model for creating a project."""

    title: str = Field(..., min_length=1, description="Project title")
    description: str = Field(..., min_length=1, description="Project description")
    department: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1, description="Academic year, e.g. 2024")
    category: str = Field(..., min_length=1)
    level: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    features: Optional[str] = None
    supervisor: Optional[str] = None
    collaborators: Optional[str] = None
    github_repo: Optional[str] = None
    deploy_link: Optional[str] = None
    github_id: Optional[str] = None
    gmail_id: Optional[str] = None


class ProjectUpdate(CamelModel):
    """Request model for updating a project. Counters and review state are not writable."""

    model_config = {"extra": "forbid"}

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    department: Optional[str] = Field(None, min_length=1)
    year: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    level: Optional[str] = Field(None, min_length=1)
    tags: Optional[list[str]] = None
    features: Optional[str] = None
    supervisor: Optional[str] = None
    collaborators: Optional[str] = None
    github_repo: Optional[str] = None
    deploy_link: Optional[str] = None
    github_id: Optional[str] = None
    gmail_id: Optional[str] = None


class RateRequest(CamelModel):
    """Request body for rating a project."""

    rating: int = Field(..., ge=1, le=5, description="Score from 1 to 5")


class FacultyValidationRequest(CamelModel):
    """Request body for a faculty review decision."""

    status: Literal["approved", "disapproved"]
    comments: Optional[str] = None


class ProjectPage(CamelModel):
    """One page of a filtered, sorted listing."""

    projects: list[Project]
    total: int
    has_more: bool


class ProjectStats(CamelModel):
    """Aggregate counts over the whole catalog."""

    by_year: dict[str, int] = Field(default_factory=dict)
    by_department: dict[str, int] = Field(default_factory=dict)
    by_category: dict[str, int] = Field(default_factory=dict)
    total: int = 0
    total_views: int = 0


# =============================================================================
# Response envelopes
# =============================================================================

class ProjectListResponse(ProjectPage):
    """Response for GET /projects."""

    success: bool = True


class ProjectEnvelope(CamelModel):
    """Response carrying a single project."""

    success: bool = True
    message: Optional[str] = None
    project: Project


class ViewResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    views: int


class RatingResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    rating: float


class StatsResponse(CamelModel):
    success: bool = True
    stats: ProjectStats


class YearsResponse(CamelModel):
    success: bool = True
    years: list[str]
