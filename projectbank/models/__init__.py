"""
Pydantic models for Project Bank.

This package contains all request/response models and stored records.
"""

from projectbank.models.common import (
    CamelModel,
    ErrorResponse,
    HealthResponse,
    UserContext,
)
from projectbank.models.project import (
    FacultyValidationRequest,
    FacultyValidationStatus,
    Project,
    ProjectCreate,
    ProjectEnvelope,
    ProjectFile,
    ProjectListResponse,
    ProjectPage,
    ProjectRating,
    ProjectStats,
    ProjectUpdate,
    RateRequest,
    RatingResponse,
    SortKey,
    StatsResponse,
    ViewResponse,
    YearsResponse,
)

__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    "HealthResponse",
    "UserContext",
    # Project
    "FacultyValidationRequest",
    "FacultyValidationStatus",
    "Project",
    "ProjectCreate",
    "ProjectEnvelope",
    "ProjectFile",
    "ProjectListResponse",
    "ProjectPage",
    "ProjectRating",
    "ProjectStats",
    "ProjectUpdate",
    "RateRequest",
    "RatingResponse",
    "SortKey",
    "StatsResponse",
    "ViewResponse",
    "YearsResponse",
]
