"""
Project API routes.

Browse, create, update, view, rate and review student projects.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from projectbank.api.deps import CatalogDep, CurrentUser, FacultyUser
from projectbank.models.project import (
    FacultyValidationRequest,
    ProjectCreate,
    ProjectEnvelope,
    ProjectListResponse,
    ProjectUpdate,
    RateRequest,
    RatingResponse,
    StatsResponse,
    ViewResponse,
    YearsResponse,
)
from projectbank.services.auth import is_faculty
from projectbank.services.catalog import (
    InvalidInputError,
    ProjectFilter,
    ProjectNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Project not found",
    )


def _bad_request(e: InvalidInputError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=e.message,
    )


@router.get(
    "",
    response_model=ProjectListResponse,
    summary="List projects",
    description="Filter, search, sort and paginate all projects.",
)
async def list_projects(
    catalog: CatalogDep,
    year: Optional[str] = Query(None, description="Exact academic year, or 'all'"),
    department: Optional[str] = Query(None, description="Case-insensitive department substring, or 'all'"),
    category: Optional[str] = Query(None, description="Exact category, or 'all'"),
    search: Optional[str] = Query(None, description="Matches title, description, author or tags"),
    sort_by: Optional[str] = Query("recent", alias="sortBy", description="recent, popular, rating or year"),
    limit: Optional[str] = Query(None, description="Page size (default 20)"),
    offset: Optional[str] = Query(None, description="Items to skip (default 0)"),
) -> ProjectListResponse:
    """List projects with optional filtering."""
    try:
        page = catalog.list_projects(
            ProjectFilter(year=year, department=department, category=category, search=search),
            sort_by=sort_by,
            limit=limit,
            offset=offset,
        )
        return ProjectListResponse(
            projects=page.projects,
            total=page.total,
            has_more=page.has_more,
        )

    except Exception as e:
        logger.exception(f"Error listing projects: {e}")
        raise _internal_error()


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Project statistics",
    description="Counts by year, department and category, plus total views.",
)
async def get_project_stats(catalog: CatalogDep) -> StatsResponse:
    """Aggregate statistics over every project."""
    try:
        return StatsResponse(stats=catalog.stats())
    except Exception as e:
        logger.exception(f"Error computing project stats: {e}")
        raise _internal_error()


@router.get(
    "/years",
    response_model=YearsResponse,
    summary="Available years",
    description="Distinct academic years present, newest first.",
)
async def get_available_years(catalog: CatalogDep) -> YearsResponse:
    """Distinct project years."""
    try:
        return YearsResponse(years=catalog.available_years())
    except Exception as e:
        logger.exception(f"Error listing project years: {e}")
        raise _internal_error()


@router.get(
    "/{project_id}",
    response_model=ProjectEnvelope,
    summary="Get a project",
    description="Get details of a specific project.",
)
async def get_project(project_id: str, catalog: CatalogDep) -> ProjectEnvelope:
    """Get project details."""
    try:
        return ProjectEnvelope(project=catalog.get(project_id))
    except ProjectNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.exception(f"Error getting project {project_id}: {e}")
        raise _internal_error()


@router.post(
    "",
    response_model=ProjectEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new project",
    description="Create a project authored by the authenticated user.",
)
async def create_project(
    project: ProjectCreate,
    user: CurrentUser,
    catalog: CatalogDep,
) -> ProjectEnvelope:
    """Create a new project."""
    try:
        created = catalog.create(
            project.model_dump(),
            author_id=user.user_id,
            author_name=user.display_name,
        )
        return ProjectEnvelope(message="Project created successfully", project=created)

    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        logger.exception(f"Error creating project: {e}")
        raise _internal_error()


@router.put(
    "/{project_id}",
    response_model=ProjectEnvelope,
    summary="Update a project",
    description="Update descriptive fields. Only the author or faculty may update.",
)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    user: CurrentUser,
    catalog: CatalogDep,
) -> ProjectEnvelope:
    """Update project details."""
    # Build update dict with only the fields the client sent
    update_data = project_update.model_dump(exclude_unset=True)

    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    try:
        existing = catalog.get(project_id)
        if existing.author_id != user.user_id and not is_faculty(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the project author can update this project",
            )

        updated = catalog.update(project_id, update_data)
        return ProjectEnvelope(message="Project updated successfully", project=updated)

    except HTTPException:
        raise
    except ProjectNotFoundError:
        raise _not_found()
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        logger.exception(f"Error updating project {project_id}: {e}")
        raise _internal_error()


@router.post(
    "/{project_id}/view",
    response_model=ViewResponse,
    summary="Record a view",
    description="Increment the project's view counter.",
)
async def view_project(project_id: str, catalog: CatalogDep) -> ViewResponse:
    """Record one view."""
    try:
        views = catalog.record_view(project_id)
        return ViewResponse(message="View recorded", views=views)
    except ProjectNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.exception(f"Error recording view for project {project_id}: {e}")
        raise _internal_error()


@router.post(
    "/{project_id}/rate",
    response_model=RatingResponse,
    summary="Rate a project",
    description="Submit or replace the caller's 1-5 rating.",
)
async def rate_project(
    project_id: str,
    body: RateRequest,
    user: CurrentUser,
    catalog: CatalogDep,
) -> RatingResponse:
    """Rate a project as the authenticated user."""
    try:
        rating = catalog.rate(project_id, user.user_id, body.rating)
        return RatingResponse(message="Rating submitted successfully", rating=rating)
    except ProjectNotFoundError:
        raise _not_found()
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        logger.exception(f"Error rating project {project_id}: {e}")
        raise _internal_error()


@router.post(
    "/{project_id}/faculty-validation",
    response_model=ProjectEnvelope,
    summary="Faculty validation",
    description="Approve or disapprove a project. Faculty only.",
)
async def set_faculty_validation(
    project_id: str,
    body: FacultyValidationRequest,
    user: FacultyUser,
    catalog: CatalogDep,
) -> ProjectEnvelope:
    """Record a faculty review decision."""
    try:
        project = catalog.set_faculty_validation(project_id, body.status, body.comments)
        logger.info(f"Faculty {user.user_id} set project {project_id} to {body.status}")
        return ProjectEnvelope(message="Faculty validation updated successfully", project=project)
    except ProjectNotFoundError:
        raise _not_found()
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        logger.exception(f"Error validating project {project_id}: {e}")
        raise _internal_error()
