"""
API package for Project Bank.

This package contains all API routes and dependencies.
"""

from fastapi import APIRouter

from projectbank.api.routes import health, projects

# Create main API router
api_router = APIRouter()

# Include sub-routers
api_router.include_router(
    health.ping_router,
    tags=["health"],
)

api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

api_router.include_router(
    projects.router,
    prefix="/projects",
    tags=["projects"],
)

__all__ = ["api_router"]
