"""
FastAPI dependencies.

Common dependencies used across API routes.
"""

from typing import Annotated

from fastapi import Depends, Request

from projectbank.config import Settings, get_settings
from projectbank.models.common import UserContext
from projectbank.services.auth import get_current_user, get_faculty_user
from projectbank.services.catalog import ProjectCatalog

# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
FacultyUser = Annotated[UserContext, Depends(get_faculty_user)]


def get_catalog(request: Request) -> ProjectCatalog:
    """Get the catalog owned by the running application."""
    return request.app.state.catalog


CatalogDep = Annotated[ProjectCatalog, Depends(get_catalog)]
