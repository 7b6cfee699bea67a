"""
Service layer for Project Bank.

Contains the project catalog, its stores and authentication.
"""

from projectbank.services.database import (
    get_supabase_client,
    reset_supabase_client,
    resolve_credentials,
    SupabaseClient,
)
from projectbank.services.auth import (
    verify_token,
    get_current_user,
    get_faculty_user,
    is_faculty,
    AuthError,
)
from projectbank.services.store import (
    ProjectStore,
    InMemoryProjectStore,
    SupabaseProjectStore,
    StoreError,
    create_project_store,
)
from projectbank.services.catalog import (
    ProjectCatalog,
    ProjectFilter,
    CatalogError,
    ProjectNotFoundError,
    InvalidInputError,
)

__all__ = [
    # Database
    "get_supabase_client",
    "reset_supabase_client",
    "resolve_credentials",
    "SupabaseClient",
    # Auth
    "verify_token",
    "get_current_user",
    "get_faculty_user",
    "is_faculty",
    "AuthError",
    # Store
    "ProjectStore",
    "InMemoryProjectStore",
    "SupabaseProjectStore",
    "StoreError",
    "create_project_store",
    # Catalog
    "ProjectCatalog",
    "ProjectFilter",
    "CatalogError",
    "ProjectNotFoundError",
    "InvalidInputError",
]
