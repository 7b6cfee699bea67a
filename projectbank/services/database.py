"""
Supabase database client.

Resolves Supabase credentials from settings and hands out one client per
(url, key) pair for the Supabase-backed project store.
"""

import logging
from functools import lru_cache
from typing import NamedTuple, Optional

from supabase import create_client, Client

from projectbank.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Type alias for clarity
SupabaseClient = Client


class SupabaseCredentials(NamedTuple):
    """URL and key the project store connects with."""
    url: str
    key: str
    service_role: bool


def resolve_credentials(settings: Settings) -> SupabaseCredentials:
    """
    Pick the Supabase URL and key for server-side project access.

    The service role key is used when configured, else the anon key.

    Args:
        settings: Application settings.

    Returns:
        Credentials for create_client.

    Raises:
        ValueError: If the URL or both keys are missing.
    """
    if not settings.supabase_url:
        raise ValueError("SUPABASE_URL not configured")

    if settings.supabase_service_role_key:
        return SupabaseCredentials(settings.supabase_url, settings.supabase_service_role_key, True)

    if settings.supabase_anon_key:
        return SupabaseCredentials(settings.supabase_url, settings.supabase_anon_key, False)

    raise ValueError(
        "SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY must be configured "
        "for the supabase storage backend"
    )


@lru_cache
def _connect(url: str, key: str) -> SupabaseClient:
    return create_client(url, key)


def get_supabase_client(settings: Optional[Settings] = None) -> SupabaseClient:
    """
    Get the cached Supabase client for the configured project.

    Args:
        settings: Settings to read credentials from; defaults to get_settings().

    Returns:
        Configured Supabase client.

    Raises:
        ValueError: If required configuration is missing.
    """
    settings = settings or get_settings()
    credentials = resolve_credentials(settings)

    client = _connect(credentials.url, credentials.key)
    logger.info(
        f"Supabase client ready for table '{settings.supabase_project_table}' "
        f"(service_role={credentials.service_role})"
    )
    return client


def reset_supabase_client() -> None:
    """Drop cached clients so the next call reconnects with fresh settings."""
    _connect.cache_clear()
