"""
Pytest configuration and shared fixtures.

Provides:
- Environment mocking
- Catalog and store fixtures with a deterministic clock
- Token helpers for authenticated requests
- API client fixtures
- Sample data fixtures
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_JWT_SECRET = "test-jwt-secret"


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast isolated tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: tests that drive the HTTP API or a mocked database")


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture
def mock_env(monkeypatch):
    """Mock environment variables for testing."""
    from projectbank.config import get_settings

    env_vars = {
        "ENVIRONMENT": "development",
        "DEBUG": "true",
        "STORAGE_BACKEND": "memory",
        "JWT_SECRET": TEST_JWT_SECRET,
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    get_settings.cache_clear()
    yield env_vars
    get_settings.cache_clear()


# =============================================================================
# Catalog Fixtures
# =============================================================================

class FakeClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime = None):
        self.current = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store():
    from projectbank.services.store import InMemoryProjectStore
    return InMemoryProjectStore()


@pytest.fixture
def catalog(store, clock):
    from projectbank.services.catalog import ProjectCatalog
    return ProjectCatalog(store, clock=clock)


@pytest.fixture
def sample_project_fields() -> dict:
    """Descriptive fields for a new project."""
    return {
        "title": "Smart Attendance System",
        "description": "Face recognition based attendance for classrooms",
        "department": "Computer Science Engineering",
        "year": "2024",
        "category": "ai",
        "level": "major",
        "tags": ["opencv", "python", "flask"],
        "features": "Live camera capture, daily reports",
        "supervisor": "Dr. Mehta",
        "github_repo": "https://github.com/example/attendance",
    }


@pytest.fixture
def make_project(catalog, sample_project_fields) -> Callable:
    """Factory that creates projects in the catalog."""
    def _make(author_id: str = "student-1", author_name: str = "Ada Student", **overrides):
        fields = {**sample_project_fields, **overrides}
        return catalog.create(fields, author_id=author_id, author_name=author_name)
    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================

def make_token(
    sub: str,
    role: str = "student",
    name: str = None,
    secret: str = TEST_JWT_SECRET,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Mint an HS256 token the API will accept."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": sub,
        "aud": "authenticated",
        "role": "authenticated",
        "app_metadata": {"role": role},
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if name:
        claims["name"] = name
    return jwt.encode(claims, secret, algorithm="HS256")


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers() -> dict:
    return bearer(make_token("student-1", name="Ada Student"))


@pytest.fixture
def other_student_headers() -> dict:
    return bearer(make_token("student-2", name="Grace Student"))


@pytest.fixture
def faculty_headers() -> dict:
    return bearer(make_token("faculty-1", role="faculty", name="Dr. Mehta"))


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def app(mock_env, catalog):
    """Application wired to the test catalog."""
    from projectbank.main import create_app
    return create_app(catalog=catalog)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.insert.return_value = mock_table
    mock_table.update.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.order.return_value = mock_table
    mock_table.range.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table
    return mock_client


@pytest.fixture
def sample_project_row() -> dict:
    """A project row as the Supabase table returns it."""
    return {
        "id": "0b7d6c1e-4c43-4f0e-9a0b-1f2d3c4b5a69",
        "title": "Campus Navigation App",
        "description": "Indoor maps for the main block",
        "author": "Ada Student",
        "author_id": "student-1",
        "department": "Information Technology",
        "year": "2023",
        "category": "mobile",
        "level": "minor",
        "tags": ["flutter", "maps"],
        "features": None,
        "supervisor": None,
        "collaborators": None,
        "github_repo": None,
        "deploy_link": None,
        "github_id": None,
        "gmail_id": None,
        "views": 7,
        "rating": 4.5,
        "ratings": [{"user_id": "u1", "rating": 5}, {"user_id": "u2", "rating": 4}],
        "files": [],
        "faculty_validation": "approved",
        "faculty_comments": "Solid work",
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-02T00:00:00+00:00",
    }


@pytest.fixture
def auth_headers() -> Callable[..., dict]:
    """Factory for Authorization headers: auth_headers("u1", role="faculty")."""
    def _headers(sub: str, role: str = "student", name: str = None, **kwargs) -> dict:
        return bearer(make_token(sub, role=role, name=name, **kwargs))
    return _headers
