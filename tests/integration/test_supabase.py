"""
Integration tests for the Supabase-backed project store.

Tests:
- Row mapping in both directions
- Project CRUD through the table API
- Connection checks and error wrapping
- The catalog running on top of the Supabase store

The Supabase client is mocked; no network access is needed.
"""

import pytest
from unittest.mock import MagicMock, patch

from projectbank.services.store import StoreError, SupabaseProjectStore

# Mark all tests as integration tests
pytestmark = pytest.mark.integration


class TestDatabaseClient:
    """Test Supabase client construction."""

    @pytest.fixture(autouse=True)
    def fresh_clients(self):
        from projectbank.services.database import reset_supabase_client

        reset_supabase_client()
        yield
        reset_supabase_client()

    def test_requires_url(self, mock_env):
        from projectbank.services.database import get_supabase_client

        with pytest.raises(ValueError, match="SUPABASE_URL"):
            get_supabase_client()

    def test_requires_a_key(self, mock_env):
        from projectbank.config import Settings
        from projectbank.services.database import resolve_credentials

        with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY"):
            resolve_credentials(Settings(supabase_url="https://test-project.supabase.co"))

    def test_prefers_service_role_key(self, mock_env):
        from projectbank.config import Settings
        from projectbank.services.database import resolve_credentials

        credentials = resolve_credentials(Settings(
            supabase_url="https://test-project.supabase.co",
            supabase_anon_key="test-anon-key",
            supabase_service_role_key="test-service-key",
        ))

        assert credentials.key == "test-service-key"
        assert credentials.service_role is True

    def test_creates_client_from_settings(self, mock_env, monkeypatch):
        from projectbank.config import get_settings
        from projectbank.services.database import get_supabase_client

        monkeypatch.setenv("SUPABASE_URL", "https://test-project.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")
        get_settings.cache_clear()

        with patch("projectbank.services.database.create_client") as mock_create:
            client = get_supabase_client()
            again = get_supabase_client(get_settings())

        mock_create.assert_called_once_with("https://test-project.supabase.co", "test-anon-key")
        assert client is mock_create.return_value
        assert again is client


class TestSupabaseProjectStore:
    """Test Project CRUD operations."""

    @pytest.fixture
    def db_store(self, mock_supabase_client):
        return SupabaseProjectStore(mock_supabase_client, table="project")

    def test_all_maps_rows(self, db_store, mock_supabase_client, sample_project_row):
        mock_table = mock_supabase_client.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_project_row])

        projects = db_store.all()

        mock_supabase_client.table.assert_called_with("project")
        mock_table.order.assert_called_with("created_at")
        assert len(projects) == 1
        project = projects[0]
        assert project.title == "Campus Navigation App"
        assert project.views == 7
        assert project.ratings[1].user_id == "u2"
        assert project.faculty_validation.value == "approved"

    def test_get_found(self, db_store, mock_supabase_client, sample_project_row):
        mock_table = mock_supabase_client.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_project_row])

        project = db_store.get(sample_project_row["id"])

        mock_table.eq.assert_called_with("id", sample_project_row["id"])
        assert project.id == sample_project_row["id"]

    def test_get_missing(self, db_store):
        assert db_store.get("missing") is None

    def test_add_inserts_snake_case_row(self, db_store, mock_supabase_client, sample_project_row):
        from projectbank.models.project import Project

        mock_table = mock_supabase_client.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_project_row])
        project = Project.model_validate(sample_project_row)

        db_store.add(project)

        row = mock_table.insert.call_args[0][0]
        assert row["author_id"] == "student-1"
        assert row["ratings"] == [{"user_id": "u1", "rating": 5}, {"user_id": "u2", "rating": 4}]
        assert row["faculty_validation"] == "approved"

    def test_add_without_returned_row_fails(self, db_store, sample_project_row):
        from projectbank.models.project import Project

        with pytest.raises(StoreError):
            db_store.add(Project.model_validate(sample_project_row))

    def test_save_updates_by_id(self, db_store, mock_supabase_client, sample_project_row):
        from projectbank.models.project import Project

        mock_table = mock_supabase_client.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_project_row])
        project = Project.model_validate(sample_project_row)
        project.views = 8

        db_store.save(project)

        row = mock_table.update.call_args[0][0]
        assert "id" not in row
        assert row["views"] == 8
        mock_table.eq.assert_called_with("id", project.id)

    def test_count(self, db_store, mock_supabase_client):
        mock_table = mock_supabase_client.table.return_value
        mock_table.execute.return_value = MagicMock(data=[], count=12)

        assert db_store.count() == 12
        mock_table.select.assert_called_with("id", count="exact")

    def test_ping(self, db_store, mock_supabase_client):
        assert db_store.ping() is True

        mock_supabase_client.table.side_effect = Exception("connection refused")
        assert db_store.ping() is False

    def test_errors_are_wrapped(self, db_store, mock_supabase_client):
        mock_supabase_client.table.return_value.execute.side_effect = Exception("boom")

        with pytest.raises(StoreError):
            db_store.all()
        with pytest.raises(StoreError):
            db_store.get("p1")


class TestCatalogOnSupabase:
    """The catalog logic is the same over any store."""

    def test_record_view_round_trip(self, mock_supabase_client, sample_project_row, clock):
        from projectbank.services.catalog import ProjectCatalog

        mock_table = mock_supabase_client.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_project_row])
        catalog = ProjectCatalog(SupabaseProjectStore(mock_supabase_client), clock=clock)

        views = catalog.record_view(sample_project_row["id"])

        assert views == 8
        assert mock_table.update.call_args[0][0]["views"] == 8

    def test_stats_over_rows(self, mock_supabase_client, sample_project_row, clock):
        from projectbank.services.catalog import ProjectCatalog

        second = {**sample_project_row, "id": "other", "year": "2024", "views": 3}
        mock_supabase_client.table.return_value.execute.return_value = MagicMock(
            data=[sample_project_row, second]
        )
        catalog = ProjectCatalog(SupabaseProjectStore(mock_supabase_client), clock=clock)

        stats = catalog.stats()

        assert stats.total == 2
        assert stats.total_views == 10
        assert stats.by_year == {"2023": 1, "2024": 1}
        assert catalog.available_years() == ["2024", "2023"]
