"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import patch

from tests.utils.factories import create_team, fake
from tests.utils.helpers import make_admin_session, make_client_mock, make_query_mock

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("LOG_FORMAT", "text")


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Every test starts from the default toggles."""
    monkeypatch.setenv("ADMIN_SECRET", "test-admin-secret")
    monkeypatch.delenv("ADMIN_TOKEN_ALLOW_UNSIGNED", raising=False)
    monkeypatch.delenv("AGENT_ENFORCE_PARENT_CHAIN", raising=False)
    monkeypatch.delenv("HIERARCHY_MAX_DEPTH", raising=False)
    fake.unique.clear()
    yield


@pytest.fixture
def admin_session():
    return make_admin_session()


@pytest.fixture
def team():
    """Team leader -> coordinator -> group leader -> two PROs."""
    return create_team()


@pytest.fixture
def mock_supabase():
    """Patch the Supabase context manager; yields the chainable query mock."""
    query = make_query_mock()
    client = make_client_mock(query)
    with patch('pennyekart.services.supabase_client.SupabaseClient') as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value = client
        mock_client_class.return_value.__aexit__.return_value = False
        yield query
