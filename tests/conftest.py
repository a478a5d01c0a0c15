"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("MLS_ACCESS_TOKEN", "test-mls-token")
os.environ.setdefault("LLM_PROVIDER", "anthropic")
os.environ.setdefault("LLM_MODEL", "claude-sonnet-4-20250514")


@pytest.fixture
def settings():
    """Settings pointing at a fake Supabase project."""
    from src.utils.settings import Settings

    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_anon_key="test-anon-key",
        mls_api_url="https://mls.test/Property",
        mls_access_token="test-mls-token",
        nominatim_url="https://geo.test/search",
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached settings and auth gate between tests."""
    import src.services.auth as auth
    from src.utils.settings import reset_settings

    reset_settings()
    auth._gate = None
    yield
    reset_settings()
    auth._gate = None


@pytest.fixture
def principal():
    """Signed-in agent."""
    from src.services.auth import Principal

    return Principal(
        id="5b0c1f3e-2f4a-4d7e-9a51-6d1d2c3b4a59",
        email="agent@example.com",
        role="authenticated",
    )


@pytest.fixture
def mock_auth_gate(principal):
    """AuthGate double that accepts the token "valid-token"."""
    gate = Mock()
    gate.get_user = Mock(side_effect=lambda token: principal if token == "valid-token" else None)
    gate.sign_out = Mock(return_value=[
        "sb-access-token=\"\"; Max-Age=0; Path=/; SameSite=Lax",
        "sb-refresh-token=\"\"; Max-Age=0; Path=/; SameSite=Lax",
    ])
    return gate


@pytest.fixture
def mock_supabase_auth_client():
    """supabase-py Client double exposing only the auth namespace."""
    client = Mock()
    client.auth = Mock()
    client.auth.admin = Mock()
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
