"""Tests for the session/auth gate."""

from unittest.mock import Mock

import pytest

from src.services.auth import (
    ACCESS_TOKEN_COOKIE,
    AuthGate,
    Principal,
    REFRESH_TOKEN_COOKIE,
    build_session_cookies,
    clear_session_cookies,
    handle_auth_callback,
    is_protected_route,
    login_redirect_for,
    parse_cookie_header,
    session_from_cookies,
)
from src.utils.errors import AuthError


@pytest.mark.unit
def test_parse_cookie_header():
    cookies = parse_cookie_header("sb-access-token=abc.def-ghi; sb-refresh-token=r1; theme=dark")

    assert cookies == {"sb-access-token": "abc.def-ghi", "sb-refresh-token": "r1", "theme": "dark"}


@pytest.mark.unit
def test_parse_cookie_header_empty():
    assert parse_cookie_header(None) == {}
    assert parse_cookie_header("") == {}


@pytest.mark.unit
def test_session_from_cookies():
    tokens = session_from_cookies({ACCESS_TOKEN_COOKIE: "a", REFRESH_TOKEN_COOKIE: ""})

    assert tokens.access_token == "a"
    assert tokens.refresh_token is None


@pytest.mark.unit
def test_build_session_cookies():
    access, refresh = build_session_cookies("access-1", "refresh-1")

    assert access.startswith("sb-access-token=access-1")
    assert "Max-Age=3600" in access
    assert "Path=/" in access
    assert "SameSite=Lax" in access
    assert refresh.startswith("sb-refresh-token=refresh-1")
    assert "Max-Age=604800" in refresh


@pytest.mark.unit
def test_build_session_cookies_without_refresh_token():
    assert len(build_session_cookies("access-1")) == 1


@pytest.mark.unit
def test_clear_session_cookies_expire_both():
    cookies = clear_session_cookies()

    assert len(cookies) == 2
    assert all("Max-Age=0" in cookie for cookie in cookies)


@pytest.mark.unit
@pytest.mark.parametrize("path,protected", [
    ("/dashboard", True),
    ("/transactions/123", True),
    ("/api/transactions", True),
    ("/settings/templates", True),
    ("/", False),
    ("/landing", False),
    ("/auth/login", False),
    ("/api/mls", False),
])
def test_is_protected_route(path, protected):
    assert is_protected_route(path) is protected


@pytest.mark.unit
def test_login_redirect_for_anonymous_user():
    assert login_redirect_for("/pipeline", None) == "/auth/login?redirectedFrom=%2Fpipeline"


@pytest.mark.unit
def test_login_redirect_not_needed(principal):
    assert login_redirect_for("/pipeline", principal) is None
    assert login_redirect_for("/privacy-policy", None) is None


@pytest.mark.unit
def test_auth_callback_with_tokens():
    result = handle_auth_callback({"access_token": "a1", "refresh_token": "r1"})

    assert result.location == "/dashboard"
    assert len(result.cookies) == 2
    assert result.cookies[0].startswith("sb-access-token=a1")


@pytest.mark.unit
def test_auth_callback_with_error():
    result = handle_auth_callback({"error": "access_denied", "error_description": "User denied access"})

    assert result.location == "/auth/login?error=User%20denied%20access"
    assert result.cookies == []


@pytest.mark.unit
def test_auth_callback_without_tokens():
    result = handle_auth_callback({})

    assert result.location == "/auth/login"
    assert result.cookies == []


@pytest.mark.unit
def test_get_user_without_token_skips_provider(settings, mock_supabase_auth_client):
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    assert gate.get_user(None) is None
    assert gate.get_user("") is None
    mock_supabase_auth_client.auth.get_user.assert_not_called()


@pytest.mark.unit
def test_get_user_maps_provider_user(settings, mock_supabase_auth_client):
    user = Mock(id="user-1", email="agent@example.com", role="authenticated", user_metadata={"full_name": "Dana"})
    mock_supabase_auth_client.auth.get_user.return_value = Mock(user=user)
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    principal = gate.get_user("valid-token")

    assert principal == Principal(
        id="user-1",
        email="agent@example.com",
        role="authenticated",
        user_metadata={"full_name": "Dana"},
    )
    mock_supabase_auth_client.auth.get_user.assert_called_once_with("valid-token")


@pytest.mark.unit
def test_get_user_rejected_token_returns_none(settings, mock_supabase_auth_client):
    mock_supabase_auth_client.auth.get_user.side_effect = Exception("invalid JWT: token is expired")
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    assert gate.get_user("expired-token") is None


@pytest.mark.unit
def test_get_user_from_cookies(settings, mock_supabase_auth_client):
    mock_supabase_auth_client.auth.get_user.return_value = Mock(user=Mock(id="user-2", email=None, role=None, user_metadata=None))
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    principal = gate.get_user_from_cookies("sb-access-token=tok; other=1")

    assert principal.id == "user-2"
    assert principal.user_metadata == {}
    mock_supabase_auth_client.auth.get_user.assert_called_once_with("tok")


@pytest.mark.unit
def test_sign_in_with_password(settings, mock_supabase_auth_client):
    session = Mock(access_token="a1", refresh_token="r1")
    mock_supabase_auth_client.auth.sign_in_with_password.return_value = Mock(session=session)
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    tokens = gate.sign_in_with_password("agent@example.com", "s3cret")

    assert tokens.access_token == "a1"
    assert tokens.refresh_token == "r1"
    mock_supabase_auth_client.auth.sign_in_with_password.assert_called_once_with(
        {"email": "agent@example.com", "password": "s3cret"}
    )


@pytest.mark.unit
def test_sign_in_failure_raises_auth_error(settings, mock_supabase_auth_client):
    mock_supabase_auth_client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    with pytest.raises(AuthError):
        gate.sign_in_with_password("agent@example.com", "wrong")


@pytest.mark.unit
def test_sign_up_pending_confirmation(settings, mock_supabase_auth_client):
    mock_supabase_auth_client.auth.sign_up.return_value = Mock(session=None)
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    tokens = gate.sign_up("new@example.com", "s3cret", redirect_to="https://app.test/auth/callback")

    assert tokens.access_token is None
    mock_supabase_auth_client.auth.sign_up.assert_called_once_with({
        "email": "new@example.com",
        "password": "s3cret",
        "options": {"email_redirect_to": "https://app.test/auth/callback"},
    })


@pytest.mark.unit
def test_sign_out_revokes_and_clears(settings, mock_supabase_auth_client):
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    cookies = gate.sign_out("valid-token")

    mock_supabase_auth_client.auth.admin.sign_out.assert_called_once_with("valid-token")
    assert cookies == clear_session_cookies()


@pytest.mark.unit
def test_sign_out_provider_failure_still_clears(settings, mock_supabase_auth_client):
    mock_supabase_auth_client.auth.admin.sign_out.side_effect = Exception("network down")
    gate = AuthGate(settings, client=mock_supabase_auth_client)

    assert gate.sign_out("valid-token") == clear_session_cookies()
