"""Session and auth gate - turns cookies into a Principal via Supabase Auth."""

from http.cookies import CookieError, SimpleCookie
from typing import Any, Optional
from urllib.parse import quote, urlencode

from pydantic import BaseModel, Field
from supabase import Client, create_client
from supabase.client import ClientOptions

from src.utils.errors import AuthError
from src.utils.logging import get_structured_logger, mask_user_id
from src.utils.settings import Settings, get_settings

logger = get_structured_logger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
ACCESS_TOKEN_MAX_AGE = 60 * 60
REFRESH_TOKEN_MAX_AGE = 60 * 60 * 24 * 7

LOGIN_PATH = "/auth/login"
POST_LOGIN_PATH = "/dashboard"

PROTECTED_ROUTES = (
    "/dashboard",
    "/transactions",
    "/crm",
    "/contacts",
    "/pipeline",
    "/calendar",
    "/assistant",
    "/settings",
    "/profile",
    "/api/transactions",
)


class Principal(BaseModel):
    """The authenticated user as reported by the auth provider."""
    id: str = Field(..., description="Auth user id, used as owner foreign key")
    email: Optional[str] = None
    role: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class SessionTokens(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class AuthCallbackResult(BaseModel):
    location: str
    cookies: list[str] = Field(default_factory=list)


def parse_cookie_header(header: Optional[str]) -> dict[str, str]:
    """Parse a Cookie request header into a name -> value dict."""
    if not header:
        return {}
    jar = SimpleCookie()
    try:
        jar.load(header)
    except CookieError:
        logger.warning("Unparseable Cookie header ignored")
        return {}
    return {name: morsel.value for name, morsel in jar.items()}


def session_from_cookies(cookies: dict[str, str]) -> SessionTokens:
    return SessionTokens(
        access_token=cookies.get(ACCESS_TOKEN_COOKIE) or None,
        refresh_token=cookies.get(REFRESH_TOKEN_COOKIE) or None,
    )


def _cookie(name: str, value: str, max_age: int) -> str:
    jar = SimpleCookie()
    jar[name] = value
    morsel = jar[name]
    morsel["path"] = "/"
    morsel["max-age"] = max_age
    morsel["samesite"] = "Lax"
    return morsel.OutputString()


def build_session_cookies(access_token: str, refresh_token: Optional[str] = None) -> list[str]:
    """Set-Cookie values for a fresh session."""
    cookies = [_cookie(ACCESS_TOKEN_COOKIE, access_token, ACCESS_TOKEN_MAX_AGE)]
    if refresh_token:
        cookies.append(_cookie(REFRESH_TOKEN_COOKIE, refresh_token, REFRESH_TOKEN_MAX_AGE))
    return cookies


def clear_session_cookies() -> list[str]:
    return [
        _cookie(ACCESS_TOKEN_COOKIE, "", 0),
        _cookie(REFRESH_TOKEN_COOKIE, "", 0),
    ]


def is_protected_route(path: str) -> bool:
    return any(path.startswith(route) for route in PROTECTED_ROUTES)


def login_redirect_for(path: str, user: Optional[Principal]) -> Optional[str]:
    """Redirect target for anonymous access to a protected route, else None."""
    if user is not None or not is_protected_route(path):
        return None
    logger.info("Redirecting unauthenticated request", path=path)
    return f"{LOGIN_PATH}?{urlencode({'redirectedFrom': path})}"


def handle_auth_callback(query: dict[str, str]) -> AuthCallbackResult:
    """Resolve an OAuth callback query into a redirect plus session cookies."""
    error = query.get("error")
    if error:
        description = query.get("error_description") or error
        logger.warning("OAuth callback returned an error", error=error)
        return AuthCallbackResult(location=f"{LOGIN_PATH}?error={quote(description, safe='')}")

    access_token = query.get("access_token")
    if access_token:
        logger.info("OAuth callback received session tokens", has_refresh_token=bool(query.get("refresh_token")))
        return AuthCallbackResult(
            location=POST_LOGIN_PATH,
            cookies=build_session_cookies(access_token, query.get("refresh_token")),
        )

    logger.info("OAuth callback without tokens, redirecting to login")
    return AuthCallbackResult(location=LOGIN_PATH)


def _principal_from_user(user: Any) -> Principal:
    return Principal(
        id=str(user.id),
        email=getattr(user, "email", None),
        role=getattr(user, "role", None),
        user_metadata=getattr(user, "user_metadata", None) or {},
    )


class AuthGate:
    """Thin wrapper over the Supabase Auth API.

    The hosted provider owns the protocol; this class only maps its
    responses onto Principal / SessionTokens.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Client] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            options = ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
            )
            self._client = create_client(self.settings.supabase_url, self.settings.supabase_anon_key, options)
        return self._client

    def get_user(self, access_token: Optional[str]) -> Optional[Principal]:
        """Principal for a session token; None when absent, expired, or rejected."""
        if not access_token:
            return None

        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Session token rejected by auth provider", error=str(e))
            return None

        user = getattr(response, "user", None) if response else None
        if user is None:
            return None

        principal = _principal_from_user(user)
        logger.debug("Resolved session user", user_id=mask_user_id(principal.id))
        return principal

    def get_user_from_cookies(self, cookie_header: Optional[str]) -> Optional[Principal]:
        tokens = session_from_cookies(parse_cookie_header(cookie_header))
        return self.get_user(tokens.access_token)

    def sign_in_with_password(self, email: str, password: str) -> SessionTokens:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning("Password sign-in failed", error=str(e))
            raise AuthError(f"Sign in failed: {e}")

        session = getattr(response, "session", None)
        if session is None:
            raise AuthError("Sign in failed: no session returned")

        logger.info("Password sign-in succeeded")
        return SessionTokens(access_token=session.access_token, refresh_token=session.refresh_token)

    def sign_up(self, email: str, password: str, redirect_to: Optional[str] = None) -> SessionTokens:
        """Register a user; tokens are empty until the e-mail is confirmed."""
        credentials: dict[str, Any] = {"email": email, "password": password}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}

        try:
            response = self.client.auth.sign_up(credentials)
        except Exception as e:
            logger.warning("Sign up failed", error=str(e))
            raise AuthError(f"Sign up failed: {e}")

        session = getattr(response, "session", None)
        logger.info("Sign up succeeded", confirmation_required=session is None)
        if session is None:
            return SessionTokens()
        return SessionTokens(access_token=session.access_token, refresh_token=session.refresh_token)

    def sign_out(self, access_token: Optional[str]) -> list[str]:
        """Revoke the session (best effort) and return cookie-clearing headers."""
        if access_token:
            try:
                self.client.auth.admin.sign_out(access_token)
            except Exception as e:
                logger.warning("Sign out request failed", error=str(e))
        return clear_session_cookies()


_gate: Optional[AuthGate] = None


def get_auth_gate() -> AuthGate:
    """Get or create the AuthGate singleton (it holds no per-user state)."""
    global _gate

    if _gate is None:
        _gate = AuthGate()
        logger.info("Auth gate initialized", url=_gate.settings.supabase_url)
    return _gate
