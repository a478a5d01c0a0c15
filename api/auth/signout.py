"""Sign-out endpoint for Vercel - revokes the session and clears cookies."""

from http.server import BaseHTTPRequestHandler

from src.services.auth import (
    LOGIN_PATH,
    clear_session_cookies,
    get_auth_gate,
    parse_cookie_header,
    session_from_cookies,
)
from src.utils.logging import get_structured_logger, setup_logging

setup_logging()
logger = get_structured_logger(__name__)


class handler(BaseHTTPRequestHandler):
    """Clear session cookies and send the browser to the login page."""

    def do_POST(self):
        """Handle POST request."""
        tokens = session_from_cookies(parse_cookie_header(self.headers.get("Cookie")))
        try:
            cookies = get_auth_gate().sign_out(tokens.access_token)
        except Exception as e:
            # Cookies are cleared even when the session cannot be revoked
            logger.error("Sign-out failed", error=str(e))
            cookies = clear_session_cookies()

        self.send_response(302)
        self.send_header('Location', LOGIN_PATH)
        for cookie in cookies:
            self.send_header('Set-Cookie', cookie)
        self.end_headers()
