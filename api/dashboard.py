"""Dashboard data endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
import asyncio
import json

from src.services.auth import get_auth_gate, login_redirect_for, parse_cookie_header, session_from_cookies
from src.services.supabase_client import SupabaseClient
from src.services.views import load_dashboard
from src.utils.logging import get_structured_logger, setup_logging

setup_logging()
logger = get_structured_logger(__name__)


async def _load(access_token, principal):
    async with SupabaseClient(access_token) as client:
        return await load_dashboard(client, principal)


class handler(BaseHTTPRequestHandler):
    """Summary numbers and lists for the signed-in agent's dashboard."""

    def _send_error(self, message: str) -> None:
        self.send_response(500)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps({"error": message}).encode('utf-8'))

    def do_GET(self):
        """Handle GET request."""
        tokens = session_from_cookies(parse_cookie_header(self.headers.get("Cookie")))
        try:
            principal = get_auth_gate().get_user(tokens.access_token)
        except Exception as e:
            logger.error("Session lookup failed", error=str(e))
            self._send_error(str(e))
            return

        redirect = login_redirect_for("/dashboard", principal)
        if redirect:
            self.send_response(302)
            self.send_header('Location', redirect)
            self.end_headers()
            return

        try:
            summary = asyncio.run(_load(tokens.access_token, principal))
        except Exception as e:
            logger.error("Dashboard load failed", error=str(e))
            self._send_error(str(e))
            return

        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(summary.model_dump_json().encode('utf-8'))
