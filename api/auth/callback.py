"""OAuth callback endpoint for Vercel - stores session tokens in cookies."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import urlparse, parse_qs

from src.services.auth import handle_auth_callback
from src.utils.logging import setup_logging

setup_logging()


class handler(BaseHTTPRequestHandler):
    """Redirect to the dashboard with session cookies, or back to login."""

    def do_GET(self):
        """Handle GET request."""
        query = {key: values[0] for key, values in parse_qs(urlparse(self.path).query).items() if values}
        result = handle_auth_callback(query)

        self.send_response(302)
        self.send_header('Location', result.location)
        for cookie in result.cookies:
            self.send_header('Set-Cookie', cookie)
        self.end_headers()
