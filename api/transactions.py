"""Transaction creation endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
import asyncio
import json
from typing import Optional

from pydantic import ValidationError

from src.services.auth import parse_cookie_header, session_from_cookies
from src.services.transactions import create_transaction
from src.utils.errors import AuthError
from src.utils.logging import correlation_context, get_correlation_id, get_structured_logger, setup_logging
from src.utils.logging_config import LoggingConfig

setup_logging()
logger = get_structured_logger(__name__)


def extract_access_token(headers) -> Optional[str]:
    """Session token from the Cookie header, falling back to a Bearer header."""
    tokens = session_from_cookies(parse_cookie_header(headers.get("Cookie")))
    if tokens.access_token:
        return tokens.access_token

    authorization = headers.get("Authorization") or ""
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


class handler(BaseHTTPRequestHandler):
    """Create a transaction owned by the signed-in agent."""

    def _send_json(self, status: int, payload: dict) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        correlation_id = get_correlation_id()
        if correlation_id:
            self.send_header(LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id)
        self.end_headers()
        self.wfile.write(json.dumps(payload, default=str).encode('utf-8'))

    def do_POST(self):
        """Handle POST request."""
        with correlation_context(self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)) as correlation_id:
            content_length = int(self.headers.get('Content-Length', 0))
            raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

            try:
                body = json.loads(raw_body) if raw_body else {}
            except json.JSONDecodeError:
                self._send_json(500, {"success": False, "error": "Invalid JSON body"})
                return

            if not isinstance(body, dict):
                self._send_json(500, {"success": False, "error": "Transaction payload must be an object"})
                return

            try:
                transaction = asyncio.run(create_transaction(body, extract_access_token(self.headers)))
            except AuthError as e:
                self._send_json(401, {"success": False, "error": str(e)})
                return
            except ValidationError as e:
                self._send_json(500, {"success": False, "error": "Invalid transaction payload", "details": e.errors(include_url=False)})
                return
            except Exception as e:
                logger.error("Transaction creation failed", correlation_id=correlation_id, error=str(e))
                self._send_json(500, {"success": False, "error": str(e) or "Internal Server Error"})
                return

            self._send_json(200, {"success": True, "transaction": transaction})
