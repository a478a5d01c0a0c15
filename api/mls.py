"""MLS listing lookup endpoint for Vercel (GET ?mlsNumber=...)."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import urlparse, parse_qs
import asyncio
import json

from src.services.mls import lookup_listing
from src.utils.logging import get_structured_logger, setup_logging

setup_logging()
logger = get_structured_logger(__name__)


class handler(BaseHTTPRequestHandler):
    """Proxy an MLS number lookup to the listings API."""

    def _send_json(self, status: int, payload: dict) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_GET(self):
        """Handle GET request."""
        query = parse_qs(urlparse(self.path).query)
        mls_number = (query.get("mlsNumber") or [""])[0].strip()

        if not mls_number:
            self._send_json(400, {"success": False, "error": "MLS number is required"})
            return

        try:
            listing = asyncio.run(lookup_listing(mls_number))
        except Exception as e:
            logger.error("MLS API error", mls_number=mls_number, error=str(e))
            self._send_json(500, {"success": False, "error": str(e)})
            return

        if listing is None:
            self._send_json(404, {"success": False, "error": "No property found"})
            return

        self._send_json(200, {"success": True, "data": listing.model_dump(mode="json")})
