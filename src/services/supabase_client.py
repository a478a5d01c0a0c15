"""Request-scoped Supabase data client with async context manager support."""

from typing import Optional

import httpx

from src.services.postgrest import DataClient
from src.utils.logging import get_structured_logger
from src.utils.settings import Settings, get_settings

logger = get_structured_logger(__name__)


def create_data_client(
    access_token: Optional[str] = None,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> DataClient:
    """Build a DataClient bound to one caller's credentials."""
    settings = settings or get_settings()
    return DataClient.from_settings(settings, access_token=access_token, http_client=http_client)


class SupabaseClient:
    """Async context manager yielding a DataClient for one request.

    All queries issued inside the block share one HTTP connection pool,
    which is closed on exit.
    """

    def __init__(self, access_token: Optional[str] = None, settings: Optional[Settings] = None):
        self.access_token = access_token
        self.settings = settings
        self._http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> DataClient:
        settings = self.settings or get_settings()
        self._http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        return create_data_client(self.access_token, settings=settings, http_client=self._http_client)

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                error_type=exc_type.__name__
            )
        return False
