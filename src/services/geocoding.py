"""Address geocoding via OpenStreetMap Nominatim."""

from typing import Optional

import httpx
from pydantic import BaseModel

from src.utils.logging import get_structured_logger
from src.utils.settings import Settings, get_settings

logger = get_structured_logger(__name__)

# Nominatim's usage policy requires an identifying User-Agent
USER_AGENT = "MySuperTC/1.0"


class GeocodeResult(BaseModel):
    success: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None


async def geocode_address(
    address: str,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> GeocodeResult:
    """Coordinates for a street address. Failures come back as ``success=False``."""
    if not address or not address.strip():
        return GeocodeResult()

    settings = settings or get_settings()
    params = {"format": "json", "q": address.strip(), "limit": "1"}
    headers = {"User-Agent": USER_AGENT}

    try:
        if http_client is not None:
            response = await http_client.get(settings.nominatim_url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.get(settings.nominatim_url, params=params, headers=headers)
        response.raise_for_status()
        matches = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Geocoding error", error=str(e))
        return GeocodeResult()

    if not isinstance(matches, list) or not matches:
        logger.info("Address not geocoded")
        return GeocodeResult()

    try:
        return GeocodeResult(
            success=True,
            latitude=float(matches[0]["lat"]),
            longitude=float(matches[0]["lon"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Unexpected geocoding payload", error=str(e))
        return GeocodeResult()
