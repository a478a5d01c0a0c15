"""MLS listing lookup against the RESO Web API."""

from typing import Any, Optional, Sequence

import httpx
from pydantic import BaseModel, Field

from src.utils.errors import MLSError
from src.utils.logging import get_structured_logger, log_timing
from src.utils.settings import Settings, get_settings

logger = get_structured_logger(__name__)


class MLSListing(BaseModel):
    """Simplified view of a RESO Property record."""
    listing_key: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    living_area_sqft: Optional[float] = None
    lot_size_sqft: Optional[float] = None
    year_built: Optional[int] = None
    property_type: Optional[str] = None
    status: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict, description="Original RESO record")

    @classmethod
    def from_reso(cls, record: dict[str, Any]) -> "MLSListing":
        return cls(
            listing_key=record.get("ListingKey"),
            address=record.get("UnparsedAddress"),
            city=record.get("City"),
            postal_code=record.get("PostalCode"),
            price=record.get("ListPrice"),
            bedrooms=record.get("BedroomsTotal"),
            bathrooms=record.get("BathroomsTotalDecimal", record.get("BathroomsTotalInteger")),
            living_area_sqft=record.get("LivingArea"),
            lot_size_sqft=record.get("LotSizeSquareFeet"),
            year_built=record.get("YearBuilt"),
            property_type=record.get("PropertyType"),
            status=record.get("StandardStatus"),
            raw=record,
        )


def _odata_literal(value: str) -> str:
    # OData string literals escape single quotes by doubling them
    return "'" + value.replace("'", "''") + "'"


def build_listing_filter(mls_number: str, mls_ids: Sequence[str] = ()) -> str:
    """OData $filter matching the listing key, optionally limited to some boards."""
    expression = f"contains(ListingKey,{_odata_literal(mls_number)})"
    if mls_ids:
        boards = " or ".join(f"MlsID eq {_odata_literal(mls_id)}" for mls_id in mls_ids)
        expression = f"{expression} and ({boards})"
    return expression


async def lookup_listing(
    mls_number: str,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Optional[MLSListing]:
    """
    Find a listing by MLS number.

    Returns the first match, None when nothing matches, and raises MLSError
    when the upstream API fails.
    """
    settings = settings or get_settings()
    if not settings.mls_access_token:
        raise MLSError("MLS_ACCESS_TOKEN not set")

    params = {
        "access_token": settings.mls_access_token,
        "$filter": build_listing_filter(mls_number.strip(), settings.mls_ids),
    }

    try:
        with log_timing("mls_lookup", logger=logger, mls_number=mls_number):
            if http_client is not None:
                response = await http_client.get(settings.mls_api_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                    response = await client.get(settings.mls_api_url, params=params)
    except httpx.HTTPError as e:
        logger.error("MLS request failed", mls_number=mls_number, error=str(e))
        raise MLSError(f"Failed to fetch MLS: {e}")

    if not response.is_success:
        logger.error("MLS API returned an error", mls_number=mls_number, status=response.status_code)
        raise MLSError("Failed to fetch MLS")

    try:
        payload = response.json()
    except ValueError:
        raise MLSError("MLS API returned invalid JSON")

    matches = payload.get("value") if isinstance(payload, dict) else None
    if not matches:
        logger.info("No MLS listing found", mls_number=mls_number)
        return None

    listing = MLSListing.from_reso(matches[0])
    logger.info("MLS listing found", mls_number=mls_number, matches=len(matches))
    return listing
