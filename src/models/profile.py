"""Profile (user) model."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Profile(BaseModel):
    """Agent profile, keyed by the auth user id."""
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Auth user id")
    full_name: Optional[str] = None
    email: Optional[str] = None
    theme: Optional[str] = Field(None, description="UI theme preference")
    cell_phone: Optional[str] = None
    office_phone: Optional[str] = None
    dre_number: Optional[str] = None
    brokerage_name: Optional[str] = None
    brokerage_dre: Optional[str] = None
    is_gmail_connected: bool = False
    is_gmail_sync_enabled: bool = False
    google_email: Optional[str] = None
