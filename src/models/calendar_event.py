"""Calendar event model."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class CalendarEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    profile_id: Optional[str] = None
    transaction_id: Optional[str] = Field(None, description="Linked transaction, if any")
    title: str
    start_time: str = Field(..., description="ISO timestamp")
    location: Optional[str] = None
    description: Optional[str] = None
