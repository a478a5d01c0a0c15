"""Client (CRM contact) model."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Client(BaseModel):
    """Buyer, seller, or other party an agent works with."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    user_id: Optional[str] = Field(None, description="Owning profile id")
    name: str = Field(..., description="Full name")
    email: Optional[str] = None
    phone: Optional[str] = None
    type: Optional[str] = Field(None, description="buyer, seller, both, other")
    notes: Optional[str] = None
    created_at: Optional[str] = None
