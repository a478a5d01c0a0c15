"""E-mail history model."""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict


class EmailHistory(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    transaction_id: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    direction: Literal["sent", "received"] = "sent"
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    thread_id: Optional[str] = None
    created_at: Optional[str] = None
