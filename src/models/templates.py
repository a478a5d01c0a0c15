"""Template models managed from the settings page."""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class DisclosureTemplate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    document_name: str
    category: Optional[str] = None
    order_index: int = 0


class TaskTemplate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    task_name: str
    section: Optional[str] = None
    order_index: int = 0


class EmailTemplate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str
    subject: Optional[str] = None
    body: Optional[str] = None
    category: Optional[str] = None
