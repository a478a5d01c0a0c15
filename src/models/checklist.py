"""Per-transaction work items: checklist, disclosure, and task rows."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ChecklistItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    transaction_id: str = Field(..., description="Owning transaction")
    title: str
    section: Optional[str] = None
    completed: bool = False
    due_date: Optional[str] = None
    notes: Optional[str] = None


class DisclosureItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    transaction_id: str = Field(..., description="Owning transaction")
    document_name: str
    category: Optional[str] = None
    completed: bool = False
    file_url: Optional[str] = None
    due_date: Optional[str] = None
    notes: Optional[str] = None


class TaskItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    transaction_id: str = Field(..., description="Owning transaction")
    task_name: str
    section: Optional[str] = Field(None, description="pre_listing, in_contract, closing, ...")
    completed: bool = False
    due_date: Optional[str] = None
    notes: Optional[str] = None
