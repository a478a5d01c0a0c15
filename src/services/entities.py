"""Table repositories - CRUD helpers over the data client.

Unlike the data client, repositories raise SupabaseError when the backend
reports an error, so callers can rely on return values.
"""

from typing import Any, Optional

from pydantic import BaseModel

from src.models.calendar_event import CalendarEvent
from src.models.checklist import ChecklistItem, DisclosureItem, TaskItem
from src.models.client import Client
from src.models.email_history import EmailHistory
from src.models.profile import Profile
from src.models.templates import DisclosureTemplate, EmailTemplate, TaskTemplate
from src.models.transaction import Transaction
from src.services.auth import Principal
from src.services.postgrest import DataClient, QueryBuilder, QueryResult
from src.utils.errors import AuthError, SupabaseError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def apply_ordering(query: QueryBuilder, order_by: Optional[str]) -> QueryBuilder:
    """Apply ``"field"`` (ascending) or ``"-field"`` (descending) ordering."""
    if not order_by:
        return query
    if order_by.startswith("-"):
        return query.order(order_by[1:], ascending=False)
    return query.order(order_by, ascending=True)


def _unwrap(result: QueryResult, action: str, table: str) -> Any:
    if result.error is not None:
        raise SupabaseError(f"Failed to {action} {table}: {result.error.message}", code=result.error.code)
    return result.data


class EntityRepository:
    """CRUD operations for one table, keyed by ``id``."""

    table_name: str = ""
    # Row model used to validate inserts; None accepts any payload
    model: Optional[type[BaseModel]] = None

    def __init__(self, client: DataClient):
        self.client = client

    async def get(self, id: str) -> dict:
        result = await self.client.from_(self.table_name).select("*").eq("id", id).single()
        return _unwrap(result, "get", self.table_name)

    async def filter(
        self,
        filters: dict[str, Any],
        order_by: Optional[str] = None,
        limit: Optional[int] = None
    ) -> list[dict]:
        query = self.client.from_(self.table_name).select("*")

        for key, value in filters.items():
            if value is None:
                query = query.is_(key, None)
            else:
                query = query.eq(key, value)

        query = apply_ordering(query, order_by)
        if limit:
            query = query.limit(limit)

        return _unwrap(await query, "list", self.table_name) or []

    # Defined after filter() so the builtin ``list`` is still in scope for its annotation.
    async def list(self, order_by: Optional[str] = None, limit: Optional[int] = None) -> list[dict]:
        return await self.filter({}, order_by=order_by, limit=limit)

    async def create(self, data: dict) -> dict:
        if self.model is not None:
            data = self.model.model_validate(data).model_dump(mode="json", exclude_unset=True)
        result = await self.client.from_(self.table_name).insert(data).single()
        created = _unwrap(result, "create", self.table_name)
        logger.info("Row created", table=self.table_name, row_id=created.get("id") if created else None)
        return created

    async def update(self, id: str, data: dict) -> dict:
        result = await self.client.from_(self.table_name).update(data).eq("id", id).single()
        return _unwrap(result, "update", self.table_name)

    async def delete(self, id: str) -> bool:
        result = await self.client.from_(self.table_name).delete().eq("id", id)
        _unwrap(result, "delete", self.table_name)
        logger.info("Row deleted", table=self.table_name, row_id=id)
        return True


class TransactionRepository(EntityRepository):
    table_name = "transactions"
    model = Transaction


class ContactRepository(EntityRepository):
    table_name = "contacts"


class ClientRepository(EntityRepository):
    table_name = "clients"
    model = Client


class ChecklistItemRepository(EntityRepository):
    table_name = "checklist_items"
    model = ChecklistItem


class DisclosureItemRepository(EntityRepository):
    table_name = "disclosure_items"
    model = DisclosureItem


class TaskItemRepository(EntityRepository):
    table_name = "task_items"
    model = TaskItem


class CalendarEventRepository(EntityRepository):
    table_name = "calendar_events"
    model = CalendarEvent


class EmailHistoryRepository(EntityRepository):
    table_name = "email_history"
    model = EmailHistory


class DisclosureTemplateRepository(EntityRepository):
    table_name = "disclosure_templates"
    model = DisclosureTemplate


class TaskTemplateRepository(EntityRepository):
    table_name = "task_templates"
    model = TaskTemplate


class EmailTemplateRepository(EntityRepository):
    table_name = "email_templates"
    model = EmailTemplate


class ProfileRepository(EntityRepository):
    """Profiles are keyed by the auth user id."""
    table_name = "profiles"
    model = Profile

    async def me(self, principal: Optional[Principal]) -> dict:
        if principal is None:
            raise AuthError("Not authenticated")
        return await self.get(principal.id)

    async def update_my_user_data(self, principal: Optional[Principal], updates: dict) -> dict:
        if principal is None:
            raise AuthError("Not authenticated")
        return await self.update(principal.id, updates)
