"""Data loaders behind the dashboard, pipeline, and calendar pages."""

import asyncio
import calendar
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.models.transaction import TransactionStatus
from src.services.auth import Principal
from src.services.postgrest import DataClient, QueryResult
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger, log_timing, mask_user_id

logger = get_structured_logger(__name__)

OPEN_TASK_LIMIT = 5
UPCOMING_EVENT_LIMIT = 5

PIPELINE_STAGES = (
    (TransactionStatus.PROSPECTING, "Prospecting"),
    (TransactionStatus.PRE_LISTING, "Pre-Listing"),
    (TransactionStatus.LISTED, "Listed"),
    (TransactionStatus.UNDER_CONTRACT, "Under Contract"),
    (TransactionStatus.CLOSED, "Closed"),
)

INACTIVE_STATUSES = {TransactionStatus.CLOSED.value, TransactionStatus.CANCELLED.value}


class DashboardSummary(BaseModel):
    transactions: list[dict] = Field(default_factory=list)
    open_tasks: list[dict] = Field(default_factory=list)
    completed_tasks_count: int = 0
    upcoming_events: list[dict] = Field(default_factory=list)
    active_count: int = 0
    pipeline_value: float = 0.0


class PipelineStage(BaseModel):
    status: str
    title: str
    transactions: list[dict] = Field(default_factory=list)

    @property
    def total_value(self) -> float:
        return sum(float(t.get("sales_price") or 0) for t in self.transactions)


def _tolerate_schema_error(result: QueryResult, what: str, default: Any) -> Any:
    """Rows from a result; a missing table/column yields ``default`` instead of failing."""
    if result.error is None:
        return result.data if result.data is not None else default
    if result.error.is_schema_error:
        logger.warning(
            "Schema not ready, using empty value",
            query=what,
            code=result.error.code,
            error=result.error.message
        )
        return default
    raise SupabaseError(f"Failed to load {what}: {result.error.message}", code=result.error.code)


async def load_dashboard(client: DataClient, principal: Principal, now: Optional[datetime] = None) -> DashboardSummary:
    """Fire the dashboard queries concurrently and assemble the summary."""
    now = now or datetime.now(timezone.utc)

    transactions_q = (
        client.from_("transactions").select("*")
        .eq("profile_id", principal.id)
        .order("created_at", ascending=False)
    )
    open_tasks_q = (
        client.from_("task_items").select("*")
        .eq("completed", False)
        .order("due_date", ascending=True)
        .limit(OPEN_TASK_LIMIT)
    )
    completed_q = client.from_("task_items").select("id", count="exact").eq("completed", True)
    events_q = (
        client.from_("calendar_events").select("*")
        .eq("profile_id", principal.id)
        .gte("start_time", now.isoformat())
        .order("start_time", ascending=True)
        .limit(UPCOMING_EVENT_LIMIT)
    )

    with log_timing("load_dashboard", logger=logger, user_id=mask_user_id(principal.id)):
        transactions_r, open_tasks_r, completed_r, events_r = await asyncio.gather(
            transactions_q, open_tasks_q, completed_q, events_q
        )

    transactions = _tolerate_schema_error(transactions_r, "transactions", [])
    open_tasks = _tolerate_schema_error(open_tasks_r, "open tasks", [])
    events = _tolerate_schema_error(events_r, "upcoming events", [])
    completed_count = 0
    if _tolerate_schema_error(completed_r, "completed task count", None) is not None:
        completed_count = completed_r.count or 0

    active = [t for t in transactions if t.get("status") not in INACTIVE_STATUSES]
    return DashboardSummary(
        transactions=transactions,
        open_tasks=open_tasks,
        completed_tasks_count=completed_count,
        upcoming_events=events,
        active_count=len(active),
        pipeline_value=sum(float(t.get("sales_price") or 0) for t in active),
    )


def group_pipeline(transactions: list[dict]) -> list[PipelineStage]:
    """Bucket transactions into board columns; unknown and cancelled statuses are left out."""
    stages = {status.value: PipelineStage(status=status.value, title=title) for status, title in PIPELINE_STAGES}
    for transaction in transactions:
        stage = stages.get(transaction.get("status"))
        if stage is not None:
            stage.transactions.append(transaction)
    return list(stages.values())


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month, in UTC."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime.combine(date(year, month, 1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(date(year, month, last_day), time.max, tzinfo=timezone.utc)
    return start, end


def _event_date(event: dict) -> Optional[str]:
    raw = event.get("start_time")
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


async def load_month_events(client: DataClient, principal: Principal, year: int, month: int) -> dict[str, list[dict]]:
    """Events of one month for the calendar grid, keyed by ISO date."""
    start, end = month_bounds(year, month)
    result = await (
        client.from_("calendar_events")
        .select("*, transactions(property_address)")
        .eq("profile_id", principal.id)
        .gte("start_time", start.isoformat())
        .lte("start_time", end.isoformat())
        .order("start_time", ascending=True)
    )

    events_by_date: dict[str, list[dict]] = {}
    for event in _tolerate_schema_error(result, "calendar events", []):
        day = _event_date(event)
        if day is None:
            continue
        events_by_date.setdefault(day, []).append(event)
    return events_by_date
