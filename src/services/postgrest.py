"""Fluent query builder and REST client for the Supabase PostgREST API.

A query is built by chaining calls on an immutable builder and is sent only
when the builder is awaited (or ``execute()`` is awaited). Every awaited
builder issues exactly one HTTP request and resolves to a ``QueryResult``;
the client never raises across its own boundary, callers check ``error``.

    result = await (
        client.from_("transactions")
        .select("*", count="exact")
        .eq("status", "closed")
        .order("close_date", ascending=False)
        .limit(5)
    )
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python

from src.utils.logging import get_structured_logger, mask_token

logger = get_structured_logger(__name__)

# Undefined table / undefined column (Postgres) and the two PostgREST
# schema-cache misses. Known examples only, not a complete list.
SCHEMA_ERROR_CODES = frozenset({"42P01", "42703", "PGRST204", "PGRST205"})

NETWORK_ERROR_CODE = "NETWORK_ERROR"
SERIALIZATION_ERROR_CODE = "SERIALIZATION_ERROR"

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

_SAFE_VALUE_CHARS = "*,.():"


class ErrorInfo(BaseModel):
    """Error returned by the REST API, or synthesized for transport failures."""
    message: str = Field(default="Request failed", description="Human readable message")
    code: Optional[str] = Field(None, description="Postgres/PostgREST error code")
    details: Optional[Any] = None
    hint: Optional[str] = None
    status: Optional[int] = Field(None, description="HTTP status, None for network errors")

    @property
    def is_schema_error(self) -> bool:
        """True when the referenced table or column does not exist (yet)."""
        return self.code in SCHEMA_ERROR_CODES

    @classmethod
    def from_payload(cls, payload: Any, status: Optional[int] = None, reason: str = "") -> "ErrorInfo":
        if not isinstance(payload, dict):
            text = payload if isinstance(payload, str) and payload else reason
            return cls(message=text or "Request failed", status=status)

        message = (
            payload.get("message")
            or payload.get("msg")
            or payload.get("error_description")
            or payload.get("error")
            or reason
            or "Request failed"
        )
        code = payload.get("code", payload.get("error_code"))
        return cls(
            message=str(message),
            code=str(code) if code is not None else None,
            details=payload.get("details"),
            hint=payload.get("hint"),
            status=status,
        )


class QueryResult(BaseModel):
    """Uniform result of one request: ``data`` or ``error``, plus ``count``."""
    data: Any = None
    error: Optional[ErrorInfo] = None
    count: Optional[int] = None
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """Total row count from a ``Content-Range: <range>/<total>`` header."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


def format_value(value: Any) -> str:
    """Render a Python value in the PostgREST filter dialect."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _format_list_item(value: Any) -> str:
    text = format_value(value)
    if any(ch in text for ch in ',()"'):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


def encode_query(params: list[tuple[str, str]]) -> str:
    """Percent-encode ordered query parameters, keeping PostgREST syntax readable."""
    return "&".join(
        f"{quote(key, safe='')}={quote(value, safe=_SAFE_VALUE_CHARS)}"
        for key, value in params
    )


class _Filterable:
    """Filter methods shared by read and write builders.

    Each call returns a new builder with one more constraint; constraints
    are ANDed and serialized in call order.
    """

    filters: tuple[tuple[str, str], ...]

    def _filter(self, column: str, operator: str, value: str):
        return replace(self, filters=self.filters + ((column, f"{operator}.{value}"),))

    def eq(self, column: str, value: Any):
        return self._filter(column, "eq", format_value(value))

    def neq(self, column: str, value: Any):
        return self._filter(column, "neq", format_value(value))

    def gt(self, column: str, value: Any):
        return self._filter(column, "gt", format_value(value))

    def gte(self, column: str, value: Any):
        return self._filter(column, "gte", format_value(value))

    def lt(self, column: str, value: Any):
        return self._filter(column, "lt", format_value(value))

    def lte(self, column: str, value: Any):
        return self._filter(column, "lte", format_value(value))

    def is_(self, column: str, value: Optional[bool]):
        if value is not None and not isinstance(value, bool):
            raise TypeError("is_() accepts only None, True or False")
        return self._filter(column, "is", format_value(value))

    def in_(self, column: str, values):
        items = ",".join(_format_list_item(v) for v in values)
        return self._filter(column, "in", f"({items})")

    def ilike(self, column: str, pattern: str):
        return self._filter(column, "ilike", pattern)


@dataclass(frozen=True)
class QueryBuilder(_Filterable):
    """Deferred SELECT against one table."""
    client: "DataClient" = field(repr=False)
    table: str
    columns: str = "*"
    count: Optional[str] = None
    filters: tuple[tuple[str, str], ...] = ()
    order_by: Optional[tuple[str, bool]] = None
    row_limit: Optional[int] = None
    want_single: bool = False

    def select(self, columns: str = "*", count: Optional[str] = None) -> "QueryBuilder":
        if count not in (None, "exact"):
            raise ValueError(f"Unsupported count option: {count}")
        # PostgREST rejects whitespace inside the select list
        return replace(self, columns="".join(columns.split()) or "*", count=count)

    def order(self, column: str, ascending: bool = True) -> "QueryBuilder":
        return replace(self, order_by=(column, ascending))

    def limit(self, n: int) -> "QueryBuilder":
        if n < 0:
            raise ValueError("limit must be non-negative")
        return replace(self, row_limit=n)

    def single(self) -> "QueryBuilder":
        """Return exactly one row as an object instead of a list."""
        return replace(self, want_single=True)

    def build_params(self) -> list[tuple[str, str]]:
        params = [("select", self.columns)]
        params.extend(self.filters)
        if self.order_by is not None:
            column, ascending = self.order_by
            params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        if self.row_limit is not None:
            params.append(("limit", str(self.row_limit)))
        return params

    def build_headers(self) -> dict[str, str]:
        headers = {}
        if self.count:
            headers["Prefer"] = f"count={self.count}"
        if self.want_single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        return headers

    async def execute(self) -> QueryResult:
        return await self.client.send(
            "GET",
            self.table,
            self.build_params(),
            headers=self.build_headers(),
            want_count=self.count is not None,
        )

    def __await__(self):
        return self.execute().__await__()


@dataclass(frozen=True)
class MutationBuilder(_Filterable):
    """Deferred INSERT/UPDATE/DELETE returning the affected rows."""
    client: "DataClient" = field(repr=False)
    table: str
    method: str
    body: Any = None
    columns: Optional[str] = None
    filters: tuple[tuple[str, str], ...] = ()
    want_single: bool = False

    def select(self, columns: str = "*") -> "MutationBuilder":
        """Columns of the affected rows to return."""
        return replace(self, columns="".join(columns.split()) or "*")

    def single(self) -> "MutationBuilder":
        return replace(self, want_single=True)

    def build_params(self) -> list[tuple[str, str]]:
        params = [("select", self.columns)] if self.columns else []
        params.extend(self.filters)
        return params

    def build_headers(self) -> dict[str, str]:
        headers = {"Prefer": "return=representation"}
        if self.want_single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        return headers

    async def execute(self) -> QueryResult:
        if self.method in ("PATCH", "DELETE") and not self.filters:
            logger.warning(
                "Unfiltered mutation sent",
                table=self.table,
                method=self.method
            )
        return await self.client.send(
            self.method,
            self.table,
            self.build_params(),
            headers=self.build_headers(),
            body=self.body,
        )

    def __await__(self):
        return self.execute().__await__()


class TableHandle:
    """Entry points for one table: reads start with ``select``, writes are separate."""

    def __init__(self, client: "DataClient", table: str):
        self.client = client
        self.table = table

    def select(self, columns: str = "*", count: Optional[str] = None) -> QueryBuilder:
        return QueryBuilder(client=self.client, table=self.table).select(columns, count=count)

    def insert(self, values) -> MutationBuilder:
        return MutationBuilder(client=self.client, table=self.table, method="POST", body=values)

    def update(self, values: dict) -> MutationBuilder:
        return MutationBuilder(client=self.client, table=self.table, method="PATCH", body=values)

    def delete(self) -> MutationBuilder:
        return MutationBuilder(client=self.client, table=self.table, method="DELETE")


class DataClient:
    """Request-scoped REST client bound to one set of credentials.

    ``access_token`` is the caller's session token; without it requests
    go out with only the API key and row-level security decides.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.rest_url = base_url.rstrip("/")
        if not self.rest_url.endswith("/rest/v1"):
            self.rest_url = f"{self.rest_url}/rest/v1"
        self.api_key = api_key
        self.access_token = access_token
        self.http_client = http_client
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings, access_token: Optional[str] = None, **kwargs) -> "DataClient":
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            access_token=access_token,
            timeout=settings.http_timeout_seconds,
            **kwargs
        )

    def from_(self, table: str) -> TableHandle:
        return TableHandle(self, table)

    # supabase-py spelling
    table = from_

    def build_url(self, table: str, params: list[tuple[str, str]]) -> str:
        url = f"{self.rest_url}/{quote(table, safe='')}"
        if params:
            url = f"{url}?{encode_query(params)}"
        return url

    def build_headers(self, extra: Optional[dict[str, str]] = None, has_body: bool = False) -> dict[str, str]:
        headers = {"apikey": self.api_key}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if has_body:
            headers["Content-Type"] = "application/json"
        if extra:
            headers.update(extra)
        return headers

    async def send(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]],
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        want_count: bool = False,
    ) -> QueryResult:
        """Send one request and normalize the response. Never raises on HTTP or network failure."""
        url = self.build_url(table, params)

        if body is not None:
            try:
                body = to_jsonable_python(body)
            except (TypeError, ValueError) as e:
                logger.error(
                    "REST request body is not JSON serializable",
                    method=method,
                    table=table,
                    error=str(e)
                )
                return QueryResult(error=ErrorInfo(message=str(e), code=SERIALIZATION_ERROR_CODE))

        request_headers = self.build_headers(headers, has_body=body is not None)

        logger.debug(
            "REST request",
            method=method,
            table=table,
            authenticated=self.access_token is not None,
            token_preview=mask_token(self.access_token)
        )

        try:
            if self.http_client is not None:
                response = await self.http_client.request(method, url, headers=request_headers, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as http_client:
                    response = await http_client.request(method, url, headers=request_headers, json=body)
        except httpx.HTTPError as e:
            logger.error(
                "REST request failed before a response",
                method=method,
                table=table,
                error=str(e),
                error_type=type(e).__name__
            )
            return QueryResult(error=ErrorInfo(message=str(e) or type(e).__name__, code=NETWORK_ERROR_CODE))

        return self._normalize(response, method, table, want_count)

    def _normalize(self, response: httpx.Response, method: str, table: str, want_count: bool) -> QueryResult:
        payload = _decode_body(response)

        if not response.is_success:
            error = ErrorInfo.from_payload(payload, status=response.status_code, reason=response.reason_phrase)
            if error.is_schema_error:
                logger.warning(
                    "Schema mismatch on REST request",
                    method=method,
                    table=table,
                    status=response.status_code,
                    code=error.code,
                    error=error.message
                )
            else:
                logger.error(
                    "REST request returned an error",
                    method=method,
                    table=table,
                    status=response.status_code,
                    code=error.code,
                    error=error.message
                )
            return QueryResult(error=error, status=response.status_code)

        count = parse_content_range(response.headers.get("content-range")) if want_count else None

        logger.debug(
            "REST response",
            method=method,
            table=table,
            status=response.status_code,
            rows=len(payload) if isinstance(payload, list) else None,
            count=count
        )
        return QueryResult(data=payload, count=count, status=response.status_code)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
