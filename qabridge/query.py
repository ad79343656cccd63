"""Query execution for the database tools."""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping

from .connections import ConnectionFactory, LiveConnection
from .errors import QueryError, ValidationError
from .guard import NormalizedQuery, QueryGuard
from .models import (
    DescribeTableRequest,
    ListTablesRequest,
    QueryRequest,
    TableDataRequest,
    ToolRequest,
)

LOG = logging.getLogger(__name__)

Row = Mapping[str, object]
Operation = Callable[[LiveConnection], Awaitable["QueryResult"]]


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Normalized query output returned to the calling agent."""

    profile: str
    rows: tuple[Row, ...]
    query: str | None = None
    table: str | None = None
    total_row_count: int | None = None
    limit: int | None = None
    where: str | None = None
    indexes: tuple[Row, ...] | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"profile": self.profile}
        if self.query is not None:
            payload["query"] = self.query
        if self.table is not None:
            payload["table"] = self.table
        payload["row_count"] = self.row_count
        if self.total_row_count is not None:
            payload["total_row_count"] = self.total_row_count
        if self.limit is not None:
            payload["limit"] = self.limit
        if self.where is not None:
            payload["where"] = self.where
        payload["rows"] = [dict(row) for row in self.rows]
        if self.indexes is not None:
            payload["indexes"] = [dict(row) for row in self.indexes]
        return payload


class QueryExecutor:
    """Validates, connects, executes and always releases, in that order."""

    def __init__(self, factory: ConnectionFactory, *, guard: QueryGuard | None = None) -> None:
        self._factory = factory
        self._guard = guard or QueryGuard()

    async def run(self, request: ToolRequest) -> QueryResult:
        operation = self._prepare(request)
        started = time.perf_counter()
        conn = await self._factory.connect(request.profile)
        try:
            result = await operation(conn)
        finally:
            await self._factory.release(conn)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        LOG.info(
            "Database request completed",
            extra={
                "profile": result.profile,
                "row_count": result.row_count,
                "tunnelled": conn.tunnelled,
                "elapsed_ms": elapsed_ms,
            },
        )
        return result

    def _prepare(self, request: ToolRequest) -> Operation:
        """Validate the request and bind the operation to run once connected."""

        if isinstance(request, QueryRequest):
            normalized = self._guard.validate_query(request.query, request.limit)
            return functools.partial(self._run_query, normalized=normalized)
        if isinstance(request, ListTablesRequest):
            return self._list_tables
        if isinstance(request, DescribeTableRequest):
            statements = self._guard.describe_queries(request.table_name)
            return functools.partial(self._describe_table, table=request.table_name, statements=statements)
        if isinstance(request, TableDataRequest):
            select_sql, count_sql, limit = self._guard.table_data_queries(
                request.table_name, request.where, request.limit
            )
            return functools.partial(
                self._table_data,
                table=request.table_name,
                where=request.where,
                limit=limit,
                select_sql=select_sql,
                count_sql=count_sql,
            )
        raise ValidationError(f"Unsupported request: {type(request).__name__}")

    async def _run_query(self, conn: LiveConnection, *, normalized: NormalizedQuery) -> QueryResult:
        rows = await _fetch(conn, normalized.text, "Database query error")
        return QueryResult(profile=conn.profile.name, rows=tuple(rows), query=normalized.text)

    async def _list_tables(self, conn: LiveConnection) -> QueryResult:
        statement = "SHOW TABLES"
        rows = await _fetch(conn, statement, "Error listing tables")
        return QueryResult(profile=conn.profile.name, rows=tuple(rows), query=statement)

    async def _describe_table(
        self,
        conn: LiveConnection,
        *,
        table: str,
        statements: tuple[str, str],
    ) -> QueryResult:
        describe_sql, indexes_sql = statements
        columns = await _fetch(conn, describe_sql, "Error describing table")
        indexes = await _fetch(conn, indexes_sql, "Error describing table")
        return QueryResult(
            profile=conn.profile.name,
            rows=tuple(columns),
            query=describe_sql,
            table=table,
            indexes=tuple(indexes),
        )

    async def _table_data(
        self,
        conn: LiveConnection,
        *,
        table: str,
        where: str | None,
        limit: int,
        select_sql: str,
        count_sql: str,
    ) -> QueryResult:
        rows = await _fetch(conn, select_sql, "Error fetching table data")
        counts = await _fetch(conn, count_sql, "Error fetching table data")
        return QueryResult(
            profile=conn.profile.name,
            rows=tuple(rows),
            query=select_sql,
            table=table,
            total_row_count=_total(counts),
            limit=limit,
            where=where,
        )


async def _fetch(conn: LiveConnection, sql: str, context: str) -> list[dict[str, object]]:
    try:
        return await conn.fetch(sql)
    except Exception as exc:
        raise QueryError(f"{context}: {exc}") from exc


def _total(rows: list[dict[str, object]]) -> int:
    if not rows:
        return 0
    value = rows[0].get("total", 0)
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


__all__ = ["QueryExecutor", "QueryResult"]
