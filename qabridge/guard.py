"""Read-only query policy, row limits and identifier sanitization."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ValidationError

MAX_ROWS = 1000
DEFAULT_QUERY_LIMIT = 100
DEFAULT_TABLE_LIMIT = 10

_SELECT_PATTERN = re.compile(r"select\b", re.IGNORECASE)
_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True, slots=True)
class NormalizedQuery:
    """A validated free-form query ready to execute."""

    text: str
    limit: int


class QueryGuard:
    """Validates caller input before any connection is requested."""

    def validate_query(self, text: str, limit: int | None = None) -> NormalizedQuery:
        """Enforce SELECT-only text and append a row limit when none is present.

        Whether a limit is already present is decided by looking for the
        substring ``limit`` anywhere in the text, so a column such as
        ``limit_reached`` also suppresses the appended clause and the caller's
        requested limit is ignored whenever the substring occurs.
        """

        query = (text or "").strip()
        if not _SELECT_PATTERN.match(query):
            raise ValidationError("Only SELECT queries are allowed. This is a READ-ONLY database connection.")
        rows = self.clamp_limit(limit, DEFAULT_QUERY_LIMIT)
        if "limit" not in query.lower():
            query = f"{query} LIMIT {rows}"
        return NormalizedQuery(text=query, limit=rows)

    def validate_identifier(self, name: str) -> str:
        if not isinstance(name, str) or not _IDENTIFIER_PATTERN.fullmatch(name):
            raise ValidationError(
                "Invalid table name. Only alphanumeric characters, underscores, and hyphens are allowed."
            )
        return name

    @staticmethod
    def clamp_limit(requested: int | None, default: int) -> int:
        if requested is None or requested <= 0:
            return default
        return min(requested, MAX_ROWS)

    def describe_queries(self, table: str) -> tuple[str, str]:
        name = self.validate_identifier(table)
        return f"DESCRIBE {name}", f"SHOW INDEXES FROM {name}"

    def table_data_queries(self, table: str, where: str | None, limit: int | None) -> tuple[str, str, int]:
        """Build the row and count statements for a table fetch.

        The ``where`` fragment is appended verbatim; it is not checked for
        read-only intent or injection.
        """

        name = self.validate_identifier(table)
        rows = self.clamp_limit(limit, DEFAULT_TABLE_LIMIT)
        condition = f" WHERE {where}" if where else ""
        select_sql = f"SELECT * FROM {name}{condition} LIMIT {rows}"
        count_sql = f"SELECT COUNT(*) AS total FROM {name}{condition}"
        return select_sql, count_sql, rows


__all__ = [
    "DEFAULT_QUERY_LIMIT",
    "DEFAULT_TABLE_LIMIT",
    "MAX_ROWS",
    "NormalizedQuery",
    "QueryGuard",
]
