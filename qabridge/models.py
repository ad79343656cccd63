"""Shared records and request variants used across the database tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .errors import ValidationError


@dataclass(frozen=True, slots=True)
class DatabaseProfile:
    """Runtime representation of a database profile."""

    name: str
    host: str
    port: int
    database: str
    user: str
    password: str = field(default="", repr=False)

    def missing_fields(self) -> tuple[str, ...]:
        required = (
            ("host", self.host),
            ("user", self.user),
            ("password", self.password),
            ("database", self.database),
        )
        return tuple(label for label, value in required if not value)


@dataclass(frozen=True, slots=True)
class TunnelProfile:
    """SSH jump host used to reach every database when tunnelling is on."""

    ssh_host: str
    ssh_port: int
    ssh_user: str
    private_key_path: str

    def missing_fields(self) -> tuple[str, ...]:
        required = (
            ("SSH_HOST", self.ssh_host),
            ("SSH_USER", self.ssh_user),
            ("SSH_KEY_PATH", self.private_key_path),
        )
        return tuple(label for label, value in required if not value)


@dataclass(frozen=True, slots=True)
class QueryRequest:
    query: str
    profile: str | None = None
    limit: int | None = None


@dataclass(frozen=True, slots=True)
class ListTablesRequest:
    profile: str | None = None


@dataclass(frozen=True, slots=True)
class DescribeTableRequest:
    table_name: str
    profile: str | None = None


@dataclass(frozen=True, slots=True)
class TableDataRequest:
    table_name: str
    profile: str | None = None
    limit: int | None = None
    where: str | None = None


ToolRequest = Union[QueryRequest, ListTablesRequest, DescribeTableRequest, TableDataRequest]


def parse_request(tool: str, arguments: Mapping[str, Any] | None) -> ToolRequest:
    """Turn raw tool-call arguments into a typed request.

    Only the shape of the arguments is checked here; read-only policy and
    identifier sanitization belong to the query guard.
    """

    args = dict(arguments or {})
    profile = _optional_text(args, "database_name")
    if tool == "query_database":
        return QueryRequest(
            query=_required_text(args, "query"),
            profile=profile,
            limit=_optional_limit(args),
        )
    if tool == "list_tables":
        return ListTablesRequest(profile=profile)
    if tool == "describe_table":
        return DescribeTableRequest(table_name=_required_text(args, "table_name"), profile=profile)
    if tool == "get_table_data":
        return TableDataRequest(
            table_name=_required_text(args, "table_name"),
            profile=profile,
            limit=_optional_limit(args),
            where=_optional_text(args, "where"),
        )
    raise ValidationError(f"Unknown tool: {tool}")


def _required_text(args: Mapping[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{key}' is required and must be a non-empty string.")
    return value


def _optional_text(args: Mapping[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string.")
    return value or None


def _optional_limit(args: Mapping[str, Any]) -> int | None:
    value = args.get("limit")
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("'limit' must be an integer.")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise ValidationError("'limit' must be an integer.")
    return value


__all__ = [
    "DatabaseProfile",
    "DescribeTableRequest",
    "ListTablesRequest",
    "QueryRequest",
    "TableDataRequest",
    "ToolRequest",
    "TunnelProfile",
    "parse_request",
]
