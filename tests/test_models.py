"""Tests for tool argument parsing."""

from __future__ import annotations

import pytest

from qabridge.errors import ValidationError
from qabridge.models import (
    DescribeTableRequest,
    ListTablesRequest,
    QueryRequest,
    TableDataRequest,
    parse_request,
)


def test_parse_query_request() -> None:
    request = parse_request("query_database", {"query": "SELECT 1", "database_name": "evp_lt", "limit": 20})

    assert request == QueryRequest(query="SELECT 1", profile="evp_lt", limit=20)


def test_parse_list_tables_without_arguments() -> None:
    assert parse_request("list_tables", None) == ListTablesRequest()


def test_parse_describe_table() -> None:
    assert parse_request("describe_table", {"table_name": "users"}) == DescribeTableRequest(table_name="users")


def test_parse_table_data_with_filter() -> None:
    request = parse_request(
        "get_table_data",
        {"table_name": "users", "where": "id > 10", "limit": 25.0, "database_name": "gateway_remote"},
    )

    assert request == TableDataRequest(table_name="users", profile="gateway_remote", limit=25, where="id > 10")


def test_empty_optional_text_is_treated_as_absent() -> None:
    request = parse_request("get_table_data", {"table_name": "users", "where": "", "database_name": ""})

    assert isinstance(request, TableDataRequest)
    assert request.where is None
    assert request.profile is None


def test_unknown_tool_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown tool: drop_everything"):
        parse_request("drop_everything", {})


@pytest.mark.parametrize(
    ("tool", "arguments"),
    [
        ("query_database", {}),
        ("query_database", {"query": "   "}),
        ("query_database", {"query": 42}),
        ("describe_table", {}),
        ("get_table_data", {"table_name": None}),
    ],
)
def test_required_text_arguments(tool: str, arguments: dict[str, object]) -> None:
    with pytest.raises(ValidationError, match="is required"):
        parse_request(tool, arguments)


@pytest.mark.parametrize("limit", ["100", 2.5, True, [10]])
def test_non_integer_limit_is_rejected(limit: object) -> None:
    with pytest.raises(ValidationError, match="'limit' must be an integer"):
        parse_request("query_database", {"query": "SELECT 1", "limit": limit})


def test_non_string_profile_is_rejected() -> None:
    with pytest.raises(ValidationError, match="'database_name' must be a string"):
        parse_request("list_tables", {"database_name": 3})
