"""Tests for the read-only query guard."""

from __future__ import annotations

import pytest

from qabridge.errors import ValidationError
from qabridge.guard import QueryGuard


@pytest.fixture
def guard() -> QueryGuard:
    return QueryGuard()


def test_appends_default_limit(guard: QueryGuard) -> None:
    normalized = guard.validate_query("SELECT * FROM users")

    assert normalized.text == "SELECT * FROM users LIMIT 100"
    assert normalized.limit == 100


def test_trims_before_checking_and_appending(guard: QueryGuard) -> None:
    normalized = guard.validate_query("  \n select id from users \t", 25)

    assert normalized.text == "select id from users LIMIT 25"


def test_existing_limit_text_is_left_alone(guard: QueryGuard) -> None:
    normalized = guard.validate_query("select id from t where 1=1 limit 5", 100)

    assert normalized.text == "select id from t where 1=1 limit 5"


def test_limit_substring_anywhere_suppresses_clause(guard: QueryGuard) -> None:
    normalized = guard.validate_query("SELECT limit_reached FROM quotas", 50)

    assert normalized.text == "SELECT limit_reached FROM quotas"


@pytest.mark.parametrize(
    "text",
    [
        "DELETE FROM users",
        "update users set name = 'x'",
        "  drop table users",
        "WITH t AS (SELECT 1) SELECT * FROM t",
        "selectivity FROM x",
        "",
        "   ",
    ],
)
def test_rejects_non_select_statements(guard: QueryGuard, text: str) -> None:
    with pytest.raises(ValidationError, match="Only SELECT"):
        guard.validate_query(text)


def test_select_keyword_is_case_insensitive(guard: QueryGuard) -> None:
    assert guard.validate_query("SeLeCt 1").text == "SeLeCt 1 LIMIT 100"


@pytest.mark.parametrize(
    ("requested", "default", "expected"),
    [
        (None, 100, 100),
        (0, 100, 100),
        (-5, 100, 100),
        (-5, 10, 10),
        (1, 100, 1),
        (1000, 10, 1000),
        (5000, 100, 1000),
    ],
)
def test_clamp_limit(requested: int | None, default: int, expected: int) -> None:
    assert QueryGuard.clamp_limit(requested, default) == expected


@pytest.mark.parametrize("name", ["users", "order_items", "audit-log", "Table2"])
def test_accepts_plain_identifiers(guard: QueryGuard, name: str) -> None:
    assert guard.validate_identifier(name) == name


@pytest.mark.parametrize(
    "name",
    ["users; DROP TABLE x", "users\n", "db.users", "`users`", "", "users where 1=1", "naïve"],
)
def test_rejects_suspicious_identifiers(guard: QueryGuard, name: str) -> None:
    with pytest.raises(ValidationError, match="Invalid table name"):
        guard.validate_identifier(name)


def test_describe_queries(guard: QueryGuard) -> None:
    assert guard.describe_queries("users") == ("DESCRIBE users", "SHOW INDEXES FROM users")


def test_table_data_queries_without_filter(guard: QueryGuard) -> None:
    select_sql, count_sql, limit = guard.table_data_queries("users", None, None)

    assert select_sql == "SELECT * FROM users LIMIT 10"
    assert count_sql == "SELECT COUNT(*) AS total FROM users"
    assert limit == 10


def test_table_data_queries_pass_filter_through(guard: QueryGuard) -> None:
    select_sql, count_sql, limit = guard.table_data_queries("users", "status = 'active'", 5000)

    assert select_sql == "SELECT * FROM users WHERE status = 'active' LIMIT 1000"
    assert count_sql == "SELECT COUNT(*) AS total FROM users WHERE status = 'active'"
    assert limit == 1000


def test_table_data_queries_validate_table_name(guard: QueryGuard) -> None:
    with pytest.raises(ValidationError):
        guard.table_data_queries("users; DROP TABLE x", None, 10)
