"""MCP stdio server exposing the read-only database tools."""

from __future__ import annotations

import argparse
import asyncio
import base64
import datetime as dt
import decimal
import json
import logging
import sys
import time
from typing import Any, Mapping, Sequence

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import AppConfig, load_config
from .connections import ConnectionFactory
from .errors import DatabaseToolError
from .models import parse_request
from .profiles import ProfileRegistry
from .query import QueryExecutor
from .tunnel import TunnelManager

LOG = logging.getLogger(__name__)

SERVER_NAME = "qabridge"


def tool_schemas(profile_names: Sequence[str], primary: str) -> list[dict[str, Any]]:
    """JSON schemas for the database tools, in listing order."""

    database_name = {
        "type": "string",
        "enum": list(profile_names),
        "description": f"Database to use (default: {primary})",
    }
    return [
        {
            "name": "query_database",
            "description": "Execute a SQL query on the configured MySQL database (READ-ONLY: SELECT queries only)",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "SQL SELECT query to execute"},
                    "database_name": database_name,
                    "limit": {
                        "type": "number",
                        "description": "Maximum number of rows to return (default: 100, max: 1000)",
                    },
                },
                "required": ["query"],
            },
        },
        {
            "name": "list_tables",
            "description": "List all tables in the configured MySQL database",
            "inputSchema": {
                "type": "object",
                "properties": {"database_name": database_name},
                "required": [],
            },
        },
        {
            "name": "describe_table",
            "description": "Get the structure/schema of a specific database table",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "table_name": {"type": "string", "description": "Name of the table to describe"},
                    "database_name": database_name,
                },
                "required": ["table_name"],
            },
        },
        {
            "name": "get_table_data",
            "description": "Fetch data from a specific table with optional filtering",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "table_name": {"type": "string", "description": "Name of the table to query"},
                    "database_name": database_name,
                    "limit": {
                        "type": "number",
                        "description": "Number of rows to return (default: 10, max: 1000)",
                    },
                    "where": {
                        "type": "string",
                        "description": (
                            "Optional WHERE clause (without the 'WHERE' keyword). "
                            "Passed through as-is: read-only but not injection-proof."
                        ),
                    },
                },
                "required": ["table_name"],
            },
        },
    ]


class ToolDispatcher:
    """Maps tool calls onto the query executor and shapes the replies."""

    def __init__(self, executor: QueryExecutor, *, profile_names: Sequence[str], primary: str) -> None:
        self._executor = executor
        self._schemas = tool_schemas(profile_names, primary)

    @classmethod
    def from_config(cls, config: AppConfig) -> ToolDispatcher:
        registry = ProfileRegistry.from_config(config)
        factory = ConnectionFactory(
            registry,
            tunnel_manager=TunnelManager(connect_timeout=config.ssh_connect_timeout),
            connect_timeout=config.db_connect_timeout,
        )
        return cls(QueryExecutor(factory), profile_names=registry.names, primary=registry.primary)

    def list_tools(self) -> list[dict[str, Any]]:
        return list(self._schemas)

    async def dispatch(self, name: str, arguments: Mapping[str, Any] | None) -> dict[str, object]:
        """Run one tool call; domain failures come back as ``{kind, message}``."""

        started = time.perf_counter()
        try:
            request = parse_request(name, arguments)
            result = await self._executor.run(request)
        except DatabaseToolError as exc:
            LOG.warning("Tool call failed", extra={"tool": name, "kind": exc.kind, "error": str(exc)})
            return exc.to_payload()
        LOG.debug(
            "Tool call succeeded",
            extra={"tool": name, "duration_ms": round((time.perf_counter() - started) * 1000, 1)},
        )
        return result.to_payload()


def encode_payload(payload: Mapping[str, object]) -> str:
    return json.dumps(payload, indent=2, default=_json_default)


def _json_default(value: object) -> object:
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def create_server(dispatcher: ToolDispatcher) -> Server:
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def _list_tools() -> list[Tool]:
        return [Tool(**schema) for schema in dispatcher.list_tools()]

    @server.call_tool()
    async def _call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        payload = await dispatcher.dispatch(name, arguments)
        return [TextContent(type="text", text=encode_payload(payload))]

    return server


async def _run(config: AppConfig) -> None:
    dispatcher = ToolDispatcher.from_config(config)
    server = create_server(dispatcher)
    LOG.info(
        "Starting MCP server",
        extra={"server": SERVER_NAME, "tunnel": config.use_ssh_tunnel, "profiles": config.profile_names()},
    )
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Read-only MySQL tools over MCP")
    parser.add_argument("--log-level", default=None, help="Override QABRIDGE_LOG_LEVEL (default INFO)")
    args = parser.parse_args(argv)

    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config()
    level = (args.log_level or config.log_level).upper()
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))
    asyncio.run(_run(config))


__all__ = ["ToolDispatcher", "create_server", "encode_payload", "main", "tool_schemas"]
