"""Error taxonomy shared by the database tools."""

from __future__ import annotations


class DatabaseToolError(RuntimeError):
    """Base class for failures reported back to the calling agent."""

    kind = "error"

    def to_payload(self) -> dict[str, str]:
        return {"kind": self.kind, "message": str(self)}


class ConfigError(DatabaseToolError):
    """Raised when a profile or the SSH tunnel settings are incomplete."""

    kind = "config"


class ValidationError(DatabaseToolError):
    """Raised when a request is rejected before any connection is opened."""

    kind = "validation"


class TunnelError(DatabaseToolError):
    """Raised when the SSH tunnel cannot be established."""

    kind = "tunnel"


class ConnectError(DatabaseToolError):
    """Raised when the database driver cannot open a session."""

    kind = "connect"


class QueryError(DatabaseToolError):
    """Raised when the database rejects or fails a statement."""

    kind = "query"


__all__ = [
    "ConfigError",
    "ConnectError",
    "DatabaseToolError",
    "QueryError",
    "TunnelError",
    "ValidationError",
]
