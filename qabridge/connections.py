"""Request-scoped database connections, direct or through an SSH tunnel."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import aiomysql

from .errors import ConnectError, TunnelError
from .models import DatabaseProfile
from .profiles import ProfileRegistry
from .tunnel import LOCAL_BIND_HOST, TunnelHandle, TunnelManager

LOG = logging.getLogger(__name__)


@dataclass(slots=True)
class LiveConnection:
    """A database session plus the tunnel it travels through, if any."""

    profile: DatabaseProfile
    session: Any
    tunnel: TunnelHandle | None = None
    released: bool = False

    @property
    def tunnelled(self) -> bool:
        return self.tunnel is not None

    async def fetch(self, sql: str) -> list[dict[str, object]]:
        """Run a statement and return its rows as column -> value mappings."""

        async with self.session.cursor() as cursor:
            await cursor.execute(sql)
            rows = await cursor.fetchall()
        return [dict(row) for row in rows or ()]


class ConnectionFactory:
    """Opens and releases one database session per tool invocation."""

    def __init__(
        self,
        registry: ProfileRegistry,
        *,
        tunnel_manager: TunnelManager | None = None,
        connect_timeout: float = 10.0,
    ) -> None:
        self._registry = registry
        self._tunnels = tunnel_manager or TunnelManager()
        self._connect_timeout = connect_timeout

    async def connect(self, profile_name: str | None = None) -> LiveConnection:
        """Resolve the profile and open a session, tunnelled when enabled."""

        profile = self._registry.resolve(profile_name)
        if not self._registry.tunnel_enabled:
            session = await self._open_session(profile, profile.host, profile.port)
            return LiveConnection(profile=profile, session=session)

        tunnel_profile = self._registry.resolve_tunnel()
        try:
            handle = await self._tunnels.open(tunnel_profile, profile.host, profile.port)
        except TunnelError as exc:
            raise TunnelError(f"SSH tunnel error for database '{profile.name}': {exc}") from exc
        try:
            session = await self._open_session(profile, LOCAL_BIND_HOST, handle.local_port)
        except BaseException:
            await self._tunnels.close(handle)
            raise
        return LiveConnection(profile=profile, session=session, tunnel=handle)

    async def release(self, conn: LiveConnection) -> None:
        """Close the session, then the tunnel; failures are logged, never raised."""

        if conn.released:
            return
        conn.released = True
        try:
            conn.session.close()
        except Exception:  # pragma: no cover - best effort cleanup
            LOG.debug("Ignoring database session close failure", extra={"profile": conn.profile.name}, exc_info=True)
        if conn.tunnel is not None:
            try:
                await self._tunnels.close(conn.tunnel)
            except Exception:  # pragma: no cover - best effort cleanup
                LOG.debug("Ignoring tunnel close failure", extra={"profile": conn.profile.name}, exc_info=True)

    async def _open_session(self, profile: DatabaseProfile, host: str, port: int) -> Any:
        try:
            session = await aiomysql.connect(
                host=host,
                port=port,
                user=profile.user,
                password=profile.password,
                db=profile.database,
                connect_timeout=self._connect_timeout,
                autocommit=True,
                cursorclass=aiomysql.DictCursor,
            )
        except Exception as exc:
            raise ConnectError(f"Failed to connect to database '{profile.name}': {exc}") from exc
        LOG.debug("Database session opened", extra={"profile": profile.name, "host": host, "port": port})
        return session


__all__ = ["ConnectionFactory", "LiveConnection"]
