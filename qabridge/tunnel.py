"""SSH local port forwarding for tunnelled database connections."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import paramiko
import sshtunnel

from .errors import TunnelError
from .models import TunnelProfile

LOG = logging.getLogger(__name__)

LOCAL_BIND_HOST = "127.0.0.1"


@dataclass(slots=True)
class TunnelHandle:
    """An open port-forward; owns the forwarder and its SSH session."""

    local_port: int
    target: tuple[str, int]
    forwarder: sshtunnel.SSHTunnelForwarder


class TunnelManager:
    """Opens and closes one SSH port-forward per database connection."""

    def __init__(self, *, connect_timeout: float = 10.0) -> None:
        # sshtunnel only exposes a module-level socket timeout.
        sshtunnel.SSH_TIMEOUT = connect_timeout

    async def open(self, profile: TunnelProfile, target_host: str, target_port: int) -> TunnelHandle:
        """Forward a local ephemeral port to ``target_host:target_port`` via the jump host."""

        return await asyncio.to_thread(self._open, profile, target_host, target_port)

    async def close(self, handle: TunnelHandle) -> None:
        """Stop the forwarder and its SSH session; never raises."""

        await asyncio.to_thread(self._close, handle)

    def _open(self, profile: TunnelProfile, target_host: str, target_port: int) -> TunnelHandle:
        key = self._load_key(profile.private_key_path)
        try:
            forwarder = sshtunnel.SSHTunnelForwarder(
                (profile.ssh_host, profile.ssh_port),
                ssh_username=profile.ssh_user,
                ssh_pkey=key,
                allow_agent=False,
                remote_bind_address=(target_host, target_port),
                local_bind_address=(LOCAL_BIND_HOST, 0),
                logger=logging.getLogger(f"{__name__}.forwarder"),
            )
        except ValueError as exc:
            raise TunnelError(f"Invalid SSH tunnel settings for {profile.ssh_host}: {exc}") from exc

        try:
            forwarder.start()
        except Exception as exc:
            _stop_quietly(forwarder)
            raise TunnelError(
                f"SSH connection to {profile.ssh_host}:{profile.ssh_port} failed: {exc}"
            ) from exc

        if not forwarder.is_active:
            _stop_quietly(forwarder)
            raise TunnelError(
                f"Could not forward to {target_host}:{target_port} via {profile.ssh_host}: "
                "SSH transport is not active"
            )

        local_port = int(forwarder.local_bind_port)
        LOG.info(
            "SSH tunnel opened",
            extra={
                "ssh_host": profile.ssh_host,
                "local_port": local_port,
                "target": f"{target_host}:{target_port}",
            },
        )
        return TunnelHandle(local_port=local_port, target=(target_host, target_port), forwarder=forwarder)

    def _close(self, handle: TunnelHandle) -> None:
        _stop_quietly(handle.forwarder)
        LOG.info("SSH tunnel closed", extra={"local_port": handle.local_port})

    @staticmethod
    def _load_key(path: str) -> paramiko.PKey:
        try:
            return paramiko.PKey.from_path(Path(path).expanduser())
        except Exception as exc:
            raise TunnelError(f"Could not read SSH private key '{path}': {exc}") from exc


def _stop_quietly(forwarder: sshtunnel.SSHTunnelForwarder) -> None:
    try:
        forwarder.stop()
    except Exception:  # pragma: no cover - best effort cleanup
        LOG.debug("Ignoring SSH tunnel stop failure", exc_info=True)


__all__ = ["LOCAL_BIND_HOST", "TunnelHandle", "TunnelManager"]
