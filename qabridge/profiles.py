"""Registry of the configured database profiles."""

from __future__ import annotations

from typing import Iterable

from .config import AppConfig, DatabaseProfileConfig, TunnelConfig
from .errors import ConfigError
from .models import DatabaseProfile, TunnelProfile


class ProfileRegistry:
    """Read-only lookup of database profiles and the shared tunnel profile."""

    def __init__(
        self,
        profiles: Iterable[DatabaseProfile],
        *,
        primary: str,
        tunnel: TunnelProfile | None = None,
        tunnel_enabled: bool = False,
    ) -> None:
        self._profiles = {profile.name: profile for profile in profiles}
        self._primary = primary
        self._tunnel = tunnel
        self._tunnel_enabled = tunnel_enabled

    @classmethod
    def from_config(cls, config: AppConfig) -> ProfileRegistry:
        return cls(
            (cls._from_config(entry) for entry in config.profiles),
            primary=config.primary_profile,
            tunnel=cls._tunnel_from_config(config.tunnel),
            tunnel_enabled=config.use_ssh_tunnel,
        )

    @property
    def names(self) -> tuple[str, ...]:
        """Profile names in configuration order."""

        return tuple(self._profiles)

    @property
    def primary(self) -> str:
        return self._primary

    @property
    def tunnel_enabled(self) -> bool:
        return self._tunnel_enabled

    def resolve(self, name: str | None = None) -> DatabaseProfile:
        """Return a usable profile, defaulting to the primary one."""

        target = name or self._primary
        profile = self._profiles.get(target)
        if profile is None:
            raise ConfigError(f"Database '{target}' is not a known profile.")
        missing = profile.missing_fields()
        if missing:
            raise ConfigError(
                f"Database '{target}' not configured (missing {', '.join(missing)}). "
                "Please set the required environment variables."
            )
        return profile

    def resolve_tunnel(self) -> TunnelProfile:
        """Return the tunnel profile; only meaningful when tunnelling is enabled."""

        tunnel = self._tunnel
        missing = tunnel.missing_fields() if tunnel else ("SSH_HOST", "SSH_USER", "SSH_KEY_PATH")
        if tunnel is None or missing:
            raise ConfigError(
                "SSH tunnel enabled but SSH configuration incomplete "
                f"(missing {', '.join(missing)}). Please set SSH_HOST, SSH_USER, and SSH_KEY_PATH."
            )
        return tunnel

    @staticmethod
    def _from_config(profile: DatabaseProfileConfig) -> DatabaseProfile:
        return DatabaseProfile(
            name=profile.name,
            host=profile.host,
            port=profile.port,
            database=profile.database,
            user=profile.user,
            password=profile.password,
        )

    @staticmethod
    def _tunnel_from_config(tunnel: TunnelConfig) -> TunnelProfile:
        return TunnelProfile(
            ssh_host=tunnel.host,
            ssh_port=tunnel.port,
            ssh_user=tunnel.user,
            private_key_path=tunnel.key_path,
        )


__all__ = ["ProfileRegistry"]
