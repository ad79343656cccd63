"""Process configuration loading helpers."""

from __future__ import annotations

import logging
import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

LOG = logging.getLogger(__name__)

DEFAULT_MYSQL_PORT = 3306
DEFAULT_SSH_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 10.0
PRIMARY_PROFILE = "gateway"

# Logical profile name -> environment variable prefix.
PROFILE_ENV_PREFIXES: Mapping[str, str] = {
    "gateway": "MYSQL",
    "evp_lt": "EVP_LT",
    "gateway_remote": "GATEWAY_REMOTE",
}


class DatabaseProfileConfig(BaseModel):
    """Credentials for one logical database, as read from the environment."""

    model_config = ConfigDict(frozen=True)

    name: str
    host: str = ""
    port: int = DEFAULT_MYSQL_PORT
    database: str = ""
    user: str = ""
    password: str = Field(default="", repr=False)


class TunnelConfig(BaseModel):
    """SSH jump host settings shared by every profile."""

    model_config = ConfigDict(frozen=True)

    host: str = ""
    port: int = DEFAULT_SSH_PORT
    user: str = ""
    key_path: str = ""


class AppConfig(BaseModel):
    """Shape of the process configuration."""

    model_config = ConfigDict(frozen=True)

    profiles: tuple[DatabaseProfileConfig, ...] = Field(default_factory=lambda: _empty_profiles())
    primary_profile: str = PRIMARY_PROFILE
    use_ssh_tunnel: bool = False
    tunnel: TunnelConfig = Field(default_factory=TunnelConfig)
    db_connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    ssh_connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    log_level: str = "INFO"

    def profile_names(self) -> tuple[str, ...]:
        return tuple(profile.name for profile in self.profiles)


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build the configuration from the process environment."""

    env = os.environ if environ is None else environ
    data = _read_environment(env)
    return AppConfig(**data)


def _read_environment(env: Mapping[str, str]) -> dict[str, object]:
    data: dict[str, object] = {}
    profiles: list[DatabaseProfileConfig] = []
    for name, prefix in PROFILE_ENV_PREFIXES.items():
        profiles.append(
            DatabaseProfileConfig(
                name=name,
                host=_text(env, f"{prefix}_HOST"),
                port=_integer(env, f"{prefix}_PORT", DEFAULT_MYSQL_PORT),
                database=_text(env, f"{prefix}_DATABASE"),
                user=_text(env, f"{prefix}_USER"),
                password=env.get(f"{prefix}_PASSWORD", ""),
            )
        )
    data["profiles"] = tuple(profiles)
    data["use_ssh_tunnel"] = _text(env, "USE_SSH_TUNNEL").lower() == "true"
    data["tunnel"] = TunnelConfig(
        host=_text(env, "SSH_HOST"),
        port=_integer(env, "SSH_PORT", DEFAULT_SSH_PORT),
        user=_text(env, "SSH_USER"),
        key_path=_text(env, "SSH_KEY_PATH"),
    )
    data["db_connect_timeout"] = _seconds(env, "DB_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT)
    data["ssh_connect_timeout"] = _seconds(env, "SSH_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT)
    log_level = _text(env, "QABRIDGE_LOG_LEVEL")
    if log_level:
        data["log_level"] = log_level.upper()
    return data


def _text(env: Mapping[str, str], key: str) -> str:
    return env.get(key, "").strip()


def _integer(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _text(env, key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        LOG.warning("Ignoring malformed integer setting", extra={"setting": key, "value": raw})
        return default


def _seconds(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _text(env, key)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        LOG.warning("Ignoring malformed timeout setting", extra={"setting": key, "value": raw})
        return default
    return value if value > 0 else default


def _empty_profiles() -> tuple[DatabaseProfileConfig, ...]:
    """Unconfigured entries for every known profile name."""

    return tuple(DatabaseProfileConfig(name=name) for name in PROFILE_ENV_PREFIXES)


__all__ = [
    "AppConfig",
    "DatabaseProfileConfig",
    "PROFILE_ENV_PREFIXES",
    "PRIMARY_PROFILE",
    "TunnelConfig",
    "load_config",
]
