"""Configuration loading and constants for the dashboard.

Connection profiles live in ``~/.config/kairos/config.yaml``:

    default_profile: local
    profiles:
      local:
        server_url: http://localhost:7243
        namespace: default
        web_url: http://localhost:8233
      cloud:
        server_url: https://my-ns.a1b2c.web.tmprl.cloud
        namespace: my-ns.a1b2c
        api_key: ...
        tls_cert: ~/.config/kairos/client.pem
        tls_key: ~/.config/kairos/client.key
    refresh:
      status_seconds: 5
      attempts_seconds: 15
      counts_seconds: 5
      page_size: 40
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV = "KAIROS_CONFIG"
PROFILE_ENV = "KAIROS_PROFILE"
SERVER_URL_ENV = "KAIROS_SERVER_URL"
API_KEY_ENV = "KAIROS_API_KEY"
LOG_LEVEL_ENV = "KAIROS_LOG_LEVEL"

DEFAULT_PROFILE = "default"

# Local dev server (temporal server start-dev)
LOCAL_SERVER_URL = "http://localhost:7243"
LOCAL_WEB_URL = "http://localhost:8233"
CLOUD_WEB_URL = "https://cloud.temporal.io"

DEFAULT_REFRESH = {
    "status_seconds": 5.0,
    "attempts_seconds": 15.0,
    "counts_seconds": 5.0,
    "page_size": 40,
}


class ConfigError(RuntimeError):
    """Configuration is missing or invalid."""


@dataclass(frozen=True)
class RefreshSettings:
    status_seconds: float = DEFAULT_REFRESH["status_seconds"]
    attempts_seconds: float = DEFAULT_REFRESH["attempts_seconds"]
    counts_seconds: float = DEFAULT_REFRESH["counts_seconds"]
    page_size: int = DEFAULT_REFRESH["page_size"]


@dataclass(frozen=True)
class Profile:
    name: str
    server_url: str
    namespace: str = "default"
    api_key: str | None = None
    tls_cert: Path | None = None
    tls_key: Path | None = None
    web_url: str | None = None

    @property
    def is_local(self) -> bool:
        return "localhost" in self.server_url or "127.0.0.1" in self.server_url

    @property
    def client_cert(self) -> tuple[str, str] | None:
        if self.tls_cert and self.tls_key:
            return str(self.tls_cert), str(self.tls_key)
        return None

    @property
    def browser_url(self) -> str:
        if self.web_url:
            return self.web_url.rstrip("/")
        return LOCAL_WEB_URL if self.is_local else CLOUD_WEB_URL


def get_config_dir() -> Path:
    return Path.home() / ".config" / "kairos"


def get_config_path() -> Path:
    """Get path to config.yaml.

    Can be overridden via KAIROS_CONFIG environment variable (used by tests).
    """
    env_override = os.environ.get(CONFIG_ENV)
    if env_override:
        return Path(env_override).expanduser()
    return get_config_dir() / "config.yaml"


def get_log_path() -> Path:
    return get_config_dir() / "logs" / "dashboard.log"


def get_log_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load config.yaml; an absent file is an empty config."""
    path = path or get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    if not isinstance(config, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return config


def _optional_path(value: Any) -> Path | None:
    if not value:
        return None
    return Path(str(value)).expanduser()


def get_profile(config: dict[str, Any], name: str | None = None) -> Profile:
    """Resolve the connection profile.

    Resolution order:
    1. KAIROS_SERVER_URL env var (with KAIROS_API_KEY), for CI and scripts
    2. profiles.<name> where name is the argument, KAIROS_PROFILE, or
       default_profile
    3. the local dev server, when no profiles are configured at all

    Raises:
        ConfigError: If the named profile is missing or incomplete.
    """
    name = name or os.environ.get(PROFILE_ENV) or config.get("default_profile") or DEFAULT_PROFILE
    profiles = config.get("profiles") or {}

    env_url = os.environ.get(SERVER_URL_ENV)
    if env_url:
        data = dict(profiles.get(name) or {})
        data["server_url"] = env_url
        data.setdefault("api_key", os.environ.get(API_KEY_ENV))
        return _build_profile(name, data)

    if not profiles:
        return Profile(name="local", server_url=LOCAL_SERVER_URL, web_url=LOCAL_WEB_URL)

    if name not in profiles:
        available = ", ".join(sorted(profiles)) or "(none)"
        raise ConfigError(f"Profile '{name}' not found in config. Available: {available}")
    return _build_profile(name, profiles[name] or {})


def _build_profile(name: str, data: dict[str, Any]) -> Profile:
    server_url = data.get("server_url")
    if not server_url:
        raise ConfigError(f"Profile '{name}' has no server_url")
    tls_cert = _optional_path(data.get("tls_cert"))
    tls_key = _optional_path(data.get("tls_key"))
    if bool(tls_cert) != bool(tls_key):
        raise ConfigError(f"Profile '{name}' needs both tls_cert and tls_key")
    for path in (tls_cert, tls_key):
        if path is not None and not path.exists():
            raise ConfigError(f"Profile '{name}': {path} does not exist")
    return Profile(
        name=name,
        server_url=str(server_url),
        namespace=str(data.get("namespace") or "default"),
        api_key=data.get("api_key") or os.environ.get(API_KEY_ENV),
        tls_cert=tls_cert,
        tls_key=tls_key,
        web_url=data.get("web_url"),
    )


def get_refresh_settings(config: dict[str, Any]) -> RefreshSettings:
    """Read the refresh section, falling back to defaults per key."""
    section = {**DEFAULT_REFRESH, **(config.get("refresh") or {})}
    try:
        settings = RefreshSettings(
            status_seconds=float(section["status_seconds"]),
            attempts_seconds=float(section["attempts_seconds"]),
            counts_seconds=float(section["counts_seconds"]),
            page_size=int(section["page_size"]),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid refresh settings: {e}") from e
    if min(settings.status_seconds, settings.attempts_seconds, settings.counts_seconds) <= 0:
        raise ConfigError("Refresh intervals must be positive")
    if settings.page_size <= 0:
        raise ConfigError("page_size must be positive")
    return settings
