"""gitpoll — Poller configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. Environment variables prefixed with GITPOLL_
    3. System config: /etc/gitpoll/config.yaml
    4. User config:   ~/.gitpoll/config.yaml
    5. Explicit config file passed to ``Settings.load()``

YAML values are passed as init arguments, which pydantic-settings ranks
above the environment.

The endpoint additionally falls back to ``$KUBERNETES_MASTER`` and then to
``http://localhost:8080`` when nothing else sets it.

All settings are immutable after load.  Call ``Settings.load()`` once at
startup and pass the instance to ``HookDaemon``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENDPOINT = "http://localhost:8080"


def default_endpoint() -> str:
    """Return ``$KUBERNETES_MASTER`` or the local fallback."""
    return os.environ.get("KUBERNETES_MASTER") or DEFAULT_ENDPOINT


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class IntervalConfig(BaseModel):
    build_configs_seconds: Annotated[float, Field(gt=0)] = Field(
        default=10.0,
        description="Seconds between two polls of the build-config list.",
    )
    repository_seconds: Annotated[float, Field(gt=0)] = Field(
        default=10.0,
        description="Seconds between two polls of each watched repository.",
    )
    heartbeat_seconds: Annotated[float, Field(gt=0)] = Field(
        default=60.0,
        description="Seconds between two 'watching' heartbeat log lines of the CLI.",
    )


class GitConfig(BaseModel):
    binary: str = "git"
    timeout_seconds: Annotated[float, Field(gt=0, le=86_400)] = Field(
        default=300.0,
        description="Upper bound for a single clone / checkout / pull / log call.",
    )
    workdir: Path | None = Field(
        default=None,
        description="Parent directory for repository clones. None = system temp dir.",
    )


class HttpConfig(BaseModel):
    timeout_seconds: Annotated[float, Field(gt=0, le=3600)] = 30.0
    hook_path: str = Field(
        default="osapi/v1beta1/buildConfigHooks",
        description="Path between the endpoint and '<id>/<secret>/<provider>' in webhook URLs.",
    )
    build_configs_path: str = Field(
        default="osapi/v1beta1/buildConfigs",
        description="Path of the build-config list resource.",
    )
    provider: str = "github"
    user_agent: str = "GitHub-Hookshot/github"


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GITPOLL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    endpoint: str = Field(
        default_factory=default_endpoint,
        description="Cluster API master; serves build configs and receives webhooks.",
    )
    intervals: IntervalConfig = Field(default_factory=IntervalConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("git", mode="before")
    @classmethod
    def expand_workdir(cls, v: object) -> object:
        if isinstance(v, dict) and isinstance(v.get("workdir"), str):
            v["workdir"] = Path(v["workdir"]).expanduser()
        return v

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [
            Path("/etc/gitpoll/config.yaml"),
            Path.home() / ".gitpoll" / "config.yaml",
        ]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)
