"""Configuration loading and validation."""

import logging
import os
import re
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("vibetree.yaml")


class ServerConfig(BaseSettings):
    """Server configuration.

    ``project_path`` and ``port`` also read the plain ``PROJECT_PATH`` and
    ``PORT`` environment variables; everything else uses the ``VIBETREE_``
    prefix.
    """
    project_path: Path = Field(
        default_factory=Path.cwd,
        validation_alias=AliasChoices("project_path", "PROJECT_PATH"),
    )
    port: int = Field(
        default=3001,
        validation_alias=AliasChoices("port", "PORT"),
    )
    host: str = "0.0.0.0"

    # Host name put in pairing URLs (None = detect LAN address)
    public_host: Optional[str] = None

    git_timeout: float = 30.0
    shell: Optional[str] = None
    pairing_ttl_seconds: int = 300
    worktree_poll_interval: float = 2.0
    cors_origins: List[str] = Field(default_factory=lambda: [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ])

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @field_validator('port')
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @field_validator('git_timeout', 'worktree_poll_interval')
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator('project_path')
    @classmethod
    def expand_project_path(cls, v: Path) -> Path:
        return Path(v).expanduser().resolve()

    class Config:
        env_prefix = "VIBETREE_"
        env_file = ".env"
        extra = "ignore"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ServerConfig:
    """Load server configuration from YAML file.

    Values from the file take precedence over environment variables. A missing
    file is not an error: defaults and the environment are used.
    """
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}. Using defaults and environment.")
        return ServerConfig()

    data = yaml.safe_load(config_path.read_text()) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    data = _expand_env_vars(data)
    return ServerConfig(**data)


_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand_env_vars(data: Any, key: str = "") -> Any:
    """Replace ${VAR} references in string values, recursing into containers.

    Unset variables are left in place and reported once per value.
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{key}.{k}" if key else str(k)) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item, f"{key}[{i}]") for i, item in enumerate(data)]
    if not isinstance(data, str):
        return data

    missing = [name for name in _ENV_REF.findall(data) if name not in os.environ]
    if missing:
        logger.warning(f"Unset environment variable(s) {', '.join(missing)} in config key '{key or '<root>'}'")
    return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), data)
