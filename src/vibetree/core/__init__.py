"""Core configuration."""

from .config import ServerConfig, load_config

__all__ = ["ServerConfig", "load_config"]
