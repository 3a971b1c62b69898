"""Configuration management for Stencil."""

from stencil.foundation.config.loader import (
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from stencil.foundation.types.config import (
    BuildConfig,
    PathsConfig,
    QueueConfig,
    ServerConfig,
    StencilConfig,
)

__all__ = [
    "BuildConfig",
    "PathsConfig",
    "QueueConfig",
    "ServerConfig",
    "StencilConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
]
