"""Stencil configuration management.

Loads configuration from .stencil/config.yaml with sensible defaults.
All settings can be overridden via environment variables (STENCIL_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .stencil/config.yaml (project-local)
3. ~/.stencil/config.yaml (user-global)
4. Built-in defaults

Thread Safety:
    Uses threading.Lock for thread-safe lazy initialization.
"""


import logging
import os
import threading
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from stencil.foundation.errors import ConfigError
from stencil.foundation.types.config import (
    BuildConfig,
    PathsConfig,
    QueueConfig,
    ServerConfig,
    StencilConfig,
)

logger = logging.getLogger(__name__)

_SECTIONS: dict[str, type] = {
    "paths": PathsConfig,
    "build": BuildConfig,
    "server": ServerConfig,
    "queue": QueueConfig,
}

_FAILURE_POLICIES = ("isolate", "fail_fast")

# Global config instance (lazy-loaded, thread-safe)
_config: StencilConfig | None = None
_config_lock = threading.Lock()


def _get_dataclass_defaults() -> dict[str, Any]:
    """Get defaults from dataclass definitions (single source of truth)."""
    return asdict(StencilConfig())


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> Any:
    """Coerce an environment string into bool/int/float/None/list where it looks like one."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null", ""):
        return None
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        pass
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: STENCIL_SECTION_KEY

    Examples:
        STENCIL_BUILD_TOOL=npm
        STENCIL_BUILD_TIMEOUT=600
        STENCIL_PATHS_OUTPUT_DIR=/srv/components
        STENCIL_QUEUE_FAILURE_POLICY=fail_fast
        STENCIL_DEBUG=true
    """
    prefix = "STENCIL_"

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        path_str = key[len(prefix):].lower()

        if path_str == "debug":
            config_dict["debug"] = _coerce(value) is True
            continue

        for section, section_type in _SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            field_name = path_str[len(section) + 1:]
            if field_name in {f.name for f in fields(section_type)}:
                config_dict.setdefault(section, {})[field_name] = _coerce(value)
            break

    return config_dict


def _build_section(section: str, data: Any) -> Any:
    section_type = _SECTIONS[section]
    if data is None:
        return section_type()
    if not isinstance(data, dict):
        raise ConfigError(context={"key": section, "detail": "expected a mapping"})

    known = {f.name for f in fields(section_type)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(
            context={"key": section, "detail": f"unknown keys: {', '.join(sorted(unknown))}"},
        )

    values = dict(data)
    for args_key in ("install_args", "build_args"):
        if args_key in values:
            raw = values[args_key]
            values[args_key] = (raw,) if isinstance(raw, str) else tuple(raw or ())
    return section_type(**values)


def _is_project_relative(value: Any) -> bool:
    """True for a non-empty relative path that cannot leave the project."""
    if not isinstance(value, str) or not value.strip():
        return False
    path = Path(value)
    return not path.is_absolute() and bool(path.parts) and ".." not in path.parts


def _dict_to_config(data: dict) -> StencilConfig:
    """Convert a dict to StencilConfig."""
    config = StencilConfig(
        paths=_build_section("paths", data.get("paths")),
        build=_build_section("build", data.get("build")),
        server=_build_section("server", data.get("server")),
        queue=_build_section("queue", data.get("queue")),
        debug=bool(data.get("debug", False)),
    )

    if config.queue.failure_policy not in _FAILURE_POLICIES:
        raise ConfigError(
            context={
                "key": "queue.failure_policy",
                "detail": f"expected one of {', '.join(_FAILURE_POLICIES)}",
            },
        )
    if config.build.timeout is not None and config.build.timeout <= 0:
        raise ConfigError(context={"key": "build.timeout", "detail": "must be positive"})

    if not _is_project_relative(config.paths.build_output):
        raise ConfigError(
            context={
                "key": "paths.build_output",
                "detail": "must be a relative path inside the project",
            },
        )

    return config


def load_config(path: str | Path | None = None) -> StencilConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (STENCIL_*)
    2. Explicit path if provided
    3. .stencil/config.yaml (project-local)
    4. ~/.stencil/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.

    Returns:
        Merged StencilConfig instance.

    Raises:
        ConfigError: If the explicit file cannot be parsed or any value is invalid.
    """
    global _config

    config_dict = _get_dataclass_defaults()

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".stencil/config.yaml"),
        Path.home() / ".stencil" / "config.yaml",
    ])

    for config_path in config_paths:
        if not config_path.exists():
            continue
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            if path and config_path == Path(path):
                raise ConfigError(
                    context={"key": str(config_path), "detail": str(e)},
                    cause=e,
                ) from e
            logger.warning("Skipping unreadable config %s: %s", config_path, e)
            continue
        if not isinstance(file_config, dict):
            raise ConfigError(context={"key": str(config_path), "detail": "expected a mapping"})
        _deep_update(config_dict, file_config)
        logger.debug("Loaded config from %s", config_path)
        break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> StencilConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def save_default_config(path: str | Path = ".stencil/config.yaml") -> Path:
    """Save the default configuration to a file.

    Creates a documented config file with all options.

    Args:
        path: Where to save the config.

    Returns:
        Path to the saved config file.
    """
    config_content = '''# Stencil Configuration
#
# NOTE: Actual defaults are defined in stencil/foundation/types/config.py.
# Edit the values you want to override; every key can also be set with
# STENCIL_<SECTION>_<KEY> environment variables.

paths:
  # Template tree copied into every new project
  template_dir: "./template"

  # One directory per project is created under this root
  output_dir: "../components"

  # Package manifest whose name and scripts are rewritten on scaffold
  manifest: "package.json"

  # Files replaced by view/server updates (relative to the project)
  view_file: "src/App.vue"
  server_file: "src/server.ts"

  # Build output removed when an update asks for a clean build
  build_output: "dist"

build:
  # Package/build tool used for both pipeline steps
  tool: "pnpm"
  install_args: ["install"]
  build_args: ["build"]

  # Seconds before a hung step is killed (null = wait indefinitely)
  timeout: null

server:
  host: "127.0.0.1"
  port: 8089

  # Returned to callers after create/update; {name} is the project name
  preview_url: "http://localhost:8089/{name}/1.0.0/~preview/"

queue:
  # isolate: a failed operation does not affect later ones for the same name
  # fail_fast: operations queued behind a failure are skipped
  failure_policy: "isolate"

debug: false
'''

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_content)
    return path
