"""Configuration type definitions - single source of truth for all config classes."""


from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

FailurePolicy = Literal["isolate", "fail_fast"]


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Filesystem layout for templates and generated projects."""

    template_dir: str = "./template"
    """Template tree copied into every new project."""

    output_dir: str = "../components"
    """Root under which one directory per project is created."""

    manifest: str = "package.json"
    """Package manifest rewritten after scaffolding (relative to the project)."""

    view_file: str = "src/App.vue"
    """UI entry file replaced by view updates."""

    server_file: str = "src/server.ts"
    """Server entry file replaced by server updates."""

    build_output: str = "dist"
    """Derived build-output subdirectory, removed by clean updates."""

    def project_dir(self, name: str) -> Path:
        return Path(self.output_dir).resolve() / name


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """External build tool invocation."""

    tool: str = "pnpm"
    """Executable run for both pipeline steps."""

    install_args: tuple[str, ...] = ("install",)
    """Arguments for the dependency-installation step."""

    build_args: tuple[str, ...] = ("build",)
    """Arguments for the build step."""

    timeout: float | None = None
    """Seconds before a step is killed. None waits indefinitely."""


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8089

    preview_url: str = "http://localhost:8089/{name}/1.0.0/~preview/"
    """Format string returned to callers; {name} is the project name."""


@dataclass(frozen=True, slots=True)
class QueueConfig:
    """Per-project serialization queue settings."""

    failure_policy: FailurePolicy = "isolate"
    """isolate: later operations run after a failure. fail_fast: they are skipped."""


@dataclass(frozen=True, slots=True)
class StencilConfig:
    """Root configuration for Stencil."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    """Template and output layout."""

    build: BuildConfig = field(default_factory=BuildConfig)
    """Build tool invocation."""

    server: ServerConfig = field(default_factory=ServerConfig)
    """HTTP server settings."""

    queue: QueueConfig = field(default_factory=QueueConfig)
    """Serialization queue settings."""

    debug: bool = False
    """Enable DEBUG logging by default."""
