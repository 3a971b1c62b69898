"""Pytest fixtures for Stencil tests."""

import asyncio
import json
from collections.abc import Sequence
from pathlib import Path

import pytest

from stencil.foundation.config import PathsConfig, StencilConfig, reset_config
from stencil.foundation.errors import StencilError
from stencil.foundation.types import Result

TEMPLATE_MANIFEST = {
    "name": "template",
    "version": "1.0.0",
    "scripts": {
        "build": "run template build",
        "dev": "vite --config templates/vite.config.ts",
    },
}


class FakeRunner:
    """ToolRunner that records calls instead of spawning processes.

    ``fail_on`` maps the first argument of a step ("install", "build") to
    the error that step should return.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[tuple[str, tuple[str, ...], Path]] = []
        self.fail_on: dict[str, StencilError] = {}

    async def run(self, executable: str, args: Sequence[str], cwd: Path) -> Result[int]:
        self.calls.append((executable, tuple(args), Path(cwd)))
        if self.delay:
            await asyncio.sleep(self.delay)
        error = self.fail_on.get(args[0] if args else "")
        if error is not None:
            return Result.failure(error)
        return Result.success(0)

    @property
    def steps(self) -> list[str]:
        return [args[0] for _, args, _ in self.calls]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep user config and STENCIL_* variables out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("STENCIL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A minimal template tree with manifest and both entry files."""
    root = tmp_path / "template"
    (root / "src").mkdir(parents=True)
    (root / "package.json").write_text(json.dumps(TEMPLATE_MANIFEST, indent=2))
    (root / "src" / "App.vue").write_text("<template><div>template</div></template>\n")
    (root / "src" / "server.ts").write_text("export default {}\n")
    return root


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "components"


@pytest.fixture
def config(template_dir: Path, output_dir: Path) -> StencilConfig:
    return StencilConfig(
        paths=PathsConfig(template_dir=str(template_dir), output_dir=str(output_dir)),
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def scaffolded(config: StencilConfig, template_dir: Path) -> Path:
    """Project 'acme' laid out as if scaffolding had already run."""
    import shutil

    project = config.paths.project_dir("acme")
    shutil.copytree(template_dir, project)
    return project
