"""Install-then-build pipeline against a project directory."""

import logging
from pathlib import Path

from stencil.foundation.types import returns_result
from stencil.foundation.types.config import BuildConfig
from stencil.pipeline.runner import ToolRunner

logger = logging.getLogger(__name__)


async def _run_build(name: str, project_dir: Path, *, build: BuildConfig, runner: ToolRunner) -> None:
    """Run the install step, then the build step; raise the first failure."""
    for step, args in (("install", build.install_args), ("build", build.build_args)):
        logger.info("Running %s step for %s", step, name)
        result = await runner.run(build.tool, list(args), project_dir)
        if not result.ok:
            logger.error("%s step failed for %s: %s", step, name, result.error)
            result.unwrap()


run_build = returns_result(_run_build)
