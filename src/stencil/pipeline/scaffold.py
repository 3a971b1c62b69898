"""Scaffold a project from the template tree and build it.

Re-scaffolding an existing project is allowed: the template is copied over
the existing tree, overwriting files it ships and leaving others in place.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from stencil.foundation.errors import ErrorCode, NotFoundError, filesystem_error
from stencil.foundation.types import returns_result
from stencil.foundation.types.config import StencilConfig
from stencil.pipeline.build import run_build
from stencil.pipeline.manifest import rewrite_manifest
from stencil.pipeline.runner import ToolRunner

logger = logging.getLogger(__name__)


def _copy_template(template_dir: Path, target_dir: Path, name: str) -> None:
    if not template_dir.is_dir():
        raise NotFoundError(
            code=ErrorCode.TEMPLATE_NOT_FOUND,
            context={"name": name, "path": str(template_dir)},
        )
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.copytree(template_dir, target_dir, dirs_exist_ok=True)
    except shutil.Error as e:
        # copytree collects per-file failures; report the first one
        src, dst, why = e.args[0][0]
        raise filesystem_error(name, dst, OSError(why)) from e
    except OSError as e:
        raise filesystem_error(name, str(target_dir), e) from e


@returns_result
async def scaffold(name: str, *, config: StencilConfig, runner: ToolRunner) -> Path:
    """Create or refresh ``name`` from the template, then install and build it.

    Args:
        name: Validated project name.
        config: Paths and build settings.
        runner: Build tool capability.

    Returns:
        Result carrying the project directory, or one of NotFoundError
        (template missing), ManifestError, SpawnError, PipelineError,
        FileSystemError.
    """
    template_dir = Path(config.paths.template_dir).resolve()
    target_dir = config.paths.project_dir(name)

    logger.info("Scaffolding %s from %s into %s", name, template_dir, target_dir)
    await asyncio.to_thread(_copy_template, template_dir, target_dir, name)
    await asyncio.to_thread(rewrite_manifest, target_dir, name, config.paths.manifest)

    (await run_build(name, target_dir, build=config.build, runner=runner)).unwrap()

    logger.info("Scaffolded %s", name)
    return target_dir
