"""Source-file overwrite and the composite update operation.

Mutations only replace files that already exist, so a project has to be
scaffolded before it can be updated.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from stencil.foundation.errors import ErrorCode, ValidationError, filesystem_error, not_found
from stencil.foundation.types import returns_result
from stencil.foundation.types.config import StencilConfig
from stencil.foundation.utils import atomic_write_text
from stencil.pipeline.build import run_build
from stencil.pipeline.runner import ToolRunner

logger = logging.getLogger(__name__)


def _overwrite(name: str, path: Path, content: str) -> Path:
    if not path.is_file():
        raise not_found(name, str(path))
    try:
        atomic_write_text(path, content)
    except UnicodeEncodeError as e:
        raise ValidationError(
            code=ErrorCode.INVALID_CONTENT,
            context={"field": path.name, "detail": e.reason},
            cause=e,
        ) from e
    except OSError as e:
        raise filesystem_error(name, str(path), e) from e
    return path


async def _replace_file(name: str, relative: str, content: str, config: StencilConfig) -> Path:
    path = config.paths.project_dir(name) / relative
    written = await asyncio.to_thread(_overwrite, name, path, content)
    logger.info("Replaced %s for %s (%d chars)", relative, name, len(content))
    return written


@returns_result
async def update_view(name: str, content: str, *, config: StencilConfig) -> Path:
    """Replace the UI entry file of ``name``."""
    return await _replace_file(name, config.paths.view_file, content, config)


@returns_result
async def update_server(name: str, content: str, *, config: StencilConfig) -> Path:
    """Replace the server entry file of ``name``."""
    return await _replace_file(name, config.paths.server_file, content, config)


def _clear_build_output(name: str, project_dir: Path, relative: str) -> bool:
    output = project_dir / relative
    if not output.exists():
        return False
    try:
        if output.is_dir() and not output.is_symlink():
            shutil.rmtree(output)
        else:
            output.unlink()
    except OSError as e:
        raise filesystem_error(name, str(output), e) from e
    return True


@returns_result
async def update(
    name: str,
    *,
    view: str | None = None,
    server: str | None = None,
    clean: bool = False,
    config: StencilConfig,
    runner: ToolRunner,
) -> bool:
    """Apply view/server content and rebuild ``name``.

    Args:
        name: Validated project name.
        view: New UI entry file content, if any.
        server: New server entry file content, if any.
        clean: Remove the build-output directory first. Ignored when there
            is nothing to apply, so a project is never left without output.
        config: Paths and build settings.
        runner: Build tool capability.

    Returns:
        Result carrying True if a rebuild ran, False if there was nothing to
        apply.
    """
    # Empty content counts as not supplied
    if not (view or server):
        logger.debug("Nothing to apply for %s, skipping rebuild", name)
        return False

    project_dir = config.paths.project_dir(name)

    if clean:
        removed = await asyncio.to_thread(
            _clear_build_output, name, project_dir, config.paths.build_output
        )
        if removed:
            logger.info("Cleared %s for %s", config.paths.build_output, name)

    if view:
        (await update_view(name, view, config=config)).unwrap()
    if server:
        (await update_server(name, server, config=config)).unwrap()

    (await run_build(name, project_dir, build=config.build, runner=runner)).unwrap()
    return True
