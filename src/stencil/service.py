"""Template service: binds a project name and intent to a queued operation.

Both the HTTP server and the CLI go through this class, so every
filesystem-plus-build pipeline for a name runs through the same serializer.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from stencil.foundation.types import Result
from stencil.foundation.types.config import StencilConfig
from stencil.pipeline import (
    SubprocessRunner,
    ToolRunner,
    scaffold,
    update,
    validate_content,
    validate_name,
)
from stencil.queue import KeyedSerializer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TemplateOutcome:
    """Successful create/update payload returned to callers."""

    name: str
    url: str
    project_dir: Path
    rebuilt: bool = True
    message: str | None = None


class TemplateService:
    """Create and update template projects, one pipeline per name at a time."""

    def __init__(
        self,
        config: StencilConfig,
        *,
        runner: ToolRunner | None = None,
        serializer: KeyedSerializer | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or SubprocessRunner(timeout=config.build.timeout)
        self.serializer = serializer or KeyedSerializer(config.queue.failure_policy)

    def preview_url(self, name: str) -> str:
        return self.config.server.preview_url.format(name=name)

    async def create(self, raw_name: str | None) -> Result[TemplateOutcome]:
        """Scaffold (or re-scaffold) a project and build it.

        Raises:
            ValidationError: If the name is invalid. Nothing is enqueued.
        """
        name = validate_name(raw_name)

        async def operation() -> Result[TemplateOutcome]:
            result = await scaffold(name, config=self.config, runner=self.runner)
            if not result.ok:
                logger.error("create_template error for %s: %s", name, result.error)
                return Result.failure(result.error)
            return Result.success(
                TemplateOutcome(name=name, url=self.preview_url(name), project_dir=result.value)
            )

        return await self.serializer.enqueue(name, operation)

    async def update(
        self,
        raw_name: str | None,
        *,
        view: str | None = None,
        server: str | None = None,
        clean: bool = False,
    ) -> Result[TemplateOutcome]:
        """Apply view/server content to a scaffolded project and rebuild it.

        Raises:
            ValidationError: If the name or content is invalid. Nothing is
                enqueued.
        """
        name = validate_name(raw_name)
        view = validate_content("view", view)
        server = validate_content("server", server)

        async def operation() -> Result[TemplateOutcome]:
            result = await update(
                name,
                view=view,
                server=server,
                clean=clean,
                config=self.config,
                runner=self.runner,
            )
            if not result.ok:
                logger.error("update_template error for %s: %s", name, result.error)
                return Result.failure(result.error)
            return Result.success(
                TemplateOutcome(
                    name=name,
                    url=self.preview_url(name),
                    project_dir=self.config.paths.project_dir(name),
                    rebuilt=bool(result.value),
                    message=f"Template '{name}' updated successfully.",
                )
            )

        return await self.serializer.enqueue(name, operation)
