"""FastAPI application for template scaffolding.

Routes:
    POST /create/template   scaffold + install + build
    POST /update/template   replace entry files + install + build
    GET  /health
    GET  /queue
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stencil.foundation.config import StencilConfig, get_config
from stencil.foundation.errors import ErrorCode, StencilError, ValidationError
from stencil.pipeline import ToolRunner
from stencil.server.routes import misc_router, templates_router
from stencil.service import TemplateService

logger = logging.getLogger(__name__)

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_NAME: 400,
    ErrorCode.INVALID_CONTENT: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.FILE_NOT_FOUND: 404,
}


def status_for(error: StencilError) -> int:
    """HTTP status for a failed operation."""
    return _STATUS_BY_CODE.get(error.code, 500)


def create_app(
    config: StencilConfig | None = None,
    *,
    runner: ToolRunner | None = None,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        config: Settings; defaults to the process-wide config.
        runner: Build tool capability; defaults to a SubprocessRunner.

    Returns:
        Configured FastAPI app. The TemplateService (and its queue) lives on
        ``app.state.service`` for the lifetime of the app.
    """
    config = config or get_config()
    service = TemplateService(config, runner=runner)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Serving templates from %s into %s",
            config.paths.template_dir,
            config.paths.output_dir,
        )
        yield
        pending = service.serializer.pending()
        if pending:
            logger.warning("Waiting for queued operations before shutdown: %s", pending)
            await service.serializer.join()

    app = FastAPI(title="Stencil", version="0.1.0", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(StencilError)
    async def stencil_error_handler(request: Request, exc: StencilError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(exc.to_dict(), status_code=status)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Report location and message only; echoing the input can fail to encode
        detail = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return await stencil_error_handler(
            request, ValidationError(code=ErrorCode.INVALID_REQUEST, context={"detail": detail})
        )

    app.include_router(templates_router)
    app.include_router(misc_router)

    return app
