"""Template create/update routes."""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel

from stencil.service import TemplateService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["template"])


# ═══════════════════════════════════════════════════════════════
# REQUEST/RESPONSE MODELS
# ═══════════════════════════════════════════════════════════════


class CreateTemplateRequest(BaseModel):
    """Request to scaffold a template project."""

    name: str | None = None


class UpdateTemplateRequest(BaseModel):
    """Request to replace entry files and rebuild."""

    name: str | None = None
    view: str | None = None
    server: str | None = None
    clean: bool = False


class CreateTemplateResponse(BaseModel):
    url: str


class UpdateTemplateResponse(BaseModel):
    message: str
    url: str
    rebuilt: bool


def _service(request: Request) -> TemplateService:
    return request.app.state.service


# ═══════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════


@router.post("/create/template")
async def create_template(body: CreateTemplateRequest, request: Request) -> CreateTemplateResponse:
    """Scaffold a project from the template and build it.

    Requests for the same name are queued; the response is sent once this
    request's own pipeline has finished. Failures are rendered by the
    StencilError handler registered in create_app.
    """
    outcome = (await _service(request).create(body.name)).unwrap()
    logger.info("Created template %s", outcome.name)
    return CreateTemplateResponse(url=outcome.url)


@router.post("/update/template")
async def update_template(body: UpdateTemplateRequest, request: Request) -> UpdateTemplateResponse:
    """Replace the view and/or server entry file and rebuild."""
    outcome = (
        await _service(request).update(
            body.name,
            view=body.view,
            server=body.server,
            clean=body.clean,
        )
    ).unwrap()
    logger.info("Updated template %s (rebuilt=%s)", outcome.name, outcome.rebuilt)
    return UpdateTemplateResponse(
        message=outcome.message or f"Template '{outcome.name}' updated successfully.",
        url=outcome.url,
        rebuilt=outcome.rebuilt,
    )
