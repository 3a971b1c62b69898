"""HTTP routes."""

from stencil.server.routes.misc import router as misc_router
from stencil.server.routes.templates import router as templates_router

__all__ = ["misc_router", "templates_router"]
