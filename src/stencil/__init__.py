"""Stencil - on-demand scaffolding and rebuilding of template projects.

Requests for the same project are serialized; different projects build in
parallel.
"""

from stencil.foundation.errors import ErrorCode, StencilError
from stencil.foundation.types import Result
from stencil.queue import KeyedSerializer
from stencil.service import TemplateOutcome, TemplateService

__version__ = "0.1.0"

__all__ = [
    "ErrorCode",
    "KeyedSerializer",
    "Result",
    "StencilError",
    "TemplateOutcome",
    "TemplateService",
    "__version__",
]
