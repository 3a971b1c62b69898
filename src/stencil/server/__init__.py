"""HTTP server for template scaffolding.

Usage:
    stencil serve --port 8089
"""

from stencil.server.main import create_app

__all__ = ["create_app"]
