"""Stencil CLI."""

from stencil.cli.main import main

__all__ = ["main"]
