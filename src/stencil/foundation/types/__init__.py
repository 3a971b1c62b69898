"""Shared value types."""

from stencil.foundation.types.result import Result, returns_result

__all__ = ["Result", "returns_result"]
