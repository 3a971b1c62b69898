"""Foundation utilities."""

from stencil.foundation.utils.serialization import atomic_write_json, atomic_write_text

__all__ = ["atomic_write_json", "atomic_write_text"]
