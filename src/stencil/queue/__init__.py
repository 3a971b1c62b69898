"""Per-project serialization queue."""

from stencil.queue.serializer import KeyedSerializer, Operation

__all__ = ["KeyedSerializer", "Operation"]
