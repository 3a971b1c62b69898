"""Typed outcome of a pipeline operation.

Pipeline operations report failure as a value rather than raising, so the
queue can hand each caller exactly its own outcome.
"""


import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, ParamSpec, TypeVar

from stencil.foundation.errors import StencilError

T = TypeVar("T")
P = ParamSpec("P")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Success payload or typed failure."""

    value: T | None = None
    error: StencilError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: StencilError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T | None:
        """Return the value, or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        return {"ok": True, "value": self.value}


def returns_result(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[Result[T]]]:
    """Wrap a coroutine function that raises StencilError into one returning Result.

    Only StencilError is captured. Anything else is a bug and propagates.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        try:
            return Result.success(await func(*args, **kwargs))
        except StencilError as e:
            return Result.failure(e)

    return wrapper
