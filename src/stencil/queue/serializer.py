"""Per-key serialization queue.

Operations enqueued under the same key run one at a time in enqueue order.
Operations under different keys never wait on each other.

Each key maps to a chain: the task of the most recently enqueued operation
plus the number of operations still queued or running. A new operation's
task first waits for the previous tail (whatever its outcome) and then runs.
The chain entry is dropped when its tail finishes with nothing newer behind
it, so an idle key holds no state.
"""

import asyncio
import functools
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from stencil.foundation.errors import OperationSkippedError, StencilError
from stencil.foundation.types import Result
from stencil.foundation.types.config import FailurePolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[Result[T]]]


@dataclass(slots=True)
class _Chain:
    """Live chain for one key."""

    tail: "asyncio.Task[Result[Any]] | None" = None
    depth: int = 0
    failed: bool = False


class KeyedSerializer:
    """FIFO-per-key, parallel-across-keys executor for async operations.

    The key -> chain map is the only shared state. Every read-modify-write
    of it happens under ``_lock``, including the cleanup that runs from task
    done-callbacks.

    Usage:
        serializer = KeyedSerializer()
        result = await serializer.enqueue("acme", lambda: scaffold("acme", ...))

    Args:
        failure_policy: ``"isolate"`` runs every operation regardless of
            earlier failures. ``"fail_fast"`` skips operations queued behind
            a failure until the chain drains.
    """

    def __init__(self, failure_policy: FailurePolicy = "isolate") -> None:
        if failure_policy not in ("isolate", "fail_fast"):
            raise ValueError(f"Unknown failure policy: {failure_policy!r}")
        self.failure_policy = failure_policy
        self._chains: dict[str, _Chain] = {}
        self._lock = threading.Lock()

    async def enqueue(self, key: str, operation: Operation[T]) -> Result[T]:
        """Run ``operation`` after every earlier operation for ``key`` has finished.

        Cancelling the awaiting caller does not cancel the operation: it still
        runs to completion in its slot, and later operations still wait for it.

        Returns:
            The operation's own Result. A StencilError raised by the operation
            is returned as a failed Result; any other exception is re-raised
            to this caller only.
        """
        with self._lock:
            chain = self._chains.get(key)
            if chain is None:
                chain = _Chain()
                self._chains[key] = chain
            predecessor = chain.tail
            link = asyncio.create_task(
                self._run(key, chain, predecessor, operation),
                name=f"stencil-queue:{key}",
            )
            chain.tail = link
            chain.depth += 1
            depth = chain.depth
            link.add_done_callback(functools.partial(self._release, key, chain))

        logger.debug("Enqueued operation for %s (depth=%d)", key, depth)
        return await asyncio.shield(link)

    async def _run(
        self,
        key: str,
        chain: _Chain,
        predecessor: "asyncio.Task[Result[Any]] | None",
        operation: Operation[T],
    ) -> Result[T]:
        if predecessor is not None:
            # wait() never raises the predecessor's exception
            await asyncio.wait([predecessor])

        if self.failure_policy == "fail_fast" and chain.failed:
            logger.warning("Skipping operation for %s: an earlier operation failed", key)
            return Result.failure(OperationSkippedError(context={"name": key}))

        try:
            result = await operation()
        except StencilError as e:
            result = Result.failure(e)
        except Exception:
            chain.failed = True
            logger.exception("Operation for %s raised", key)
            raise

        if not result.ok:
            chain.failed = True
            logger.warning("Operation for %s failed: %s", key, result.error)
        return result

    def _release(self, key: str, chain: _Chain, link: "asyncio.Task[Result[Any]]") -> None:
        with self._lock:
            chain.depth -= 1
            # A newer link means the chain is still live; leave it in place
            if chain.tail is link and self._chains.get(key) is chain:
                del self._chains[key]
                logger.debug("Chain for %s drained", key)

    def depth(self, key: str) -> int:
        """Operations queued or running for ``key`` (0 when idle)."""
        with self._lock:
            chain = self._chains.get(key)
            return chain.depth if chain else 0

    def pending(self) -> dict[str, int]:
        """Snapshot of live keys and their depths."""
        with self._lock:
            return {key: chain.depth for key, chain in self._chains.items()}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._chains

    def __len__(self) -> int:
        with self._lock:
            return len(self._chains)

    async def join(self) -> None:
        """Wait until every chain that is live right now has drained."""
        while True:
            with self._lock:
                tails = [chain.tail for chain in self._chains.values() if chain.tail is not None]
            if not tails:
                return
            await asyncio.wait(tails)
