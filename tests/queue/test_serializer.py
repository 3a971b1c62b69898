"""Tests for KeyedSerializer.

Covers:
- FIFO, non-overlapping execution per key
- Parallel execution across keys
- Chain cleanup once a key goes idle
- Fault isolation and the fail_fast policy
- Caller cancellation leaving the chain intact
"""

import asyncio
import time
from pathlib import Path

import pytest

from stencil.foundation.errors import NotFoundError, OperationSkippedError, PipelineError
from stencil.foundation.types import Result
from stencil.queue import KeyedSerializer


class TestOrdering:
    """Operations under one key."""

    @pytest.mark.asyncio
    async def test_same_key_never_interleaves(self, tmp_path: Path) -> None:
        """A's write-sleep-finish completes before B starts; final content is B's."""
        serializer = KeyedSerializer()
        target = tmp_path / "out.txt"
        events: list[str] = []

        async def write_x() -> Result[str]:
            events.append("A-start")
            target.write_text("X")
            await asyncio.sleep(0.05)
            events.append("A-end")
            return Result.success("A")

        async def write_y() -> Result[str]:
            events.append("B-start")
            target.write_text("Y")
            events.append("B-end")
            return Result.success("B")

        a, b = await asyncio.gather(
            serializer.enqueue("acme", write_x),
            serializer.enqueue("acme", write_y),
        )

        assert events == ["A-start", "A-end", "B-start", "B-end"]
        assert target.read_text() == "Y"
        assert a.value == "A"
        assert b.value == "B"

    @pytest.mark.asyncio
    async def test_many_operations_run_in_enqueue_order(self) -> None:
        serializer = KeyedSerializer()
        order: list[int] = []
        running = 0
        max_running = 0

        def make(i: int):
            async def op() -> Result[int]:
                nonlocal running, max_running
                running += 1
                max_running = max(max_running, running)
                await asyncio.sleep(0.001 * (10 - i))
                order.append(i)
                running -= 1
                return Result.success(i)

            return op

        results = await asyncio.gather(*(serializer.enqueue("k", make(i)) for i in range(10)))

        assert order == list(range(10))
        assert max_running == 1
        assert [r.value for r in results] == list(range(10))

    @pytest.mark.asyncio
    async def test_depth_counts_queued_and_running(self) -> None:
        serializer = KeyedSerializer()
        release = asyncio.Event()

        async def blocked() -> Result[None]:
            await release.wait()
            return Result.success()

        first = asyncio.create_task(serializer.enqueue("k", blocked))
        second = asyncio.create_task(serializer.enqueue("k", blocked))
        await asyncio.sleep(0)

        assert serializer.depth("k") == 2
        assert serializer.pending() == {"k": 2}

        release.set()
        await asyncio.gather(first, second)


class TestParallelism:
    """Operations under different keys."""

    @pytest.mark.asyncio
    async def test_distinct_keys_overlap(self) -> None:
        serializer = KeyedSerializer()
        windows: dict[str, tuple[float, float]] = {}

        def make(key: str):
            async def op() -> Result[None]:
                start = time.monotonic()
                await asyncio.sleep(0.1)
                windows[key] = (start, time.monotonic())
                return Result.success()

            return op

        started = time.monotonic()
        await asyncio.gather(
            serializer.enqueue("alpha", make("alpha")),
            serializer.enqueue("beta", make("beta")),
        )
        elapsed = time.monotonic() - started

        a_start, a_end = windows["alpha"]
        b_start, b_end = windows["beta"]
        assert a_start < b_end
        assert b_start < a_end
        assert elapsed < 0.19

    @pytest.mark.asyncio
    async def test_slow_key_does_not_block_other_key(self) -> None:
        serializer = KeyedSerializer()
        release = asyncio.Event()

        async def blocked() -> Result[str]:
            await release.wait()
            return Result.success("slow")

        async def quick() -> Result[str]:
            return Result.success("quick")

        slow_task = asyncio.create_task(serializer.enqueue("slow", blocked))
        await asyncio.sleep(0)

        result = await asyncio.wait_for(serializer.enqueue("fast", quick), timeout=1)
        assert result.value == "quick"
        assert not slow_task.done()

        release.set()
        assert (await slow_task).value == "slow"


class TestDrain:
    """Chain cleanup."""

    @pytest.mark.asyncio
    async def test_entry_removed_after_last_operation(self) -> None:
        serializer = KeyedSerializer()

        async def op() -> Result[None]:
            return Result.success()

        await asyncio.gather(serializer.enqueue("k", op), serializer.enqueue("k", op))
        await asyncio.sleep(0)

        assert "k" not in serializer
        assert len(serializer) == 0
        assert serializer.depth("k") == 0
        assert serializer.pending() == {}

    @pytest.mark.asyncio
    async def test_entry_kept_while_newer_operation_pending(self) -> None:
        """The first link finishing must not delete the chain the second link still owns."""
        serializer = KeyedSerializer()
        release = asyncio.Event()

        async def quick() -> Result[None]:
            return Result.success()

        async def blocked() -> Result[None]:
            await release.wait()
            return Result.success()

        first = asyncio.create_task(serializer.enqueue("k", quick))
        second = asyncio.create_task(serializer.enqueue("k", blocked))
        await first
        await asyncio.sleep(0)

        assert "k" in serializer
        assert serializer.depth("k") == 1

        release.set()
        await second
        await asyncio.sleep(0)
        assert "k" not in serializer

    @pytest.mark.asyncio
    async def test_reenqueue_after_quiescence_starts_fresh(self) -> None:
        serializer = KeyedSerializer("fail_fast")

        async def failing() -> Result[None]:
            return Result.failure(PipelineError(context={"command": "pnpm build", "exit_code": 1}))

        async def ok() -> Result[str]:
            return Result.success("fresh")

        await serializer.enqueue("k", failing)
        await asyncio.sleep(0)

        result = await asyncio.wait_for(serializer.enqueue("k", ok), timeout=1)
        assert result.ok
        assert result.value == "fresh"

    @pytest.mark.asyncio
    async def test_join_waits_for_live_chains(self) -> None:
        serializer = KeyedSerializer()
        finished: list[str] = []

        async def op() -> Result[None]:
            await asyncio.sleep(0.02)
            finished.append("done")
            return Result.success()

        task = asyncio.create_task(serializer.enqueue("k", op))
        await asyncio.sleep(0)
        await serializer.join()

        assert finished == ["done"]
        assert len(serializer) == 0
        await task


class TestFaultIsolation:
    """Failures stay with the caller that enqueued them."""

    @pytest.mark.asyncio
    async def test_failed_result_does_not_stop_next_operation(self) -> None:
        serializer = KeyedSerializer()
        error = NotFoundError(context={"name": "acme", "path": "/x/src/server.ts", "file": "server.ts"})

        async def failing() -> Result[None]:
            return Result.failure(error)

        async def ok() -> Result[str]:
            return Result.success("built")

        first, second = await asyncio.gather(
            serializer.enqueue("acme", failing),
            serializer.enqueue("acme", ok),
        )

        assert first.error is error
        assert second.ok
        assert second.value == "built"

    @pytest.mark.asyncio
    async def test_raised_stencil_error_becomes_failed_result(self) -> None:
        serializer = KeyedSerializer()
        error = PipelineError(context={"command": "pnpm install", "exit_code": 2})

        async def raising() -> Result[None]:
            raise error

        result = await serializer.enqueue("acme", raising)

        assert not result.ok
        assert result.error is error

    @pytest.mark.asyncio
    async def test_unexpected_exception_reaches_only_its_caller(self) -> None:
        serializer = KeyedSerializer()

        async def broken() -> Result[None]:
            raise RuntimeError("boom")

        async def ok() -> Result[str]:
            return Result.success("after")

        first, second = await asyncio.gather(
            serializer.enqueue("acme", broken),
            serializer.enqueue("acme", ok),
            return_exceptions=True,
        )

        assert isinstance(first, RuntimeError)
        assert isinstance(second, Result)
        assert second.value == "after"


class TestFailFast:
    """The fail_fast policy skips operations queued behind a failure."""

    @pytest.mark.asyncio
    async def test_operations_behind_failure_are_skipped(self) -> None:
        serializer = KeyedSerializer("fail_fast")
        ran: list[str] = []

        async def failing() -> Result[None]:
            ran.append("first")
            return Result.failure(PipelineError(context={"command": "pnpm build", "exit_code": 1}))

        async def second_op() -> Result[None]:
            ran.append("second")
            return Result.success()

        async def third_op() -> Result[None]:
            ran.append("third")
            return Result.success()

        first, second, third = await asyncio.gather(
            serializer.enqueue("acme", failing),
            serializer.enqueue("acme", second_op),
            serializer.enqueue("acme", third_op),
        )

        assert ran == ["first"]
        assert isinstance(first.error, PipelineError)
        assert isinstance(second.error, OperationSkippedError)
        assert isinstance(third.error, OperationSkippedError)

    @pytest.mark.asyncio
    async def test_other_keys_unaffected(self) -> None:
        serializer = KeyedSerializer("fail_fast")

        async def failing() -> Result[None]:
            return Result.failure(PipelineError(context={"command": "pnpm build", "exit_code": 1}))

        async def ok() -> Result[str]:
            return Result.success("fine")

        _, other = await asyncio.gather(
            serializer.enqueue("broken", failing),
            serializer.enqueue("healthy", ok),
        )
        assert other.value == "fine"

    def test_unknown_policy_rejected(self) -> None:
        with pytest.raises(ValueError):
            KeyedSerializer("retry")  # type: ignore[arg-type]


class TestCancellation:
    """Cancelling a waiting caller leaves the queued work alone."""

    @pytest.mark.asyncio
    async def test_cancelled_caller_operation_still_runs_in_order(self) -> None:
        serializer = KeyedSerializer()
        events: list[str] = []

        async def slow() -> Result[None]:
            events.append("slow-start")
            await asyncio.sleep(0.05)
            events.append("slow-end")
            return Result.success()

        async def after() -> Result[None]:
            events.append("after")
            return Result.success()

        caller = asyncio.create_task(serializer.enqueue("acme", slow))
        await asyncio.sleep(0.01)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        result = await serializer.enqueue("acme", after)

        assert result.ok
        assert events == ["slow-start", "slow-end", "after"]
