"""External build tool invocation.

The tool is a black box: output is forwarded to the log for observability,
and only the exit status decides success.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from stencil.foundation.errors import ErrorCode, PipelineError, SpawnError
from stencil.foundation.types import Result

logger = logging.getLogger(__name__)

# Lines of combined output attached to a failure for diagnosis
_OUTPUT_TAIL = 20
_CHUNK_SIZE = 64 * 1024
_LINE_LIMIT = 1024 * 1024


@runtime_checkable
class ToolRunner(Protocol):
    """Narrow capability for running one external command."""

    async def run(self, executable: str, args: Sequence[str], cwd: Path) -> Result[int]:
        """Run ``executable args`` in ``cwd``.

        Returns:
            Result carrying exit code 0, or a SpawnError / PipelineError.
        """
        ...


class SubprocessRunner:
    """Runs commands with asyncio subprocesses.

    Each stdout/stderr line is logged under this module's logger, prefixed
    with the executable name. A process that outlives ``timeout`` is killed
    and reaped before the failure is returned, so nothing keeps running in
    the project directory after the call completes.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    async def run(self, executable: str, args: Sequence[str], cwd: Path) -> Result[int]:
        command = " ".join([executable, *args])
        logger.info("[cmd] %s @ %s", command, cwd)

        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Could not start %s in %s: %s", command, cwd, e)
            return Result.failure(
                SpawnError(
                    context={
                        "command": command,
                        "tool": executable,
                        "detail": e.strerror or str(e),
                    },
                    cause=e,
                )
            )

        tail: deque[str] = deque(maxlen=_OUTPUT_TAIL)
        readers = [
            asyncio.create_task(self._forward(proc.stdout, executable, "stdout", tail)),
            asyncio.create_task(self._forward(proc.stderr, executable, "stderr", tail)),
        ]

        timed_out = False
        try:
            await asyncio.wait_for(asyncio.gather(*readers, proc.wait()), timeout=self.timeout)
        except TimeoutError:
            timed_out = True
        finally:
            # Every exit path, cancellation included, leaves no live process behind
            for reader in readers:
                reader.cancel()
            await self._kill(proc)

        if timed_out:
            logger.error("%s timed out after %ss in %s", command, self.timeout, cwd)
            return Result.failure(
                PipelineError(
                    code=ErrorCode.TOOL_TIMEOUT,
                    context={
                        "command": command,
                        "timeout": self.timeout,
                        "exit_code": None,
                        "output": list(tail),
                    },
                )
            )

        if proc.returncode != 0:
            logger.error("%s exited with code %s in %s", command, proc.returncode, cwd)
            return Result.failure(
                PipelineError(
                    context={
                        "command": command,
                        "exit_code": proc.returncode,
                        "output": list(tail),
                    },
                )
            )

        logger.debug("%s finished in %s", command, cwd)
        return Result.success(0)

    async def _forward(
        self,
        stream: asyncio.StreamReader | None,
        tool: str,
        channel: str,
        tail: deque[str],
    ) -> None:
        if stream is None:
            return
        pending = b""
        while chunk := await stream.read(_CHUNK_SIZE):
            *lines, pending = (pending + chunk).split(b"\n")
            for raw in lines:
                self._emit(raw, tool, channel, tail)
            # Unterminated output is flushed in pieces instead of buffered whole
            if len(pending) >= _LINE_LIMIT:
                self._emit(pending, tool, channel, tail)
                pending = b""
        if pending:
            self._emit(pending, tool, channel, tail)

    @staticmethod
    def _emit(raw: bytes, tool: str, channel: str, tail: deque[str]) -> None:
        line = raw.decode(errors="replace").rstrip()
        tail.append(line)
        logger.info("[%s:%s] %s", tool, channel, line)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()
