"""
ProcessExecutor: Subprocess management for httpcraft invocations.

Handles spawning, output capture with per-stream byte caps, and timeout
with graceful-then-forced termination.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Union

from mcp_httpcraft.errors import LaunchError, OutputLimitError, ProcessTimeoutError
from mcp_httpcraft.process.invocation import ProcessInvocation, ProcessOutcome
from mcp_httpcraft.process.termination import (
    KILL_GRACE_PERIOD,
    TerminationReason,
    TerminationTimers,
)

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 8192

RunResult = Union[ProcessOutcome, LaunchError, ProcessTimeoutError]


class _StreamBuffer:
    """Accumulates one stream's bytes and reports when the cap is passed."""

    def __init__(self, name: str, limit: int):
        self.name = name
        self.limit = limit
        self._data = bytearray()

    def append(self, chunk: bytes) -> bool:
        """Append a chunk. Returns True once the buffer exceeds its cap."""
        self._data.extend(chunk)
        return len(self._data) > self.limit

    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace").strip()


class ProcessExecutor:
    """
    Runs the external command as a subprocess.

    Provides:
    - stdout/stderr streaming capture, each capped at max_bytes
    - Total timeout with SIGTERM, escalating to SIGKILL after a grace period
    - Launch failures and timeouts returned as error values, never raised
    """

    def __init__(
        self,
        kill_grace: float = KILL_GRACE_PERIOD,
        chunk_size: int = READ_CHUNK_SIZE,
    ):
        """
        Initialize executor.

        Args:
            kill_grace: Seconds to wait after SIGTERM before sending SIGKILL.
            chunk_size: Bytes requested per stream read.
        """
        self._kill_grace = kill_grace
        self._chunk_size = chunk_size

    async def run(self, invocation: ProcessInvocation) -> RunResult:
        """
        Execute one invocation.

        Args:
            invocation: Command, environment and limits for this run

        Returns:
            ProcessOutcome when the process exited on its own (including a
            non-zero exit), LaunchError if it could not be started, or
            ProcessTimeoutError if it was terminated for running too long or
            producing too much output.
        """
        logger.debug(f"Executing: {invocation.describe()}")
        logger.debug(
            f"CWD: {invocation.cwd}, timeout: {invocation.timeout:g}s, "
            f"max_bytes: {invocation.max_bytes}"
        )

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *invocation.command,
                cwd=invocation.cwd,
                env={**os.environ, **invocation.env},
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            return self._launch_error(invocation, e)

        timers = TerminationTimers(
            process, invocation.timeout, kill_grace=self._kill_grace
        )
        timers.arm()

        stdout = _StreamBuffer("stdout", invocation.max_bytes)
        stderr = _StreamBuffer("stderr", invocation.max_bytes)
        readers = [
            asyncio.ensure_future(self._pump(process.stdout, stdout, timers)),
            asyncio.ensure_future(self._pump(process.stderr, stderr, timers)),
        ]

        try:
            returncode = await process.wait()
            await self._finish_readers(readers, timers)
        except asyncio.CancelledError:
            logger.warning("Execution cancelled, killing subprocess")
            for task in readers:
                task.cancel()
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        finally:
            timers.settle()

        duration_ms = int((time.monotonic() - start_time) * 1000)

        if timers.reason is TerminationReason.OVERFLOW:
            return OutputLimitError(
                invocation.timeout,
                timers.overflow_stream or "output",
                invocation.max_bytes,
            )
        if timers.reason is TerminationReason.TIMEOUT:
            return ProcessTimeoutError(invocation.timeout)

        outcome = ProcessOutcome.from_returncode(
            returncode, stdout.text(), stderr.text(), duration_ms
        )
        logger.debug(
            f"Process completed: exit_code={outcome.exit_code}, "
            f"signal={outcome.signal}, duration={duration_ms}ms, "
            f"stdout={len(outcome.stdout)} chars, stderr={len(outcome.stderr)} chars"
        )
        return outcome

    async def _pump(
        self,
        stream: Optional[asyncio.StreamReader],
        buffer: _StreamBuffer,
        timers: TerminationTimers,
    ) -> None:
        """Copy a stream into its buffer until EOF; discard data once latched."""
        if stream is None:
            return

        while True:
            chunk = await stream.read(self._chunk_size)
            if not chunk:
                return
            if timers.latched:
                continue
            if buffer.append(chunk) and timers.latch(
                TerminationReason.OVERFLOW, stream=buffer.name
            ):
                logger.warning(
                    f"Output buffer exceeded on {buffer.name} "
                    f"({buffer.limit} bytes), terminating process"
                )

    async def _finish_readers(
        self, readers: List[asyncio.Future], timers: TerminationTimers
    ) -> None:
        """
        Wait for both streams to reach EOF after the process exited.

        Descendants of the child can keep the pipes open; the wait is bounded
        by the grace period, and skipped when the output is being discarded.
        """
        wait_for = 0 if timers.latched else self._kill_grace
        _, pending = await asyncio.wait(readers, timeout=wait_for)
        for task in pending:
            task.cancel()
        await asyncio.gather(*readers, return_exceptions=True)

    def _launch_error(self, invocation: ProcessInvocation, error: Exception) -> LaunchError:
        # FileNotFoundError covers both a missing command and a missing cwd
        if (
            isinstance(error, FileNotFoundError)
            and invocation.cwd
            and not Path(invocation.cwd).exists()
        ):
            reason = f"Working directory not found: {invocation.cwd}"
        elif isinstance(error, FileNotFoundError):
            reason = f"Command not found: {invocation.executable}"
        elif isinstance(error, PermissionError):
            reason = f"Permission denied: {invocation.executable}"
        else:
            reason = str(error)

        logger.error(f"Process error: {reason}")
        return LaunchError(invocation.executable, reason)


async def run_process(
    invocation: ProcessInvocation, kill_grace: float = KILL_GRACE_PERIOD
) -> RunResult:
    """Run one invocation with a fresh executor."""
    return await ProcessExecutor(kill_grace=kill_grace).run(invocation)
