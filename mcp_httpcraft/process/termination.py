"""
Per-invocation termination timers.

State machine:  pending -> graceful_requested -> force_requested -> settled

The first of (wall-clock timeout, stream overflow) latches the termination
reason and sends the graceful signal. An escalation timer then sends SIGKILL
if the process is still alive after the grace period. Nothing here is shared
between invocations.
"""

import asyncio
import enum
import logging
import signal
from typing import Optional

logger = logging.getLogger(__name__)

# Seconds between the graceful signal and SIGKILL
KILL_GRACE_PERIOD = 5.0


class TerminationState(str, enum.Enum):
    PENDING = "pending"
    GRACEFUL_REQUESTED = "graceful_requested"
    FORCE_REQUESTED = "force_requested"
    SETTLED = "settled"


class TerminationReason(str, enum.Enum):
    TIMEOUT = "timeout"
    OVERFLOW = "overflow"


class TerminationTimers:
    """Owns the timeout and escalation timers for one child process."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        timeout: float,
        kill_grace: float = KILL_GRACE_PERIOD,
        graceful_signal: int = signal.SIGTERM,
    ):
        self._process = process
        self._timeout = timeout
        self._kill_grace = kill_grace
        self._graceful_signal = graceful_signal
        self._loop = asyncio.get_running_loop()
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._escalation_handle: Optional[asyncio.TimerHandle] = None

        self.state = TerminationState.PENDING
        self.reason: Optional[TerminationReason] = None
        self.overflow_stream: Optional[str] = None

    @property
    def latched(self) -> bool:
        return self.reason is not None

    def arm(self) -> None:
        """Start the wall-clock timer."""
        self._timeout_handle = self._loop.call_later(self._timeout, self._on_timeout)

    def latch(self, reason: TerminationReason, stream: Optional[str] = None) -> bool:
        """
        Record why the process is being terminated and request termination.

        Only the first call has any effect. Returns True if this call set
        the latch.
        """
        if self.state is TerminationState.SETTLED or self.reason is not None:
            return False

        self.reason = reason
        self.overflow_stream = stream
        self._cancel_timeout()
        self._request_graceful()
        return True

    def settle(self) -> None:
        """Cancel pending timers once the process has exited."""
        self._cancel_timeout()
        if self._escalation_handle is not None:
            self._escalation_handle.cancel()
            self._escalation_handle = None
        self.state = TerminationState.SETTLED

    def _on_timeout(self) -> None:
        self._timeout_handle = None
        if self.latch(TerminationReason.TIMEOUT):
            logger.warning(
                f"Process timeout ({self._timeout:g}s), sending "
                f"{signal.Signals(self._graceful_signal).name}"
            )

    def _request_graceful(self) -> None:
        self.state = TerminationState.GRACEFUL_REQUESTED
        if self._process.returncode is not None:
            return
        try:
            self._process.send_signal(self._graceful_signal)
        except ProcessLookupError:
            # Exited between the returncode check and the signal
            return
        self._escalation_handle = self._loop.call_later(
            self._kill_grace, self._on_escalate
        )

    def _on_escalate(self) -> None:
        self._escalation_handle = None
        if self.state is not TerminationState.GRACEFUL_REQUESTED:
            return
        if self._process.returncode is not None:
            return

        self.state = TerminationState.FORCE_REQUESTED
        logger.warning(
            f"Process {self._process.pid} ignored graceful termination, "
            "force killing with SIGKILL"
        )
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
