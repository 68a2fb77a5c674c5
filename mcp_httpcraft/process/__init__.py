"""
Process execution package.

Runs the external executable under a wall-clock timeout and per-stream
byte caps, escalating from SIGTERM to SIGKILL.
"""

from mcp_httpcraft.process.executor import ProcessExecutor, RunResult, run_process
from mcp_httpcraft.process.invocation import ProcessInvocation, ProcessOutcome
from mcp_httpcraft.process.termination import (
    TerminationReason,
    TerminationState,
    TerminationTimers,
)

__all__ = [
    "ProcessExecutor",
    "ProcessInvocation",
    "ProcessOutcome",
    "RunResult",
    "TerminationReason",
    "TerminationState",
    "TerminationTimers",
    "run_process",
]
