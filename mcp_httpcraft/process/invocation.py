"""
Input and output records for a single external process invocation.
"""

import signal as _signal
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple

from mcp_httpcraft.errors import NonZeroExitError

DEFAULT_TIMEOUT = 30.0

# 10MB per stream
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class ProcessInvocation:
    """Everything needed to launch the external command once."""

    executable: str
    args: Sequence[str] = ()
    cwd: Optional[str] = None
    env: Mapping[str, str] = field(default_factory=dict)
    """Overrides layered on top of the current environment"""

    timeout: float = DEFAULT_TIMEOUT
    """Wall-clock limit in seconds"""

    max_bytes: int = DEFAULT_MAX_BYTES
    """Cap applied to stdout and stderr independently"""

    def __post_init__(self) -> None:
        if not self.executable:
            raise ValueError("executable must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {self.max_bytes}")
        object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))
        object.__setattr__(self, "env", dict(self.env))

    @property
    def command(self) -> Tuple[str, ...]:
        return (self.executable, *self.args)

    def describe(self) -> str:
        return " ".join(self.command)


@dataclass(frozen=True)
class ProcessOutcome:
    """Captured result of a process that ran to completion."""

    stdout: str
    stderr: str
    exit_code: Optional[int]
    """Set only when the process exited on its own"""

    signal: Optional[str]
    """Name of the terminating signal when the process was killed"""

    duration_ms: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def error(self) -> Optional[NonZeroExitError]:
        if self.success:
            return None
        return NonZeroExitError(
            self.exit_code, stderr=self.stderr, stdout=self.stdout, signal=self.signal
        )

    @classmethod
    def from_returncode(
        cls, returncode: int, stdout: str, stderr: str, duration_ms: int
    ) -> "ProcessOutcome":
        """Split an asyncio returncode into exit code or signal name.

        asyncio reports death-by-signal N as returncode -N.
        """
        if returncode < 0:
            try:
                signal_name: Optional[str] = _signal.Signals(-returncode).name
            except ValueError:
                signal_name = str(-returncode)
            return cls(stdout, stderr, None, signal_name, duration_ms)
        return cls(stdout, stderr, returncode, None, duration_ms)

    def as_dict(self) -> Dict[str, object]:
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exitCode": self.exit_code,
            "signal": self.signal,
            "duration": self.duration_ms,
            "success": self.success,
        }
