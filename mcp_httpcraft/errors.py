"""Error taxonomy for the HTTPCraft bridge.

Core functions (``run_process``, ``decode``) return these as values so callers
branch on the type; the ``HttpCraftCli`` convenience layer raises them.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


class HttpCraftError(Exception):
    """Base class for every terminal failure produced by the bridge."""


class LaunchError(HttpCraftError):
    """Raised when the external executable cannot be started."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"Failed to execute command: {reason}")
        self.command = command
        self.reason = reason


class ProcessTimeoutError(HttpCraftError):
    """Raised when an invocation is terminated before it could finish."""

    def __init__(self, timeout: float, message: Optional[str] = None):
        if message is None:
            message = f"Process timed out after {timeout:g}s"
        super().__init__(message)
        self.timeout = timeout


class OutputLimitError(ProcessTimeoutError):
    """Raised when a captured stream grew past its byte cap."""

    def __init__(self, timeout: float, stream: str, limit: int):
        super().__init__(
            timeout,
            f"Process {stream} exceeded {limit} bytes and was terminated",
        )
        self.stream = stream
        self.limit = limit


class NonZeroExitError(HttpCraftError):
    """The external command ran but reported failure."""

    def __init__(
        self,
        exit_code: Optional[int],
        stderr: str = "",
        stdout: str = "",
        signal: Optional[str] = None,
    ):
        detail = stderr or stdout
        suffix = f" (signal: {signal})" if signal else ""
        super().__init__(f"Process exited with code {exit_code}{suffix}: {detail}")
        self.exit_code = exit_code
        self.signal = signal
        self.stderr = stderr
        self.stdout = stdout


class SizeLimitError(HttpCraftError):
    """Decoder input was larger than the configured maximum."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Response size ({size} bytes) exceeds limit ({limit} bytes)")
        self.size = size
        self.limit = limit


class DecodeError(HttpCraftError):
    """Output that had to be JSON could not be parsed."""


@dataclass(frozen=True)
class ValidationReport:
    """Advisory findings about a value that is still usable."""

    errors: Tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors


class StructureValidationWarning(ValidationReport):
    """Findings about a decoded response."""


class MalformedChainWarning(ValidationReport):
    """Findings about a normalized chain outcome."""
