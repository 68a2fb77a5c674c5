"""
Types produced by the chain normalizer.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from mcp_httpcraft.decoding.models import DecodedResponse


@dataclass(frozen=True)
class ChainStepResult:
    """One step of a chain as reported by the tool."""

    name: str
    success: bool
    response: Optional[DecodedResponse] = None
    error: Optional[str] = None

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


@dataclass(frozen=True)
class ChainOutcome:
    """
    Canonical result of a chain invocation.

    ``steps`` is kept as built from the payload so ``validate_chain`` can
    report on whatever the tool actually sent; ``total_duration`` is in
    milliseconds.
    """

    steps: Sequence[ChainStepResult]
    success: bool
    failed_step_index: Optional[int] = None
    total_duration: Any = 0

    @property
    def failed_step(self) -> Optional[ChainStepResult]:
        index = self.failed_step_index
        if index is None or not 0 <= index < len(self.steps):
            return None
        return self.steps[index]

    @property
    def successful_steps(self) -> int:
        return sum(1 for step in self.steps if step.success is True)
