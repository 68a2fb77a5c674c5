"""Summary document for a chain outcome."""

from typing import Any, Dict

from mcp_httpcraft.chain.models import ChainOutcome


def summarize_chain(outcome: ChainOutcome) -> Dict[str, Any]:
    """Render the compact summary callers show for a chain run."""
    return {
        "success": outcome.success,
        "totalSteps": len(outcome.steps),
        "successfulSteps": outcome.successful_steps,
        "failedStep": outcome.failed_step_index,
        "totalDuration": outcome.total_duration,
        "steps": [
            {
                "name": step.name,
                "success": step.success,
                "statusCode": step.status_code,
                "error": step.error,
            }
            for step in outcome.steps
        ],
    }
