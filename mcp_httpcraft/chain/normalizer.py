"""
Chain result normalizer.

``httpcraft chain exec --json`` output comes in a few shapes:

- direct: {"steps": [...], "success": bool, "failedStep": int, "totalDuration": ms}
- wrapped: {"chain": {...direct...}}
- anything else, which is treated as one implicit step

Normalization never raises. Inconsistent input still produces an outcome;
``validate_chain`` reports what is wrong with it.
"""

import logging
import math
from typing import Any, List, Mapping, Optional

from mcp_httpcraft.chain.models import ChainOutcome, ChainStepResult
from mcp_httpcraft.decoding.envelopes import decode_envelope, error_text
from mcp_httpcraft.decoding.models import DecodedResponse
from mcp_httpcraft.errors import MalformedChainWarning

logger = logging.getLogger(__name__)

SINGLE_STEP_NAME = "single-request"

# Keys naming the failed step index, in lookup order
FAILED_STEP_KEYS = ("failedStep", "failedStepIndex")


def normalize_chain(payload: Any, measured_duration_ms: int) -> ChainOutcome:
    """
    Fold a chain payload into a ``ChainOutcome``.

    Args:
        payload: Parsed JSON, or a ``DecodedResponse`` whose ``data`` may hold the chain
        measured_duration_ms: Wall-clock duration of the whole invocation
    """
    if isinstance(payload, DecodedResponse):
        if not (isinstance(payload.data, dict) and _is_chain(payload.data)):
            return _single_step(payload.success, payload, measured_duration_ms)
        payload = payload.data

    # Wrappers can nest to any depth
    while isinstance(payload, dict) and _is_wrapper(payload):
        payload = payload["chain"]

    if isinstance(payload, dict):
        if isinstance(payload.get("steps"), list):
            return _direct_chain(payload, measured_duration_ms)
        success = payload.get("success", True)
        return _single_step(
            success if isinstance(success, bool) else True,
            decode_envelope(payload),
            measured_duration_ms,
        )

    logger.debug(f"Chain payload of type {type(payload).__name__} treated as one step")
    return _single_step(True, decode_envelope(payload), measured_duration_ms)


def _is_chain(payload: Mapping[str, Any]) -> bool:
    return isinstance(payload.get("steps"), list) or "chain" in payload


def _is_wrapper(payload: Mapping[str, Any]) -> bool:
    return "chain" in payload and not isinstance(payload.get("steps"), list)


def _single_step(
    success: bool, response: DecodedResponse, measured_duration_ms: int
) -> ChainOutcome:
    step = ChainStepResult(
        name=SINGLE_STEP_NAME,
        success=success,
        response=response,
        error=response.error,
    )
    return ChainOutcome(
        steps=(step,),
        success=success,
        failed_step_index=None if success else 0,
        total_duration=measured_duration_ms,
    )


def _direct_chain(payload: Mapping[str, Any], measured_duration_ms: int) -> ChainOutcome:
    steps = tuple(_step(index, raw) for index, raw in enumerate(payload["steps"]))

    success = payload.get("success")
    if not isinstance(success, bool):
        success = all(step.success is True for step in steps)

    failed_step_index = _failed_step_index(payload)
    if failed_step_index is None and not success:
        failed_step_index = next(
            (index for index, step in enumerate(steps) if step.success is not True),
            None,
        )

    total_duration = payload.get("totalDuration")
    if not _is_number(total_duration):
        total_duration = measured_duration_ms

    return ChainOutcome(
        steps=steps,
        success=success,
        failed_step_index=failed_step_index,
        total_duration=total_duration,
    )


def _step(index: int, raw: Any) -> ChainStepResult:
    default_name = f"step-{index + 1}"
    if not isinstance(raw, dict):
        decoded = decode_envelope(raw)
        return ChainStepResult(name=default_name, success=decoded.success, response=decoded)

    # A step without a nested response is its own response
    nested = raw.get("response")
    response = decode_envelope(nested if isinstance(nested, dict) else raw)

    if "success" in raw:
        # Carried even when not a bool so validation can flag it
        success = raw["success"]
    else:
        status = _step_status(raw, response)
        success = status < 400 if status is not None else True

    return ChainStepResult(
        name=raw.get("name") or default_name,
        success=success,
        response=response,
        error=error_text(raw.get("error")),
    )


def _step_status(raw: Mapping[str, Any], response: DecodedResponse) -> Optional[int]:
    for key in ("statusCode", "status"):
        if _is_number(raw.get(key)):
            return int(raw[key])
    return response.status_code


def _failed_step_index(payload: Mapping[str, Any]) -> Optional[int]:
    for key in FAILED_STEP_KEYS:
        value = payload.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _is_number(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int) and not isinstance(value, bool)


def validate_chain(outcome: ChainOutcome) -> MalformedChainWarning:
    """Report consistency problems in an outcome. Never modifies it."""
    steps = outcome.steps
    if not isinstance(steps, (list, tuple)):
        return MalformedChainWarning(("Steps must be an array",))

    errors: List[str] = []
    for index, step in enumerate(steps):
        if not isinstance(step.name, str) or not step.name:
            errors.append(f"Step {index} missing name")
        if not isinstance(step.success, bool):
            errors.append(f"Step {index} success must be boolean")
        elif not step.success and not step.error:
            errors.append(f"Failed step {index} should have error message")

    index = outcome.failed_step_index
    if index is not None:
        if not 0 <= index < len(steps):
            errors.append("Failed step index out of range")
        elif steps[index].success is not False:
            errors.append("Failed step index points to successful step")

    if not _is_number(outcome.total_duration) or outcome.total_duration < 0:
        errors.append("Total duration must be a non-negative number")

    return MalformedChainWarning(tuple(errors))
