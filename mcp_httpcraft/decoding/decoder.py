"""
Response decoder.

Turns the stdout of one httpcraft invocation into a ``DecodedResponse``.
Once the size check passes this never fails: output that is not JSON goes
through the text heuristics instead.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Union

from mcp_httpcraft.decoding.envelopes import decode_envelope
from mcp_httpcraft.decoding.json_probe import Parsed, probe_json
from mcp_httpcraft.decoding.models import DecodedResponse, DecodeOptions
from mcp_httpcraft.decoding.text_fallback import decode_text
from mcp_httpcraft.errors import SizeLimitError, StructureValidationWarning

logger = logging.getLogger(__name__)

DecodeResult = Union[DecodedResponse, SizeLimitError]


def decode(raw_text: str, options: Optional[DecodeOptions] = None) -> DecodeResult:
    """
    Decode raw stdout.

    Args:
        raw_text: Captured stdout of the external tool
        options: Size limit and validation switch; defaults apply when omitted

    Returns:
        The decoded response, or a ``SizeLimitError`` value when the input is
        larger than ``options.max_response_size`` bytes (UTF-8)
    """
    options = options or DecodeOptions()

    size = len(raw_text.encode("utf-8", errors="replace"))
    if size > options.max_response_size:
        logger.warning(
            f"Refusing to decode {size} bytes (limit {options.max_response_size})"
        )
        return SizeLimitError(size, options.max_response_size)

    probe = probe_json(raw_text)
    if isinstance(probe, Parsed):
        response = decode_envelope(probe.value)
    else:
        logger.debug(f"Output is not JSON ({probe.reason}), using text heuristics")
        response = decode_text(raw_text)

    logger.debug(
        f"Decoded {size} bytes as {response.mode.value} response "
        f"(success={response.success}, status={response.status_code})"
    )

    if options.validate_structure:
        report = validate(response)
        if not report.valid:
            response = replace(response, warnings=report.errors)

    return response


def validate(response: DecodedResponse) -> StructureValidationWarning:
    """Check a decoded response for structural problems. Never modifies it."""
    errors: List[str] = []

    status = response.status_code
    if status is not None and not (
        isinstance(status, int) and 100 <= status < 600
    ):
        errors.append(f"Invalid status code: {status}")

    for key, value in response.headers.items():
        if not isinstance(key, str) or not isinstance(value, str):
            errors.append(f"Invalid header: {key}")

    timing = response.timing
    if timing is not None and isinstance(timing.total, (int, float)) and timing.total < 0:
        errors.append(f"Invalid total timing: {timing.total}")

    return StructureValidationWarning(tuple(errors))
