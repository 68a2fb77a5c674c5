"""
Envelope classifiers for JSON output.

httpcraft prints one of two incompatible JSON shapes:

- API envelope: {"status": "success"|"error", "data": ..., "error": ..., "meta": {...}}
- HTTP envelope: {"statusCode"|"status": 200, "headers": {...},
                  "body"|"data"|"response": ..., "duration"|"totalTime": 120,
                  "timing": {"dns": ..., ...}}

A string ``status`` or a ``meta`` object selects the API shape; a numeric
``statusCode`` next to a string ``status`` is ignored.
"""

import math
from typing import Any, Dict, Mapping, Optional

from mcp_httpcraft.decoding.models import (
    MISSING,
    TIMING_PHASES,
    DecodedResponse,
    ResponseMode,
    Timing,
)

JSON_CONTENT_TYPE = "application/json"

# Data field lookup order for the HTTP envelope
HTTP_DATA_KEYS = ("body", "data", "response")

# Total timing lookup order for the HTTP envelope
HTTP_DURATION_KEYS = ("duration", "totalTime")


def is_api_envelope(payload: Mapping[str, Any]) -> bool:
    return isinstance(payload.get("status"), str) or isinstance(
        payload.get("meta"), dict
    )


def decode_envelope(value: Any) -> DecodedResponse:
    """Classify any parsed JSON value and build the matching response."""
    if isinstance(value, dict):
        if is_api_envelope(value):
            return decode_api_envelope(value)
        return decode_http_envelope(value)

    # Top-level arrays and scalars carry no envelope at all
    return DecodedResponse(
        success=True,
        mode=ResponseMode.HTTP,
        data=value,
        content_type=JSON_CONTENT_TYPE,
        timing=Timing(total=0),
    )


def decode_api_envelope(payload: Mapping[str, Any]) -> DecodedResponse:
    status = payload.get("status")
    error = error_text(payload.get("error"))

    if isinstance(status, str):
        success = status == "success"
    elif isinstance(payload.get("success"), bool):
        # meta without status
        success = payload["success"]
    else:
        success = error is None

    meta = payload.get("meta")
    return DecodedResponse(
        success=success,
        mode=ResponseMode.API,
        data=payload["data"] if "data" in payload else MISSING,
        error=error,
        content_type=JSON_CONTENT_TYPE,
        meta=dict(meta) if isinstance(meta, dict) else None,
    )


def decode_http_envelope(payload: Mapping[str, Any]) -> DecodedResponse:
    status_code = _status_code(payload)
    headers = normalize_headers(payload.get("headers"))
    error = error_text(payload.get("error"))

    explicit = payload.get("success")
    if isinstance(explicit, bool):
        success = explicit
    elif status_code is not None:
        success = status_code < 400
    else:
        success = error is None

    data: Any = MISSING
    for key in HTTP_DATA_KEYS:
        if key in payload:
            data = payload[key]
            break

    status_text = payload.get("statusText")
    return DecodedResponse(
        success=success,
        mode=ResponseMode.HTTP,
        status_code=status_code,
        status_text=status_text if isinstance(status_text, str) else None,
        headers=headers,
        data=data,
        error=error,
        content_type=_content_type(payload, headers),
        content_length=_content_length(payload, headers),
        timing=_timing(payload),
    )


def normalize_headers(raw: Any) -> Dict[str, Any]:
    """Lowercase header names. Values are kept as-is for validation to inspect."""
    if not isinstance(raw, dict):
        return {}
    return {str(key).lower(): value for key, value in raw.items()}


def error_text(raw: Any) -> Optional[str]:
    """Reduce an ``error`` field to a message string."""
    if raw is None or raw is False:
        return None
    if isinstance(raw, str):
        return raw or None
    if isinstance(raw, dict) and isinstance(raw.get("message"), str):
        return raw["message"]
    return str(raw)


def media_type(content_type: str) -> str:
    """'application/json; charset=utf-8' -> 'application/json'"""
    return content_type.split(";", 1)[0].strip()


def _is_number(value: Any) -> bool:
    # json.loads accepts NaN, Infinity and 1e400; none of them is a usable number
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int) and not isinstance(value, bool)


def _status_code(payload: Mapping[str, Any]) -> Optional[int]:
    for key in ("status", "statusCode"):
        value = payload.get(key)
        if _is_number(value):
            return int(value)
    return None


def _content_type(payload: Mapping[str, Any], headers: Mapping[str, Any]) -> Optional[str]:
    explicit = payload.get("contentType")
    if isinstance(explicit, str):
        return explicit
    header = headers.get("content-type")
    if isinstance(header, str) and header:
        return media_type(header)
    return None


def _content_length(payload: Mapping[str, Any], headers: Mapping[str, Any]) -> Optional[int]:
    explicit = payload.get("contentLength")
    if _is_number(explicit):
        return int(explicit)
    header = headers.get("content-length")
    if isinstance(header, str) and header.strip().isdecimal():
        return int(header.strip())
    return None


def _timing(payload: Mapping[str, Any]) -> Timing:
    total: Any = 0
    for key in HTTP_DURATION_KEYS:
        if _is_number(payload.get(key)):
            total = payload[key]
            break

    phases: Dict[str, Any] = {}
    raw = payload.get("timing")
    if isinstance(raw, dict):
        phases = {phase: raw[phase] for phase in TIMING_PHASES if raw.get(phase) is not None}

    return Timing(total=total, **phases)
