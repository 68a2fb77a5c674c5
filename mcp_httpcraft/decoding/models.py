"""
Types produced by the response decoder.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from mcp_httpcraft.config import DecoderConfig


class _Missing(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing.MISSING
"""Marks a field the output did not carry at all, as opposed to JSON null"""

TIMING_PHASES = ("dns", "connect", "ssl", "send", "wait", "receive")

# 10MB
DEFAULT_MAX_RESPONSE_SIZE = 10 * 1024 * 1024


class ResponseMode(str, enum.Enum):
    """Which branch of the decoder produced a response."""

    API = "api"
    HTTP = "http"
    TEXT = "text"


@dataclass(frozen=True)
class Timing:
    """Request timing in milliseconds."""

    total: Any = 0
    dns: Optional[Any] = None
    connect: Optional[Any] = None
    ssl: Optional[Any] = None
    send: Optional[Any] = None
    wait: Optional[Any] = None
    receive: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"total": self.total}
        for phase in TIMING_PHASES:
            value = getattr(self, phase)
            if value is not None:
                result[phase] = value
        return result


@dataclass(frozen=True)
class DecodedResponse:
    """
    Normalized view of one invocation's stdout.

    Only the fields the detected envelope carries are populated: API-envelope
    responses have ``meta`` and no ``status_code``; HTTP-envelope responses
    have ``status_code``, ``headers`` and ``timing``.
    """

    success: bool
    mode: ResponseMode
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    headers: Dict[str, Any] = field(default_factory=dict)
    """Keys are always lowercase"""

    data: Any = MISSING
    error: Optional[str] = None
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    timing: Optional[Timing] = None
    meta: Optional[Dict[str, Any]] = None
    warnings: Tuple[str, ...] = ()
    """Advisory validation findings attached by the decoder"""

    @property
    def has_data(self) -> bool:
        return self.data is not MISSING

    def to_dict(self) -> Dict[str, Any]:
        """Render with the external tool's camelCase names, omitting absent fields."""
        result: Dict[str, Any] = {"success": self.success}
        optional = {
            "statusCode": self.status_code,
            "statusText": self.status_text,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        result["headers"] = dict(self.headers)
        if self.has_data:
            result["data"] = self.data
        optional = {
            "error": self.error,
            "contentType": self.content_type,
            "contentLength": self.content_length,
            "timing": self.timing.to_dict() if self.timing is not None else None,
            "meta": self.meta,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        if self.warnings:
            result["warnings"] = list(self.warnings)
        return result


@dataclass(frozen=True)
class DecodeOptions:
    """Knobs for a single decode call."""

    max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE
    validate_structure: bool = False

    @classmethod
    def from_config(cls, config: DecoderConfig) -> "DecodeOptions":
        return cls(
            max_response_size=config.max_response_size,
            validate_structure=config.validate_structure,
        )
