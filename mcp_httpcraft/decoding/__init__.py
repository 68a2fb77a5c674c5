"""Decoding of httpcraft stdout into normalized responses."""

from .decoder import DecodeResult, decode, validate
from .envelopes import decode_envelope
from .json_probe import JsonProbe, NotJson, Parsed, probe_json
from .models import MISSING, DecodedResponse, DecodeOptions, ResponseMode, Timing
from .stderr import extract_error_message

__all__ = [
    "MISSING",
    "DecodeOptions",
    "DecodeResult",
    "DecodedResponse",
    "JsonProbe",
    "NotJson",
    "Parsed",
    "ResponseMode",
    "Timing",
    "decode",
    "decode_envelope",
    "extract_error_message",
    "probe_json",
    "validate",
]
