"""
JSON probing as a plain value instead of exception-driven control flow.
"""

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Parsed:
    """The text was valid JSON."""

    value: Any


@dataclass(frozen=True)
class NotJson:
    """The text was not valid JSON."""

    reason: str


JsonProbe = Union[Parsed, NotJson]


def probe_json(text: str) -> JsonProbe:
    """Try to parse ``text`` as one JSON document."""
    try:
        return Parsed(json.loads(text))
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; absurd nesting overflows the parser
        return NotJson(str(e))


def probe_json_at(text: str, index: int) -> JsonProbe:
    """Try to parse one JSON value starting at ``index``, ignoring what follows."""
    try:
        value, _ = _DECODER.raw_decode(text, index)
    except (ValueError, RecursionError) as e:
        return NotJson(str(e))
    return Parsed(value)


_DECODER = json.JSONDecoder()
