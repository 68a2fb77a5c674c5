"""Heuristic extraction for output that is not a JSON document.

Every matcher is an independent function. ``STATUS_MATCHERS`` fixes the
priority order: the first matcher that yields a code in [100, 600) wins,
regardless of where in the text other matchers would have hit.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence

from mcp_httpcraft.decoding.envelopes import JSON_CONTENT_TYPE, media_type
from mcp_httpcraft.decoding.json_probe import JsonProbe, NotJson, Parsed, probe_json, probe_json_at
from mcp_httpcraft.decoding.models import DecodedResponse, ResponseMode

TEXT_CONTENT_TYPE = "text/plain"

MAX_HEADER_NAME_LENGTH = 50

# Start offsets tried per bracket type when searching for an embedded block
MAX_BLOCK_CANDIDATES = 64

_STATUS_FIELD = re.compile(r"\bStatus:\s*(\d{3})\b", re.IGNORECASE)
_STATUS_LINE = re.compile(r"\bHTTP/\d+(?:\.\d+)?\s+(\d{3})\b")
_RESPONSE_WORD = re.compile(r"\bResponse\s+(\d{3})\b", re.IGNORECASE)
_BARE_CODE = re.compile(r"\b(\d{3})\s+[A-Za-z]+")

# "name: value" where name is an RFC 7230 token (no whitespace, quotes or braces)
_HEADER_LINE = re.compile(r"^([\w!#$%&'*+.^`|~-]+):[ \t]+(.*?)\s*$")

StatusMatcher = Callable[[str], Optional[int]]


def _first_valid(pattern: "re.Pattern[str]", text: str) -> Optional[int]:
    for match in pattern.finditer(text):
        code = int(match.group(1))
        if 100 <= code < 600:
            return code
    return None


def match_status_field(text: str) -> Optional[int]:
    """``Status: 404``"""
    return _first_valid(_STATUS_FIELD, text)


def match_status_line(text: str) -> Optional[int]:
    """``HTTP/1.1 200 OK``"""
    return _first_valid(_STATUS_LINE, text)


def match_response_word(text: str) -> Optional[int]:
    """``Response 201 Created``"""
    return _first_valid(_RESPONSE_WORD, text)


def match_bare_code(text: str) -> Optional[int]:
    """``500 Internal Server Error``"""
    return _first_valid(_BARE_CODE, text)


STATUS_MATCHERS: Sequence[StatusMatcher] = (
    match_status_field,
    match_status_line,
    match_response_word,
    match_bare_code,
)


def extract_status_code(text: str) -> Optional[int]:
    for matcher in STATUS_MATCHERS:
        code = matcher(text)
        if code is not None:
            return code
    return None


def extract_headers(text: str) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for line in text.splitlines():
        match = _HEADER_LINE.match(line)
        if not match:
            continue
        name, value = match.groups()
        if len(name) > MAX_HEADER_NAME_LENGTH:
            continue
        headers[name.lower()] = value
    return headers


def _json_lines(lines: List[str]) -> JsonProbe:
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(("{", "[")):
            continue
        probe = probe_json(stripped)
        if isinstance(probe, Parsed):
            return probe
    return NotJson("no line holds a JSON document")


def _json_block(text: str, opener: str) -> JsonProbe:
    start = text.find(opener)
    attempts = 0
    while start != -1 and attempts < MAX_BLOCK_CANDIDATES:
        probe = probe_json_at(text, start)
        if isinstance(probe, Parsed):
            return probe
        attempts += 1
        start = text.find(opener, start + 1)
    return NotJson(f"no {opener} block parses")


def extract_embedded_json(text: str) -> JsonProbe:
    """
    Find JSON inside free-form output.

    Order: a whole line that is JSON, then the first ``{...}`` block that
    parses, then the first ``[...]`` block that parses.
    """
    probe = _json_lines(text.splitlines())
    if isinstance(probe, Parsed):
        return probe
    probe = _json_block(text, "{")
    if isinstance(probe, Parsed):
        return probe
    return _json_block(text, "[")


def decode_text(text: str) -> DecodedResponse:
    """Structure non-JSON output as far as the heuristics allow."""
    headers = extract_headers(text)
    header_type = headers.get("content-type")
    declared = media_type(header_type) if header_type else None

    embedded = extract_embedded_json(text)
    if isinstance(embedded, Parsed):
        data = embedded.value
        content_type = declared or JSON_CONTENT_TYPE
    else:
        data = text
        content_type = declared or TEXT_CONTENT_TYPE

    return DecodedResponse(
        success=True,
        mode=ResponseMode.TEXT,
        status_code=extract_status_code(text),
        headers=headers,
        data=data,
        content_type=content_type,
    )
