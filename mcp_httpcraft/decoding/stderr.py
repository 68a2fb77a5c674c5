"""Pull a readable message out of httpcraft's stderr."""

import re
from typing import Sequence

UNKNOWN_ERROR = "Unknown HTTPCraft error"

# Tried in order; the first match's group is the message
ERROR_PATTERNS: Sequence["re.Pattern[str]"] = (
    re.compile(r"Error:\s*(.+)"),
    re.compile(r"error:\s*(.+)", re.IGNORECASE),
    re.compile(r"failed:\s*(.+)", re.IGNORECASE),
    re.compile(r"(.+):\s*command not found", re.IGNORECASE),
    re.compile(r"(.+):\s*no such file or directory", re.IGNORECASE),
    re.compile(r"timeout:\s*(.+)", re.IGNORECASE),
    re.compile(r"connection\s+(.+)", re.IGNORECASE),
)


def extract_error_message(stderr: str) -> str:
    """
    Best-effort message from stderr.

    >>> extract_error_message("Error: Invalid URL provided")
    'Invalid URL provided'
    >>> extract_error_message("")
    'Unknown HTTPCraft error'
    """
    for pattern in ERROR_PATTERNS:
        match = pattern.search(stderr)
        if match:
            return match.group(1).strip()

    for line in stderr.splitlines():
        if line.strip():
            return line.strip()
    return UNKNOWN_ERROR
