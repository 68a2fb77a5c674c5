"""
mcp-httpcraft: process execution and response decoding for the httpcraft CLI.
"""

__version__ = "0.1.0"

from .chain import ChainOutcome, ChainStepResult, normalize_chain, validate_chain
from .client import HttpCraftCli
from .decoding import DecodedResponse, DecodeOptions, decode, validate
from .process import ProcessInvocation, ProcessOutcome, run_process

__all__ = [
    "ChainOutcome",
    "ChainStepResult",
    "DecodeOptions",
    "DecodedResponse",
    "HttpCraftCli",
    "ProcessInvocation",
    "ProcessOutcome",
    "__version__",
    "decode",
    "normalize_chain",
    "run_process",
    "validate",
    "validate_chain",
]
