"""Normalization of multi-step chain output."""

from .models import ChainOutcome, ChainStepResult
from .normalizer import normalize_chain, validate_chain
from .summary import summarize_chain

__all__ = [
    "ChainOutcome",
    "ChainStepResult",
    "normalize_chain",
    "summarize_chain",
    "validate_chain",
]
