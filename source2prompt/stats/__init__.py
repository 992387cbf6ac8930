"""Selection statistics and token estimation."""

from .engine import (
    DEFAULT_PREAMBLE,
    PromptText,
    StatsEngine,
    StatsInputs,
    StatsResult,
    TokenCache,
    compute_stats,
    fallback_tokens,
    selected_text_files,
)

__all__ = [
    "DEFAULT_PREAMBLE",
    "PromptText",
    "StatsEngine",
    "StatsInputs",
    "StatsResult",
    "TokenCache",
    "compute_stats",
    "fallback_tokens",
    "selected_text_files",
]
