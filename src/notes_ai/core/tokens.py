"""core.tokens

Heuristic token accounting.

Hangul syllables are dense: roughly one token each. Everything else is
counted at four characters per token. The estimate is never reconciled with
provider-reported usage, so limits derived from it are best-effort.
"""

from __future__ import annotations

import math
import re

from notes_ai.core.types import TokenUsage

_HANGUL_SYLLABLE = re.compile('[가-힣]')

DEFAULT_MAX_TOKENS = 8192
DEFAULT_RESERVED_TOKENS = 2000


def estimate_tokens(text: str | None) -> int:
    """Return the estimated token count of *text* (0 for empty input)."""
    if not text:
        return 0
    dense = len(_HANGUL_SYLLABLE.findall(text))
    sparse = len(text) - dense
    return dense + math.ceil(sparse / 4)


def validate_token_limit(
    input_tokens: int,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    reserved_tokens: int = DEFAULT_RESERVED_TOKENS,
) -> bool:
    """Return True if *input_tokens* leaves *reserved_tokens* of headroom."""
    return input_tokens <= max_tokens - reserved_tokens


def calculate_token_usage(input_text: str, output_text: str) -> TokenUsage:
    input_tokens = estimate_tokens(input_text)
    output_tokens = estimate_tokens(output_text)
    return TokenUsage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
    )
