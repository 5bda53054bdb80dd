"""core.prompt

Prompt normalisation and request-deadline helpers.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_MAX_PROMPT_LENGTH = 10_000
TRUNCATION_MARKER = '...'

MAX_TIMEOUT_MS = 60_000
TIMEOUT_MS_PER_CHAR = 10

_LINE_BREAKS = re.compile(r'\s*\n\s*')
_INLINE_WHITESPACE = re.compile(r'[^\S\n]+')


def normalize_whitespace(prompt: str | None) -> str:
    """Collapse blank-line runs to one newline, other whitespace runs to one space, and trim."""
    if not prompt:
        return ''
    collapsed = _LINE_BREAKS.sub('\n', prompt)
    return _INLINE_WHITESPACE.sub(' ', collapsed).strip()


def truncate_prompt(prompt: str, max_length: int = DEFAULT_MAX_PROMPT_LENGTH) -> str:
    """Cut *prompt* to *max_length* characters, appending ``...`` when cut."""
    if len(prompt) <= max_length:
        return prompt
    logger.debug('Prompt truncated from %d to %d characters', len(prompt), max_length)
    return prompt[:max_length] + TRUNCATION_MARKER


def preprocess_prompt(prompt: str | None, max_length: int = DEFAULT_MAX_PROMPT_LENGTH) -> str:
    return truncate_prompt(normalize_whitespace(prompt), max_length)


def calculate_timeout(text_length: int, base_timeout_ms: int = 10_000) -> int:
    """Deadline in ms: 10 ms per character, capped at 60 s, never below *base_timeout_ms*."""
    return max(base_timeout_ms, min(MAX_TIMEOUT_MS, text_length * TIMEOUT_MS_PER_CHAR))
