"""core.error_classifier

Maps arbitrary failure values onto `GeminiError`.

Providers and transports fail in many shapes: SDK exceptions with a
``status_code``, plain objects or dicts carrying ``status``/``code``, bare
``TimeoutError``s, or just a message. `classify_error` is total: whatever it
is given, it returns exactly one `GeminiError` and never raises itself.

Precedence (first match wins):

1. already a `GeminiError`
2. a numeric status code
3. a well-known transport exception type
4. message substrings (timeout, network, content filter, quota)
5. `GeminiErrorType.UNKNOWN`
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import openai

from notes_ai.core.exceptions import GeminiError, GeminiErrorType

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

_STATUS_TABLE: Mapping[int, tuple[GeminiErrorType, str]] = {
    400: (GeminiErrorType.INVALID_REQUEST, 'Invalid request'),
    401: (GeminiErrorType.API_KEY_INVALID, 'API key is invalid'),
    403: (GeminiErrorType.API_KEY_INVALID, 'API key is invalid'),
    413: (GeminiErrorType.QUOTA_EXCEEDED, 'Request is too large'),
    429: (GeminiErrorType.RATE_LIMIT, 'Request limit exceeded'),
    500: (GeminiErrorType.NETWORK_ERROR, 'Upstream server error'),
    502: (GeminiErrorType.NETWORK_ERROR, 'Upstream server error'),
    503: (GeminiErrorType.NETWORK_ERROR, 'Upstream server error'),
}

# Ordered: earlier groups win when a message matches several.
_MESSAGE_RULES: tuple[tuple[tuple[str, ...], GeminiErrorType, str], ...] = (
    (('timeout', 'timed out', '시간 초과'), GeminiErrorType.TIMEOUT, 'Request timed out'),
    (('network', 'connect', 'fetch', '연결'), GeminiErrorType.NETWORK_ERROR, 'Network connection failed'),
    (('filtered', 'blocked', 'safety'), GeminiErrorType.CONTENT_FILTERED, 'Content was filtered'),
    (('quota', 'limit', 'exceeded'), GeminiErrorType.QUOTA_EXCEEDED, 'Usage quota exceeded'),
)

_STATUS_KEYS = ('code', 'status', 'status_code')


# ---------------------------------------------------------------------------
# Field extraction helpers
# ---------------------------------------------------------------------------


def _field(obj: object, name: str) -> Any:
    """Read *name* as a mapping key or an attribute, without ever raising."""
    try:
        if isinstance(obj, Mapping):
            return obj.get(name)
        return getattr(obj, name, None)
    except Exception:  # noqa: BLE001 - hostile __getattr__ must not break classification
        return None


def _as_status(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdecimal():
        return int(value)
    return None


def _extract_status(error: object) -> int | None:
    for key in _STATUS_KEYS:
        status = _as_status(_field(error, key))
        if status is not None:
            return status
    response = _field(error, 'response')
    if response is not None:
        return _as_status(_field(response, 'status_code'))
    return None


def _extract_retry_after(error: object) -> float | None:
    headers = _field(error, 'headers')
    if headers is None:
        response = _field(error, 'response')
        headers = _field(response, 'headers') if response is not None else None
    if headers is None:
        return None
    try:
        raw = headers.get('retry-after')
        if raw is None:
            raw = headers.get('Retry-After')
    except Exception:  # noqa: BLE001
        return None
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    return int(value) if value.is_integer() else value


def _extract_message(error: object) -> str:
    message = _field(error, 'message')
    if isinstance(message, str) and message:
        return message
    if isinstance(error, BaseException):
        try:
            return str(error)
        except Exception:  # noqa: BLE001
            return ''
    if isinstance(error, str):
        return error
    return ''


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify_error(error: object) -> GeminiError:
    """Return the `GeminiError` describing *error*."""
    if isinstance(error, GeminiError):
        return error

    detail = _extract_message(error)

    status = _extract_status(error)
    if status is not None and status in _STATUS_TABLE:
        error_type, summary = _STATUS_TABLE[status]
        retry_after = _extract_retry_after(error) if error_type is GeminiErrorType.RATE_LIMIT else None
        message = f'{summary} ({status}): {detail}' if detail else f'{summary} ({status})'
        return GeminiError(error_type, message, error, retry_after)

    if isinstance(error, asyncio.TimeoutError | TimeoutError | openai.APITimeoutError):
        return GeminiError(GeminiErrorType.TIMEOUT, detail or 'Request timed out', error)
    if isinstance(error, ConnectionError | openai.APIConnectionError):
        return GeminiError(GeminiErrorType.NETWORK_ERROR, detail or 'Network connection failed', error)

    lowered = detail.lower()
    for needles, error_type, summary in _MESSAGE_RULES:
        if any(needle in lowered for needle in needles):
            return GeminiError(error_type, f'{summary}: {detail}', error)

    return GeminiError(GeminiErrorType.UNKNOWN, detail or 'Unknown error', error)


def is_non_retryable_error(error: object) -> bool:
    """Return True if *error* should not be attempted again."""
    return not classify_error(error).is_retryable()
