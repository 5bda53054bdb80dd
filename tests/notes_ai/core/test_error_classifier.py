from __future__ import annotations

import asyncio
from http import HTTPStatus
from types import SimpleNamespace

import httpx
import openai
import pytest

from notes_ai.core.error_classifier import classify_error, is_non_retryable_error
from notes_ai.core.exceptions import USER_MESSAGES, GeminiError, GeminiErrorType

_REQUEST = httpx.Request('POST', 'https://generativelanguage.googleapis.com/v1beta/openai/chat/completions')


class StatusError(Exception):
    def __init__(self, status_code: int, message: str = '') -> None:
        super().__init__(message)
        self.status_code = status_code


class HostileError:
    """Every attribute lookup blows up, dunders included."""

    def __getattr__(self, name: str) -> object:
        raise RuntimeError(f'no {name} for you')


def test_typed_error_passes_through() -> None:
    error = GeminiError(GeminiErrorType.CONTENT_FILTERED, 'blocked')
    assert classify_error(error) is error


@pytest.mark.parametrize(
    ('status', 'expected'),
    [
        (400, GeminiErrorType.INVALID_REQUEST),
        (401, GeminiErrorType.API_KEY_INVALID),
        (403, GeminiErrorType.API_KEY_INVALID),
        (413, GeminiErrorType.QUOTA_EXCEEDED),
        (429, GeminiErrorType.RATE_LIMIT),
        (500, GeminiErrorType.NETWORK_ERROR),
        (502, GeminiErrorType.NETWORK_ERROR),
        (503, GeminiErrorType.NETWORK_ERROR),
    ],
)
def test_status_table(status: int, expected: GeminiErrorType) -> None:
    assert classify_error(SimpleNamespace(status=status)).error_type is expected
    assert classify_error({'code': status, 'message': 'x'}).error_type is expected
    assert classify_error(StatusError(status)).error_type is expected


def test_status_wins_over_message() -> None:
    error = classify_error({'status': 401, 'message': 'network timeout'})
    assert error.error_type is GeminiErrorType.API_KEY_INVALID
    assert 'network timeout' in str(error)


def test_rate_limit_carries_retry_after() -> None:
    error = classify_error(SimpleNamespace(status=429, headers={'retry-after': '5'}))
    assert error.error_type is GeminiErrorType.RATE_LIMIT
    assert error.retry_after == 5  # noqa: PLR2004


def test_rate_limit_without_header() -> None:
    assert classify_error({'status': 429}).retry_after is None


@pytest.mark.parametrize('headers', [{'retry-after': 0}, {'retry-after': '0'}, {'Retry-After': 0}])
def test_zero_retry_after_is_kept(headers: dict[str, object]) -> None:
    assert classify_error(SimpleNamespace(status=429, headers=headers)).retry_after == 0


def test_non_ascii_digits_are_not_a_status() -> None:
    error = classify_error({'status': '²', 'message': 'connection refused'})
    assert error.error_type is GeminiErrorType.NETWORK_ERROR
    assert classify_error({'code': '429'}).error_type is GeminiErrorType.RATE_LIMIT


def test_openai_status_error_uses_response() -> None:
    response = httpx.Response(429, headers={'retry-after': '7'}, request=_REQUEST)
    sdk_error = openai.RateLimitError('Resource exhausted', response=response, body=None)

    error = classify_error(sdk_error)

    assert error.error_type is GeminiErrorType.RATE_LIMIT
    assert error.retry_after == 7  # noqa: PLR2004
    assert error.original_error is sdk_error


def test_openai_authentication_error() -> None:
    response = httpx.Response(401, request=_REQUEST)
    sdk_error = openai.AuthenticationError('API key not valid', response=response, body=None)
    assert classify_error(sdk_error).error_type is GeminiErrorType.API_KEY_INVALID


@pytest.mark.parametrize(
    ('error', 'expected'),
    [
        (TimeoutError(), GeminiErrorType.TIMEOUT),
        (asyncio.TimeoutError(), GeminiErrorType.TIMEOUT),
        (openai.APITimeoutError(request=_REQUEST), GeminiErrorType.TIMEOUT),
        (ConnectionResetError(), GeminiErrorType.NETWORK_ERROR),
        (openai.APIConnectionError(request=_REQUEST), GeminiErrorType.NETWORK_ERROR),
    ],
)
def test_transport_exception_types(error: Exception, expected: GeminiErrorType) -> None:
    assert classify_error(error).error_type is expected


@pytest.mark.parametrize(
    ('message', 'expected'),
    [
        ('Request TIMEOUT after 10s', GeminiErrorType.TIMEOUT),
        ('operation timed out', GeminiErrorType.TIMEOUT),
        ('요청 시간 초과', GeminiErrorType.TIMEOUT),
        ('Network is unreachable', GeminiErrorType.NETWORK_ERROR),
        ('could not connect to host', GeminiErrorType.NETWORK_ERROR),
        ('fetch failed', GeminiErrorType.NETWORK_ERROR),
        ('서버 연결 실패', GeminiErrorType.NETWORK_ERROR),
        ('Response was blocked', GeminiErrorType.CONTENT_FILTERED),
        ('candidate filtered for SAFETY', GeminiErrorType.CONTENT_FILTERED),
        ('quota exhausted', GeminiErrorType.QUOTA_EXCEEDED),
        ('daily limit exceeded', GeminiErrorType.QUOTA_EXCEEDED),
    ],
)
def test_message_substrings(message: str, expected: GeminiErrorType) -> None:
    assert classify_error(Exception(message)).error_type is expected
    assert classify_error({'message': message}).error_type is expected


@pytest.mark.parametrize(
    ('message', 'expected'),
    [
        ('network quota exceeded', GeminiErrorType.NETWORK_ERROR),
        ('timeout while blocked', GeminiErrorType.TIMEOUT),
        ('blocked: usage limit', GeminiErrorType.CONTENT_FILTERED),
    ],
)
def test_message_precedence(message: str, expected: GeminiErrorType) -> None:
    assert classify_error(Exception(message)).error_type is expected


def test_unmapped_status_falls_back_to_message() -> None:
    assert classify_error(StatusError(404, 'model not found')).error_type is GeminiErrorType.UNKNOWN
    assert classify_error(StatusError(504, 'gateway timeout')).error_type is GeminiErrorType.TIMEOUT


def test_unknown_preserves_message() -> None:
    error = classify_error(RuntimeError('boom'))
    assert error.error_type is GeminiErrorType.UNKNOWN
    assert str(error) == 'boom'


@pytest.mark.parametrize(
    'value',
    [
        None,
        42,
        3.5,
        object(),
        [],
        'plain string',
        pytest.param(HostileError(), id='hostile-getattr'),
        {'status': True},
        {'status': '²'},
        {'code': '①'},
        {'status_code': '٤٢٩'},
        SimpleNamespace(status=429, headers={'retry-after': 10**400}),
    ],
)
def test_total_over_arbitrary_values(value: object) -> None:
    error = classify_error(value)
    assert isinstance(error, GeminiError)
    assert error.error_type in GeminiErrorType


@pytest.mark.parametrize(
    ('error_type', 'retryable'),
    [
        (GeminiErrorType.NETWORK_ERROR, True),
        (GeminiErrorType.TIMEOUT, True),
        (GeminiErrorType.RATE_LIMIT, True),
        (GeminiErrorType.API_KEY_INVALID, False),
        (GeminiErrorType.QUOTA_EXCEEDED, False),
        (GeminiErrorType.CONTENT_FILTERED, False),
        (GeminiErrorType.INVALID_REQUEST, False),
        (GeminiErrorType.UNKNOWN, False),
    ],
)
def test_retryability(error_type: GeminiErrorType, retryable: bool) -> None:  # noqa: FBT001
    error = GeminiError(error_type, 'detail')
    assert error.is_retryable() is retryable
    assert is_non_retryable_error(error) is not retryable


def test_user_message_ignores_provider_detail() -> None:
    first = GeminiError(GeminiErrorType.TIMEOUT, 'deadline of 100ms exceeded')
    second = GeminiError(GeminiErrorType.TIMEOUT, 'something else entirely')
    assert first.user_message() == second.user_message() == USER_MESSAGES[GeminiErrorType.TIMEOUT]


def test_every_kind_has_user_message_and_status() -> None:
    for error_type in GeminiErrorType:
        error = GeminiError(error_type, 'detail')
        assert error.user_message()
        assert isinstance(error.http_status, HTTPStatus)


def test_to_json() -> None:
    body = GeminiError(GeminiErrorType.RATE_LIMIT, 'slow down', retry_after=5).to_json()
    assert body == {
        'error': {
            'type': 'RATE_LIMIT',
            'message': USER_MESSAGES[GeminiErrorType.RATE_LIMIT],
            'retry_after': '5',
        },
    }
