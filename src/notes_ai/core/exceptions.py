"""core.exceptions

Centralised exception hierarchy for *notes_ai*.

Every failure that leaves the package is a subclass of `NotesAIError`.
Provider failures are normalised to a single `GeminiError` carrying one
`GeminiErrorType`; see `core.error_classifier` for the mapping rules.

Each error carries an `http_status` so that upper layers (route handlers,
exception middlewares) can translate exceptions to HTTP responses without
scattering status-code logic throughout business code.
"""

from __future__ import annotations

from enum import StrEnum
from http import HTTPStatus
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class NotesAIError(Exception):
    """Base class for all *notes_ai* domain errors."""

    #: Default HTTP status if not overridden by subclass.
    http_status: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)

    @property
    def message(self) -> str:
        return str(self)

    def to_json(self) -> dict[str, dict[str, str]]:
        """Unified error body."""
        return {'error': {'type': self.__class__.__name__, 'message': str(self)}}


class ConfigurationError(NotesAIError):
    """Raised when settings are missing or outside their documented range."""


class ProviderNotFoundError(NotesAIError):
    """Raised when `ProviderRegistry` cannot find a requested provider key."""

    http_status: ClassVar[HTTPStatus] = HTTPStatus.NOT_IMPLEMENTED  # 501


# ---------------------------------------------------------------------------
# Generation errors
# ---------------------------------------------------------------------------


class GeminiErrorType(StrEnum):
    API_KEY_INVALID = 'API_KEY_INVALID'
    QUOTA_EXCEEDED = 'QUOTA_EXCEEDED'
    TIMEOUT = 'TIMEOUT'
    CONTENT_FILTERED = 'CONTENT_FILTERED'
    NETWORK_ERROR = 'NETWORK_ERROR'
    RATE_LIMIT = 'RATE_LIMIT'
    INVALID_REQUEST = 'INVALID_REQUEST'
    UNKNOWN = 'UNKNOWN'


RETRYABLE_ERROR_TYPES: frozenset[GeminiErrorType] = frozenset(
    {
        GeminiErrorType.NETWORK_ERROR,
        GeminiErrorType.TIMEOUT,
        GeminiErrorType.RATE_LIMIT,
    },
)

# Messages shown to end users; independent of whatever the provider said.
USER_MESSAGES: Mapping[GeminiErrorType, str] = {
    GeminiErrorType.API_KEY_INVALID: 'AI 서비스 인증에 실패했습니다. 관리자에게 문의하세요.',
    GeminiErrorType.QUOTA_EXCEEDED: 'AI 서비스 사용량이 초과되었습니다. 잠시 후 다시 시도해주세요.',
    GeminiErrorType.TIMEOUT: '요청 시간이 초과되었습니다. 다시 시도해주세요.',
    GeminiErrorType.CONTENT_FILTERED: '요청 내용이 필터링되었습니다. 다른 내용으로 시도해주세요.',
    GeminiErrorType.NETWORK_ERROR: '네트워크 연결에 문제가 있습니다. 인터넷 연결을 확인해주세요.',
    GeminiErrorType.RATE_LIMIT: '요청이 너무 많습니다. 잠시 후 다시 시도해주세요.',
    GeminiErrorType.INVALID_REQUEST: '잘못된 요청입니다. 다시 시도해주세요.',
    GeminiErrorType.UNKNOWN: '알 수 없는 오류가 발생했습니다. 다시 시도해주세요.',
}

HTTP_STATUS_MAP: Mapping[GeminiErrorType, HTTPStatus] = {
    GeminiErrorType.API_KEY_INVALID: HTTPStatus.BAD_GATEWAY,  # our key, not the caller's
    GeminiErrorType.QUOTA_EXCEEDED: HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
    GeminiErrorType.TIMEOUT: HTTPStatus.GATEWAY_TIMEOUT,
    GeminiErrorType.CONTENT_FILTERED: HTTPStatus.UNPROCESSABLE_ENTITY,
    GeminiErrorType.NETWORK_ERROR: HTTPStatus.BAD_GATEWAY,
    GeminiErrorType.RATE_LIMIT: HTTPStatus.TOO_MANY_REQUESTS,
    GeminiErrorType.INVALID_REQUEST: HTTPStatus.BAD_REQUEST,
    GeminiErrorType.UNKNOWN: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class GeminiError(NotesAIError):
    """Typed generation failure.

    Parameters
    ----------
    error_type
        One of the eight `GeminiErrorType` kinds.
    message
        Detail for logs. Not meant for end users; see `user_message()`.
    original_error
        The causative value, kept opaque.
    retry_after
        Seconds the caller should wait before trying again, when known.

    """

    def __init__(
        self,
        error_type: GeminiErrorType,
        message: str,
        original_error: object | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.original_error = original_error
        self.retry_after = retry_after

    @property
    def http_status(self) -> HTTPStatus:  # type: ignore[override]
        return HTTP_STATUS_MAP[self.error_type]

    def is_retryable(self) -> bool:
        """Return True for transient kinds (network, timeout, rate limit)."""
        return self.error_type in RETRYABLE_ERROR_TYPES

    def user_message(self) -> str:
        return USER_MESSAGES[self.error_type]

    def to_json(self) -> dict[str, dict[str, str]]:
        body = {
            'type': self.error_type.value,
            'message': self.user_message(),
        }
        if self.retry_after is not None:
            body['retry_after'] = str(self.retry_after)
        return {'error': body}

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'GeminiError({self.error_type.value}, {str(self)!r})'
