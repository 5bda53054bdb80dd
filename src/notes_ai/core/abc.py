"""core.abc

Abstract base class that *all* provider adapters must implement.

Design goals
============
1. **Provider-agnostic public API** - callers interact exclusively via
    `generate_text()` / `generate()` passing a prompt and optional
    `GenerationOptions`. They never touch provider-specific payloads.
2. **Built-in guard rails** - every call is preprocessed, checked against the
    token budget and the rate limiter, raced against a deadline and retried
    with back-off. Adapters only implement `_invoke()`.
3. **One error type** - anything that escapes is a `GeminiError`.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from notes_ai.core.error_classifier import classify_error
from notes_ai.core.exceptions import GeminiError, GeminiErrorType
from notes_ai.core.prompt import DEFAULT_MAX_PROMPT_LENGTH, calculate_timeout, normalize_whitespace, truncate_prompt
from notes_ai.core.rate_limiter import TokenBucketRateLimiter
from notes_ai.core.retry import RetryStrategy, retry_async
from notes_ai.core.tokens import DEFAULT_RESERVED_TOKENS, estimate_tokens, validate_token_limit
from notes_ai.core.types import ClientStatus, GenerationOptions, GenerationParams, UsageLogEntry
from notes_ai.core.usage_log import LoggingUsageSink, UsageSink, log_api_usage

if TYPE_CHECKING:
    from notes_ai.core.config import GeminiConfig
    from notes_ai.core.types import GenerationResult

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = 'Hello'
HEALTH_CHECK_MAX_TOKENS = 10


class AbstractLLMClient(ABC):
    """Provider-independent text generation client."""

    #: Registry key of the concrete adapter.
    provider: ClassVar[str] = 'abstract'

    # ---------------------------------------------------------------------
    # Construction
    # ---------------------------------------------------------------------

    def __init__(
        self,
        config: GeminiConfig,
        *,
        rate_limiter: TokenBucketRateLimiter | None = None,
        retry_strategy: RetryStrategy | None = None,
        usage_sink: UsageSink | None = None,
        reserved_tokens: int = DEFAULT_RESERVED_TOKENS,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ) -> None:
        """Store *config*; share *rate_limiter* between clients to share a quota."""
        self._config = config
        self._rate_limiter = rate_limiter or TokenBucketRateLimiter.per_minute(config.rate_limit_per_minute)
        self._retry_strategy = retry_strategy or RetryStrategy()
        self._usage_sink: UsageSink = usage_sink or LoggingUsageSink()
        self._reserved_tokens = reserved_tokens
        self._max_prompt_length = max_prompt_length
        self._initialized = True

        logger.debug(
            '%s initialised (model=%s, max_tokens=%d, timeout=%dms)',
            self.__class__.__name__,
            config.model,
            config.max_tokens,
            config.timeout_ms,
        )

    # ------------------------------------------------------------------
    # Public async API
    # ------------------------------------------------------------------

    async def generate_text(self, prompt: str, options: GenerationOptions | None = None) -> str:
        """Generate text for *prompt*.

        Raises
        ------
        GeminiError
            For every failure, including validation and rate limiting.

        """
        result = await self.generate(prompt, options)
        return result.text

    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> GenerationResult:
        """Like `generate_text` but return the full `GenerationResult`.

        Subclasses **must not** override this - override `_invoke()` instead.
        """
        normalized = normalize_whitespace(prompt)
        if not normalized:
            raise GeminiError(GeminiErrorType.INVALID_REQUEST, 'Empty prompt is not allowed')

        # The budget covers the whole normalised prompt, before truncation.
        budget_tokens = self.estimate_tokens(normalized)
        if not validate_token_limit(budget_tokens, self._config.max_tokens, self._reserved_tokens):
            raise GeminiError(
                GeminiErrorType.QUOTA_EXCEEDED,
                f'Input token count ({budget_tokens}) exceeds the limit '
                f'({self._config.max_tokens} - {self._reserved_tokens} reserved)',
            )

        processed = truncate_prompt(normalized, self._max_prompt_length)
        input_tokens = self.estimate_tokens(processed)

        decision = self._rate_limiter.check()
        if not decision.allowed:
            raise GeminiError(
                GeminiErrorType.RATE_LIMIT,
                f'Rate limit exceeded. Retry in {math.ceil(decision.wait_time_ms / 1000)}s',
                retry_after=decision.wait_time_ms / 1000,
            )

        params = self._resolve_params(options)
        timeout_ms = calculate_timeout(len(processed), self._config.timeout_ms)
        started = time.perf_counter()

        try:
            result = await retry_async(
                lambda: self._attempt(processed, params, timeout_ms, input_tokens),
                self._retry_strategy,
            )
        except Exception as exc:
            error = classify_error(exc)
            logger.debug(
                'Text generation failed after %dms: [%s] %s',
                _elapsed_ms(started),
                error.error_type,
                error,
            )
            if error is exc:
                raise
            raise error from exc

        logger.debug(
            'Text generation succeeded (tokens=%d+%d, latency=%dms)',
            result.usage.input_tokens,
            result.usage.output_tokens,
            _elapsed_ms(started),
        )
        return result

    async def health_check(self) -> bool:
        """Return True if a minimal generation call succeeds. Never raises."""
        try:
            text = await self.generate_text(
                HEALTH_CHECK_PROMPT,
                GenerationOptions(max_tokens=HEALTH_CHECK_MAX_TOKENS),
            )
        except Exception:
            logger.debug('Health check failed', exc_info=True)
            return False
        healthy = bool(text)
        logger.debug('Health check result: healthy=%s', healthy)
        return healthy

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text)

    def get_config(self) -> GeminiConfig:
        """Return the (frozen) configuration."""
        return self._config

    def get_status(self) -> ClientStatus:
        return ClientStatus(
            initialized=self._initialized,
            provider=self.provider,
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            timeout_ms=self._config.timeout_ms,
        )

    @property
    def rate_limiter(self) -> TokenBucketRateLimiter:
        return self._rate_limiter

    # ------------------------------------------------------------------
    # Methods to implement in concrete adapters
    # ------------------------------------------------------------------

    @abstractmethod
    async def _invoke(self, prompt: str, params: GenerationParams) -> GenerationResult:
        """Provider-specific call (to be overridden).

        May raise anything; failures are classified by the caller.
        """

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_params(self, options: GenerationOptions | None) -> GenerationParams:
        options = options or GenerationOptions()
        config = self._config
        return GenerationParams(
            model=config.model,
            max_tokens=options.max_tokens if options.max_tokens is not None else config.max_tokens,
            temperature=options.temperature if options.temperature is not None else config.temperature,
            top_p=options.top_p if options.top_p is not None else config.top_p,
            top_k=options.top_k if options.top_k is not None else config.top_k,
        )

    async def _attempt(
        self,
        prompt: str,
        params: GenerationParams,
        timeout_ms: int,
        input_tokens: int,
    ) -> GenerationResult:
        """One provider call raced against *timeout_ms*; records a usage entry."""
        started = time.perf_counter()
        logger.debug(
            'Calling %s (model=%s, prompt_length=%d, estimated_tokens=%d)',
            self.provider,
            params.model,
            len(prompt),
            input_tokens,
        )

        try:
            # wait_for cancels the provider call when the deadline wins
            result = await asyncio.wait_for(self._invoke(prompt, params), timeout=timeout_ms / 1000)
            if not result.text:
                raise GeminiError(GeminiErrorType.UNKNOWN, 'Generated text is empty')
        except TimeoutError as exc:
            error = GeminiError(GeminiErrorType.TIMEOUT, f'Request timed out after {timeout_ms}ms', exc)
            self._record_usage(params.model, input_tokens, 0, started, error)
            raise error from exc
        except Exception as exc:
            error = classify_error(exc)
            self._record_usage(params.model, input_tokens, 0, started, error)
            if error is exc:
                raise
            raise error from exc

        self._record_usage(result.model, result.usage.input_tokens, result.usage.output_tokens, started)
        return result

    def _record_usage(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        started: float,
        error: GeminiError | None = None,
    ) -> None:
        entry = UsageLogEntry(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=_elapsed_ms(started),
            success=error is None,
            error=str(error) if error is not None else None,
        )
        log_api_usage(self._usage_sink, entry)

    # ------------------------------------------------------------------
    # Helper - string representation
    # ------------------------------------------------------------------

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} model={self._config.model!r}>'


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
