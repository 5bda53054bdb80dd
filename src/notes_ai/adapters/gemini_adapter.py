"""adapters.gemini_adapter

Concrete adapter that bridges :class:`notes_ai.core.abc.AbstractLLMClient`
with **Google Gemini** through its OpenAI-compatible Chat Completions
endpoint, using the *openai==1.x* async client.

Gemini does not report token usage through this path in a way we rely on;
usage is estimated locally with `core.tokens`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import openai

from notes_ai.core.abc import AbstractLLMClient
from notes_ai.core.exceptions import GeminiError, GeminiErrorType
from notes_ai.core.tokens import calculate_token_usage
from notes_ai.core.types import GenerationResult
from notes_ai.registry.provider_registry import register_adapter

if TYPE_CHECKING:
    from notes_ai.core.config import GeminiConfig
    from notes_ai.core.types import GenerationParams

GEMINI_OPENAI_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta/openai/'

# ---------------------------------------------------------------------------
# Adapter implementation
# ---------------------------------------------------------------------------


@register_adapter
class GeminiAdapter(AbstractLLMClient):
    """Adapter for Gemini via the OpenAI-compatible API."""

    provider: ClassVar[str] = 'gemini'

    def __init__(
        self,
        config: GeminiConfig,
        *,
        client: openai.AsyncOpenAI | None = None,
        base_url: str = GEMINI_OPENAI_BASE_URL,
        **kwargs: object,
    ) -> None:
        super().__init__(config, **kwargs)  # type: ignore[arg-type]
        # The orchestrator owns deadlines and retries; the SDK must not add its own.
        self._client = client or openai.AsyncOpenAI(
            api_key=config.api_key,
            base_url=base_url,
            max_retries=0,
        )

    async def _invoke(self, prompt: str, params: GenerationParams) -> GenerationResult:
        response = await self._client.chat.completions.create(
            model=params.model,
            messages=[{'role': 'user', 'content': prompt}],
            max_tokens=params.max_tokens,
            temperature=params.temperature,
            top_p=params.top_p,
            extra_body={'top_k': params.top_k},
        )

        if not response.choices:
            raise GeminiError(GeminiErrorType.UNKNOWN, 'Provider returned no choices', response)

        choice = response.choices[0]
        if choice.finish_reason == 'content_filter':
            raise GeminiError(GeminiErrorType.CONTENT_FILTERED, 'Response blocked by safety filter', response)

        text = choice.message.content or ''
        if not text:
            raise GeminiError(GeminiErrorType.UNKNOWN, 'Generated text is empty', response)

        return GenerationResult(
            text=text,
            usage=calculate_token_usage(prompt, text),
            model=params.model,
            finish_reason=(choice.finish_reason or 'stop').upper(),
        )
