"""adapters.mock_adapter

Deterministic offline adapter for development and diagnostics.

Always returns the same output for the same prompt, making callers
reproducible without network calls or a real API key.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, ClassVar

from notes_ai.core.abc import AbstractLLMClient
from notes_ai.core.tokens import calculate_token_usage
from notes_ai.core.types import GenerationResult
from notes_ai.registry.provider_registry import register_adapter

if TYPE_CHECKING:
    from notes_ai.core.types import GenerationParams

_MOCK_PREFIX = '[MOCK] '


@register_adapter
class MockAdapter(AbstractLLMClient):
    provider: ClassVar[str] = 'mock'

    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self.call_count = 0

    async def _invoke(self, prompt: str, params: GenerationParams) -> GenerationResult:
        self.call_count += 1
        prompt_hash = hashlib.sha256(prompt.encode()).hexdigest()
        text = f'{_MOCK_PREFIX}Deterministic response for prompt hash {prompt_hash[:12]}.'
        return GenerationResult(
            text=text,
            usage=calculate_token_usage(prompt, text),
            model=f'mock/{params.model}',
            finish_reason='STOP',
        )
