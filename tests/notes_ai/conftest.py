from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any

import pytest

from notes_ai.core.abc import AbstractLLMClient
from notes_ai.core.config import GeminiConfig
from notes_ai.core.retry import RetryStrategy
from notes_ai.core.tokens import calculate_token_usage
from notes_ai.core.types import GenerationParams, GenerationResult
from notes_ai.core.usage_log import InMemoryUsageSink

Behaviour = Callable[[str, GenerationParams], Awaitable[str]]


async def _echo(prompt: str, params: GenerationParams) -> str:  # noqa: ARG001
    return f'echo: {prompt}'


class ScriptedAdapter(AbstractLLMClient):
    """Adapter whose provider call is an injected coroutine function."""

    provider = 'scripted'

    def __init__(self, config: GeminiConfig, *, behaviour: Behaviour = _echo, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.behaviour = behaviour
        self.calls: list[tuple[str, GenerationParams]] = []

    async def _invoke(self, prompt: str, params: GenerationParams) -> GenerationResult:
        self.calls.append((prompt, params))
        text = await self.behaviour(prompt, params)
        return GenerationResult(
            text=text,
            usage=calculate_token_usage(prompt, text),
            model=params.model,
            finish_reason='STOP',
        )


class FakeClock:
    """Monotonic clock advanced by hand (seconds)."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config() -> GeminiConfig:
    return GeminiConfig(api_key='test-key')


@pytest.fixture
def usage_sink() -> InMemoryUsageSink:
    return InMemoryUsageSink()


@pytest.fixture
def no_backoff() -> RetryStrategy:
    return RetryStrategy(max_attempts=3, base_backoff_sec=0, max_backoff_sec=0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client(
    config: GeminiConfig,
    usage_sink: InMemoryUsageSink,
    no_backoff: RetryStrategy,
) -> Callable[..., ScriptedAdapter]:
    """Build a ScriptedAdapter with test-friendly defaults; kwargs override them."""

    def _make(behaviour: Behaviour = _echo, **kwargs: Any) -> ScriptedAdapter:
        kwargs.setdefault('usage_sink', usage_sink)
        kwargs.setdefault('retry_strategy', no_backoff)
        return ScriptedAdapter(kwargs.pop('config', config), behaviour=behaviour, **kwargs)

    return _make


@pytest.fixture
def restore_package_logger() -> Iterator[None]:
    """Undo `configure_logging` changes to the ``notes_ai`` logger."""
    package_logger = logging.getLogger('notes_ai')
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield
    package_logger.handlers[:] = saved[0]
    package_logger.setLevel(saved[1])
    package_logger.propagate = saved[2]
