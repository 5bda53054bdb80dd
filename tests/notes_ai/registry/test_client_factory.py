from __future__ import annotations

import pytest

from notes_ai.adapters.gemini_adapter import GeminiAdapter
from notes_ai.adapters.mock_adapter import MockAdapter
from notes_ai.core.config import GeminiConfig
from notes_ai.core.exceptions import ConfigurationError, ProviderNotFoundError
from notes_ai.core.rate_limiter import TokenBucketRateLimiter
from notes_ai.core.usage_log import InMemoryUsageSink
from notes_ai.registry.client_factory import LLMClientFactory, create_client


@pytest.mark.asyncio
async def test_initialize_mock_client_and_generate() -> None:
    sink = InMemoryUsageSink()
    client = LLMClientFactory.initialize_client('mock', GeminiConfig(api_key='k'), usage_sink=sink)

    assert isinstance(client, MockAdapter)
    first = await client.generate_text('ping')
    second = await client.generate_text('ping')

    assert first.startswith('[MOCK] ')
    assert first == second  # deterministic
    assert client.call_count == 2  # noqa: PLR2004
    assert len(sink.entries) == 2  # noqa: PLR2004


def test_default_provider_is_gemini() -> None:
    client = create_client(config=GeminiConfig(api_key='k'))
    assert isinstance(client, GeminiAdapter)
    assert client.get_status().provider == 'gemini'


def test_config_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('GEMINI_API_KEY', 'env-key')
    monkeypatch.setenv('GEMINI_MODEL', 'gemini-1.5-pro')
    client = create_client('mock')
    assert client.get_config().model == 'gemini-1.5-pro'


def test_missing_key_surfaces_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv('GEMINI_API_KEY', raising=False)
    with pytest.raises(ConfigurationError):
        create_client('mock')


def test_unknown_provider() -> None:
    with pytest.raises(ProviderNotFoundError):
        create_client('nope', GeminiConfig(api_key='k'))


@pytest.mark.asyncio
async def test_clients_can_share_one_rate_limiter() -> None:
    limiter = TokenBucketRateLimiter(2, 2)
    config = GeminiConfig(api_key='k')
    first = create_client('mock', config, rate_limiter=limiter)
    second = create_client('mock', config, rate_limiter=limiter)

    await first.generate_text('a')
    await second.generate_text('b')

    assert first.rate_limiter is second.rate_limiter
    assert await second.health_check() is False
