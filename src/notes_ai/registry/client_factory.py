"""registry.client_factory

Builds a fully initialised adapter from a provider slug and a
`GeminiConfig`. Call once at process start and pass the client around.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from notes_ai.core.config import GeminiConfig
from notes_ai.registry.provider_registry import provider_registry

if TYPE_CHECKING:
    from notes_ai.core.abc import AbstractLLMClient

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = 'gemini'

# Importing an adapter module registers it.
_BUILTIN_ADAPTERS = (
    'notes_ai.adapters.gemini_adapter',
    'notes_ai.adapters.mock_adapter',
)


def load_builtin_adapters() -> None:
    for module_name in _BUILTIN_ADAPTERS:
        importlib.import_module(module_name)


class LLMClientFactory:
    """Factory for creating provider-specific clients.

    This class is stateless; adapter classes live in provider_registry.
    """

    @staticmethod
    def initialize_client(
        provider: str = DEFAULT_PROVIDER,
        config: GeminiConfig | None = None,
        **adapter_kwargs: Any,
    ) -> AbstractLLMClient:
        """Return a concrete adapter for *provider*.

        Parameters
        ----------
        provider
            Registered provider slug, e.g. ``"gemini"`` or ``"mock"``.
        config
            Settings; read with `GeminiConfig.from_env()` when omitted.
        **adapter_kwargs
            Forwarded to the adapter's constructor (rate_limiter,
            retry_strategy, usage_sink, ...).

        """
        load_builtin_adapters()
        adapter_class = provider_registry.get(provider)
        client = adapter_class(config or GeminiConfig.from_env(), **adapter_kwargs)
        logger.info('LLM client initialised: %s (model=%s)', provider, client.get_config().model)
        return client


create_client = LLMClientFactory.initialize_client
