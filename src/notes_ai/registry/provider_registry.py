"""registry.provider_registry

Maps provider slugs (``"gemini"``, ``"mock"``) to adapter classes.

Adapters register themselves under their ``provider`` class attribute when
their module is imported::

    @register_adapter
    class GeminiAdapter(AbstractLLMClient):
        provider = 'gemini'

The registry holds classes only, never client instances: clients (and the
rate limiter they share) are constructed explicitly at startup and injected.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, TypeVar

from notes_ai.core.exceptions import ProviderNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from notes_ai.core.abc import AbstractLLMClient

AdapterT = TypeVar('AdapterT', bound='type[AbstractLLMClient]')


class ProviderRegistry:
    """Slug → adapter class table, safe to mutate from several threads."""

    def __init__(self) -> None:
        self._adapters: dict[str, type[AbstractLLMClient]] = {}
        self._lock = threading.Lock()

    def register(self, adapter_cls: AdapterT, *, key: str | None = None) -> AdapterT:
        """Register *adapter_cls* under *key* (default: its ``provider`` slug).

        Returns the class unchanged so the method works as a class decorator.

        Raises
        ------
        TypeError
            If *adapter_cls* is not a concrete `AbstractLLMClient` subclass.
        ValueError
            If the slug is already taken by a different class.

        """
        from notes_ai.core.abc import AbstractLLMClient  # noqa: PLC0415 - import cycle

        if not isinstance(adapter_cls, type) or not issubclass(adapter_cls, AbstractLLMClient):
            raise TypeError('adapter_cls must subclass AbstractLLMClient')
        slug = (key or adapter_cls.provider).lower()
        if slug == AbstractLLMClient.provider:
            raise TypeError(f'{adapter_cls.__name__} does not declare a provider slug')

        with self._lock:
            current = self._adapters.get(slug)
            if current is not None and current is not adapter_cls:
                raise ValueError(f'Provider {slug!r} is already registered to {current.__name__}')
            self._adapters[slug] = adapter_cls
        return adapter_cls

    def unregister(self, key: str) -> None:
        with self._lock:
            self._adapters.pop(key.lower(), None)

    def get(self, key: str) -> type[AbstractLLMClient]:
        """Return the adapter class registered for *key* (case-insensitive).

        Raises
        ------
        ProviderNotFoundError
            If nothing is registered under *key*; the message lists the
            registered slugs.

        """
        try:
            return self._adapters[key.lower()]
        except KeyError as exc:
            available = ', '.join(self.available_providers()) or 'none'
            raise ProviderNotFoundError(f'Unsupported provider: {key} (available: {available})') from exc

    def available_providers(self) -> list[str]:
        return sorted(self._adapters)

    def mapping(self) -> Mapping[str, type[AbstractLLMClient]]:
        """Read-only snapshot of the table."""
        return dict(self._adapters)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._adapters


provider_registry = ProviderRegistry()
register_adapter = provider_registry.register
