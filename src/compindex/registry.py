"""Provider registry for compindex.

Config strings select the embedding provider (``[embedding] provider``) and the
primary index (``[index] provider``); this module maps those strings to
factories that take a :class:`CompindexConfig`.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from compindex.exceptions import PluginError

if TYPE_CHECKING:
    from compindex.config import CompindexConfig

__all__ = ["ProviderRegistry", "default_registry"]

logger = logging.getLogger(__name__)

Factory = Callable[["CompindexConfig"], Any]

# Importing these modules registers the built-in providers.
_BUILTIN_MODULES = ("compindex.embed", "compindex.store")


class ProviderRegistry:
    """Lookup table ``category -> name -> factory``.

    Categories in use are ``"embedding"`` and ``"index"``. With
    ``auto_discover=True`` the built-in provider modules are imported on the
    first lookup and their providers become available in this registry too.
    Names registered here beforehand take precedence.

    Usage::

        registry = ProviderRegistry()
        registry.register("index", "chroma", ChromaIndex.from_config)
        index = registry.create("index", "chroma", config)
    """

    def __init__(self, *, auto_discover: bool = False) -> None:
        self._categories: dict[str, dict[str, Factory]] = {}
        self._pending_discovery = auto_discover

    def register(self, category: str, name: str, factory: Factory) -> None:
        """Add a factory under ``category``/``name``.

        Raises:
            PluginError: If the name is already taken in that category.
        """
        providers = self._categories.setdefault(category, {})
        if name in providers:
            raise PluginError(f"Provider '{name}' already registered in category '{category}'")
        providers[name] = factory
        logger.debug("Registered provider %s/%s", category, name)

    def create(self, category: str, name: str, config: CompindexConfig) -> Any:
        """Build the provider registered as ``category``/``name``.

        Raises:
            PluginError: If the category or the name is unknown.
        """
        providers = self._providers(category)
        if providers is None:
            raise PluginError(
                f"Unknown provider category '{category}'. Available: {sorted(self._categories)}"
            )
        factory = providers.get(name)
        if factory is None:
            raise PluginError(
                f"Unknown provider '{name}' in category '{category}'. "
                f"Available: {sorted(providers)}"
            )
        logger.info("Creating %s provider %r", category, name)
        return factory(config)

    def list_providers(self, category: str) -> list[str]:
        return sorted(self._providers(category) or {})

    def has_provider(self, category: str, name: str) -> bool:
        return name in (self._providers(category) or {})

    def _providers(self, category: str) -> dict[str, Factory] | None:
        if self._pending_discovery:
            self._pending_discovery = False
            self._discover_builtins()
        return self._categories.get(category)

    def _discover_builtins(self) -> None:
        # Built-in modules register into default_registry on import; other
        # instances copy those entries without replacing their own.
        for module in _BUILTIN_MODULES:
            importlib.import_module(module)
        if self is default_registry:
            return
        for category, providers in default_registry._categories.items():
            mine = self._categories.setdefault(category, {})
            for name, factory in providers.items():
                mine.setdefault(name, factory)


default_registry = ProviderRegistry(auto_discover=True)
