"""Tests for compindex.registry."""

from __future__ import annotations

import logging

import pytest

from compindex.config import CompindexConfig
from compindex.embed import OllamaEmbedder, OpenAICompatEmbedder
from compindex.exceptions import PluginError
from compindex.registry import ProviderRegistry, default_registry
from compindex.store import ChromaIndex


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry()


class TestRegistration:
    def test_factory_is_called_with_config(self, registry):
        seen: list[CompindexConfig] = []
        registry.register("index", "memory", lambda cfg: seen.append(cfg) or "built")

        config = CompindexConfig()
        assert registry.create("index", "memory", config) == "built"
        assert len(seen) == 1
        assert seen[0] is config

    def test_each_create_calls_factory_again(self, registry):
        registry.register("embedding", "fake", lambda cfg: object())
        config = CompindexConfig()
        assert registry.create("embedding", "fake", config) is not registry.create(
            "embedding", "fake", config
        )

    def test_same_name_in_two_categories(self, registry):
        registry.register("embedding", "chroma", lambda cfg: "embedder")
        registry.register("index", "chroma", lambda cfg: "index")
        config = CompindexConfig()
        assert registry.create("embedding", "chroma", config) == "embedder"
        assert registry.create("index", "chroma", config) == "index"

    def test_duplicate_name_rejected(self, registry):
        registry.register("embedding", "ollama", lambda cfg: 1)
        with pytest.raises(PluginError, match="'ollama' already registered in category 'embedding'"):
            registry.register("embedding", "ollama", lambda cfg: 2)
        assert registry.create("embedding", "ollama", CompindexConfig()) == 1

    def test_registration_is_logged(self, registry, caplog):
        with caplog.at_level(logging.DEBUG, logger="compindex.registry"):
            registry.register("index", "memory", lambda cfg: None)
        assert "Registered provider index/memory" in caplog.text


class TestLookup:
    def test_unknown_category(self, registry):
        registry.register("embedding", "fake", lambda cfg: None)
        with pytest.raises(PluginError, match=r"Unknown provider category 'vector'.*\['embedding'\]"):
            registry.create("vector", "fake", CompindexConfig())

    def test_unknown_name_lists_alternatives(self, registry):
        registry.register("index", "chroma", lambda cfg: None)
        registry.register("index", "memory", lambda cfg: None)
        with pytest.raises(
            PluginError, match=r"Unknown provider 'pinecone' in category 'index'.*\['chroma', 'memory'\]"
        ):
            registry.create("index", "pinecone", CompindexConfig())

    def test_list_providers_sorted(self, registry):
        assert registry.list_providers("embedding") == []
        for name in ("openai", "chromadb", "ollama"):
            registry.register("embedding", name, lambda cfg: None)
        assert registry.list_providers("embedding") == ["chromadb", "ollama", "openai"]

    def test_has_provider(self, registry):
        registry.register("index", "chroma", lambda cfg: None)
        assert registry.has_provider("index", "chroma")
        assert not registry.has_provider("index", "memory")
        assert not registry.has_provider("embedding", "chroma")


class TestDefaultRegistry:
    def test_builtin_embedders(self):
        assert default_registry.list_providers("embedding") == ["chromadb", "ollama", "openai"]

    def test_builtin_index(self):
        assert default_registry.list_providers("index") == ["chroma"]

    def test_fallback_store_is_not_a_provider(self):
        assert not default_registry.has_provider("index", "fallback")

    @pytest.mark.parametrize(
        ("name", "cls"), [("ollama", OllamaEmbedder), ("openai", OpenAICompatEmbedder)]
    )
    def test_creates_http_embedders(self, name, cls):
        assert isinstance(default_registry.create("embedding", name, CompindexConfig()), cls)

    def test_creates_chroma_index(self, tmp_path):
        config = CompindexConfig()
        config.index.path = str(tmp_path / "chroma")
        assert isinstance(default_registry.create("index", "chroma", config), ChromaIndex)

    def test_without_auto_discover_starts_empty(self):
        registry = ProviderRegistry(auto_discover=False)
        with pytest.raises(PluginError, match="Unknown provider category"):
            registry.create("embedding", "chromadb", CompindexConfig())

    def test_own_auto_discover_registry_gets_builtins(self):
        registry = ProviderRegistry(auto_discover=True)
        assert registry.list_providers("embedding") == ["chromadb", "ollama", "openai"]
        assert registry.has_provider("index", "chroma")

    def test_own_registration_wins_over_builtin(self):
        registry = ProviderRegistry(auto_discover=True)
        registry.register("embedding", "ollama", lambda cfg: "local override")
        assert registry.create("embedding", "ollama", CompindexConfig()) == "local override"
        assert registry.list_providers("embedding") == ["chromadb", "ollama", "openai"]

    def test_discovery_does_not_leak_into_default(self):
        registry = ProviderRegistry(auto_discover=True)
        registry.register("index", "memory", lambda cfg: None)
        registry.list_providers("index")
        assert not default_registry.has_provider("index", "memory")
