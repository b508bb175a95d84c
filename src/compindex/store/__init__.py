"""Index backends: the primary ChromaDB index and local JSON fallback."""

from compindex.registry import default_registry
from compindex.store.base import BaseIndex
from compindex.store.chroma import ChromaIndex
from compindex.store.fallback import FallbackIndex, LocalJSONStore

__all__ = ["BaseIndex", "ChromaIndex", "FallbackIndex", "LocalJSONStore"]

# Only primary backends are registered; the fallback is bound by the engine.
default_registry.register("index", "chroma", ChromaIndex.from_config)
