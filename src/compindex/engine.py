"""Retrieval engine for compindex.

:func:`connect` probes the primary vector index once and binds either it or
the local fallback store to a :class:`ComponentIndex` session. The mode never
changes for the lifetime of the session.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from compindex.analytics import migration_census, ui_census
from compindex.exceptions import StoreError
from compindex.pipeline import IndexingPipeline
from compindex.registry import default_registry
from compindex.store.fallback import FallbackIndex, LocalJSONStore
from compindex.types import Mode

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from compindex.config import CompindexConfig
    from compindex.embed.base import BaseEmbedder
    from compindex.registry import ProviderRegistry
    from compindex.store.base import BaseIndex
    from compindex.types import (
        Component,
        IndexRecord,
        IndexStats,
        IngestReport,
        MigrationReport,
        SearchHit,
        UIReport,
    )

__all__ = ["ComponentIndex", "connect", "open_fallback"]

logger = logging.getLogger(__name__)


def open_fallback(config: CompindexConfig) -> FallbackIndex:
    """Build the local fallback backend from the ``[fallback]`` section."""
    store = LocalJSONStore(Path(config.fallback.path))
    return FallbackIndex(store, dimension=config.embedding.dimension)


def _open_index(config: CompindexConfig, registry: ProviderRegistry) -> BaseIndex:
    """Bind the primary index if it answers the probe, else the fallback store."""
    provider = config.index.provider
    if not provider:
        logger.warning("No vector index configured; using fallback store %s", config.fallback.path)
        return open_fallback(config)

    try:
        index: BaseIndex = registry.create("index", provider, config)
        index.probe()
    except StoreError as e:
        logger.warning(
            "Vector index %r unavailable, using fallback store %s: %s",
            provider,
            config.fallback.path,
            e,
        )
        return open_fallback(config)

    logger.info("Connected to vector index %r", provider)
    return index


def connect(
    config: CompindexConfig,
    *,
    embedder: BaseEmbedder | None = None,
    index: BaseIndex | None = None,
    registry: ProviderRegistry = default_registry,
) -> ComponentIndex:
    """Start a session: choose the backend once and return the engine.

    An unreachable primary index is not an error; the session silently uses
    the fallback store and reports :attr:`Mode.FALLBACK`.

    Args:
        config: Loaded configuration.
        embedder: Embedding provider; built from ``[embedding] provider`` if omitted.
        index: Pre-built backend; skips the probe when given.
        registry: Provider registry used to build missing collaborators.
    """
    if embedder is None:
        embedder = registry.create("embedding", config.embedding.provider, config)
    if index is None:
        index = _open_index(config, registry)
    return ComponentIndex(index=index, embedder=embedder, config=config)


class ComponentIndex:
    """Indexing and retrieval over whichever backend the session is bound to.

    Usage::

        engine = connect(load_config(path))
        engine.ingest(components)
        hits = engine.search("account balance", top_k=5, where={"kind": "function"})
        similar = engine.find_similar(hits[0].record.id)
    """

    def __init__(
        self,
        index: BaseIndex,
        embedder: BaseEmbedder,
        config: CompindexConfig,
    ) -> None:
        self._index = index
        self._embedder = embedder
        self._config = config
        self._pipeline = IndexingPipeline(embedder=embedder, index=index, config=config)

    @property
    def mode(self) -> Mode:
        return self._index.mode

    @property
    def index(self) -> BaseIndex:
        return self._index

    def ingest(self, components: Sequence[Component], **kwargs: Any) -> IngestReport:
        """Index components; see :meth:`IndexingPipeline.ingest` for options."""
        return self._pipeline.ingest(components, **kwargs)

    def search(
        self,
        query: str,
        top_k: int = 10,
        where: Mapping[str, Any] | None = None,
    ) -> list[SearchHit]:
        """Free-text search, best match first.

        Primary mode ranks by embedding distance; fallback mode by
        text relevance. ``where`` filters on flat metadata fields in both.
        """
        vector = self._embedder.embed(query) if self._index.needs_query_vector else None
        return self._index.search(query, vector, top_k, where)

    def find_similar(self, component_id: str, top_k: int = 5) -> list[SearchHit]:
        """Records most similar to ``component_id``, never including it.

        Raises:
            NotFoundError: If ``component_id`` is not indexed.
        """
        return self._index.similar(component_id, top_k)

    def list_by_service(self, service: str) -> list[IndexRecord]:
        """Every record whose service equals ``service``.

        The primary index caps the listing at ``[index] list_limit``.
        """
        limit = self._config.index.list_limit if self.mode is Mode.PRIMARY else None
        return self._index.list_where({"service": service}, limit=limit)

    def get(self, component_id: str) -> IndexRecord:
        return self._index.fetch(component_id)

    def delete(self, component_id: str) -> None:
        self._index.delete(component_id)

    def clear(self) -> None:
        self._index.clear()

    def stats(self) -> IndexStats:
        return self._index.stats()

    def search_by_ui_pattern(self, pattern: str, top_k: int = 50) -> list[IndexRecord]:
        return self._filtered(f"UI component with {pattern} pattern", top_k, {"ui_pattern": pattern})

    def search_by_complexity(
        self,
        minimum: float,
        maximum: float,
        top_k: int = 100,
    ) -> list[IndexRecord]:
        where = {"complexity": {"$gte": minimum, "$lte": maximum}}
        return self._filtered("complex code components", top_k, where)

    def search_by_migration_priority(self, priority: str, top_k: int = 50) -> list[IndexRecord]:
        where = {"migration_priority": priority}
        return self._filtered(f"{priority} priority migration components", top_k, where)

    def components_by_domain(self, domain: str, top_k: int = 100) -> list[IndexRecord]:
        return self._filtered(f"components in {domain} domain", top_k, {"domain": domain})

    def ui_report(self) -> UIReport:
        return ui_census(self._index.records())

    def migration_report(self) -> MigrationReport:
        return migration_census(self._index.records())

    def _filtered(
        self,
        description: str,
        top_k: int,
        where: Mapping[str, Any],
    ) -> list[IndexRecord]:
        """Filtered lookup: ranked by ``description`` when vectors are available.

        The fallback store cannot rank by a descriptive phrase, so it returns
        the filter matches in stored order.
        """
        if self._index.needs_query_vector:
            return [h.record for h in self.search(description, top_k, where)]
        return self._index.list_where(where, limit=top_k)
