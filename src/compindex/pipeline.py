"""Indexing pipeline for compindex.

Composes embedder → enricher → index via constructor injection.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from compindex.enrich import assess_quality, embedding_context, enrich, relationships_for
from compindex.exceptions import CompindexError, EmbeddingError, PipelineError
from compindex.types import IndexRecord, IngestReport

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from compindex.config import CompindexConfig
    from compindex.embed.base import BaseEmbedder
    from compindex.store.base import BaseIndex
    from compindex.types import Component

__all__ = ["IndexingPipeline"]

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """Turns raw components into stored index records.

    All dependencies are injected via the constructor, making the pipeline
    fully testable with mock implementations.

    Usage::

        pipeline = IndexingPipeline(embedder=embedder, index=index, config=config)
        report = pipeline.ingest(components, max_workers=4)
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        index: BaseIndex,
        config: CompindexConfig,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.config = config

    def ingest(
        self,
        components: Sequence[Component],
        *,
        skip_failures: bool = False,
        max_workers: int | None = None,
        on_batch: Callable[[int, int], None] | None = None,
        now: str | None = None,
    ) -> IngestReport:
        """Embed, enrich and store components.

        Args:
            components: Components to index. Ids already stored are replaced.
            skip_failures: Skip components whose embedding fails instead of
                aborting the whole call.
            max_workers: Concurrent embedding requests. Defaults to
                ``[embedding] max_workers``.
            on_batch: Progress callback ``(batch_number, total_batches)``.
            now: Timestamp recorded on every record of this call.

        Returns:
            Count of stored records and ids that were skipped.

        Raises:
            EmbeddingError: If an embedding fails and ``skip_failures`` is off.
            StoreError: If writing to the index fails.
            PipelineError: On any other failure.
        """
        if not components:
            return IngestReport(indexed=0, mode=self.index.mode)

        try:
            logger.info("Ingesting %d components (%s mode)", len(components), self.index.mode.value)

            vectors = self._embed_all(components, skip_failures, max_workers)
            timestamp = now or datetime.now(UTC).isoformat()

            records: list[IndexRecord] = []
            failed: list[str] = []
            for component, vector in zip(components, vectors, strict=True):
                if vector is None:
                    failed.append(component.id)
                    continue
                records.append(self._assemble(component, vector, timestamp))

            count = self.index.upsert(records, on_batch=on_batch)
            logger.info("Stored %d records (%d skipped)", count, len(failed))
            return IngestReport(indexed=count, mode=self.index.mode, failed=tuple(failed))

        except CompindexError:
            raise
        except Exception as e:
            raise PipelineError(f"Ingest of {len(components)} components failed: {e}") from e

    def _assemble(
        self,
        component: Component,
        vector: list[float],
        timestamp: str,
    ) -> IndexRecord:
        metadata = enrich(
            component,
            now=timestamp,
            content_limit=self.config.enrich.content_limit,
        )
        return IndexRecord(
            id=component.id,
            vector=tuple(float(v) for v in vector),
            metadata=metadata,
            relationships=relationships_for(component),
            quality=assess_quality(component, metadata),
        )

    def _embed_one(self, component: Component) -> list[float]:
        text = embedding_context(component, self.config.enrich.context_limit)
        try:
            return self.embedder.embed(text)
        except Exception as e:
            raise EmbeddingError(f"Failed to embed component {component.id}: {e}") from e

    def _embed_all(
        self,
        components: Sequence[Component],
        skip_failures: bool,
        max_workers: int | None,
    ) -> list[list[float] | None]:
        """Embed every component, in input order; ``None`` marks a skipped one."""
        workers = max(1, max_workers or self.config.embedding.max_workers)
        vectors: list[list[float] | None] = []

        if workers == 1:
            for component in components:
                vectors.append(self._embed_or_skip(component, skip_failures))
            return vectors

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="embed") as pool:
            futures = [pool.submit(self._embed_one, c) for c in components]
            for component, future in zip(components, futures, strict=True):
                try:
                    vectors.append(future.result())
                except EmbeddingError as e:
                    if not skip_failures:
                        for pending in futures:
                            pending.cancel()
                        raise
                    logger.warning("Skipping %s: %s", component.id, e)
                    vectors.append(None)
        return vectors

    def _embed_or_skip(self, component: Component, skip_failures: bool) -> list[float] | None:
        try:
            return self._embed_one(component)
        except EmbeddingError as e:
            if not skip_failures:
                raise
            logger.warning("Skipping %s: %s", component.id, e)
            return None
