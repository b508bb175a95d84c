"""Local JSON fallback store.

Used when the primary vector index cannot be reached at start-up. The whole
record collection lives in one JSON document that is always rewritten via a
temp file and an atomic rename, so readers never see a partial write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from typing import TYPE_CHECKING, Any

from compindex.exceptions import NotFoundError, StoreError
from compindex.scoring import filter_hits, matches_filter, rank_by_relevance, rank_by_similarity
from compindex.serialize import flat_metadata, record_from_dict, record_to_dict
from compindex.store.base import BaseIndex
from compindex.types import IndexStats, Mode

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from compindex.types import IndexRecord, SearchHit

__all__ = ["FallbackIndex", "LocalJSONStore"]

logger = logging.getLogger(__name__)

STORE_SCHEMA_VERSION = "1"


class LocalJSONStore:
    """Durable, id-ordered collection of index records in a JSON file.

    Layout::

        {"schema_version": "1", "records": [{"id": ..., "vector": [...], ...}]}
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def save(self, records: list[IndexRecord]) -> None:
        """Atomically replace the persisted collection with ``records``.

        Raises:
            StoreError: If the document cannot be written.
        """
        data = {
            "schema_version": STORE_SCHEMA_VERSION,
            "records": [record_to_dict(r) for r in records],
        }
        with self._lock:
            tmp_name = ""
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self.path.parent,
                    prefix=f".{self.path.name}.",
                    suffix=".tmp",
                    delete=False,
                ) as f:
                    tmp_name = f.name
                    json.dump(data, f, indent=2)
                    f.write("\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except OSError as e:
                if tmp_name and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                logger.error("Failed to save fallback store to %s: %s", self.path, e)
                raise StoreError(f"Failed to save fallback store to {self.path}: {e}") from e

        logger.info("Saved %d records to fallback store %s", len(records), self.path)

    def load(self) -> list[IndexRecord]:
        """Return every persisted record; empty when nothing was saved yet.

        Raises:
            StoreError: If the document exists but cannot be read or parsed.
        """
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load fallback store from %s: %s", self.path, e)
            raise StoreError(f"Failed to load fallback store from {self.path}: {e}") from e

        # Older documents are a bare list of records.
        raw = data.get("records") if isinstance(data, dict) else data
        if not isinstance(raw, list):
            raise StoreError(
                f"Fallback store {self.path} has no record list (got {type(raw).__name__})"
            )
        return [record_from_dict(item) for item in raw]

    def search(
        self,
        query: str,
        where: Mapping[str, Any] | None = None,
    ) -> list[SearchHit]:
        """Relevance-ranked records matching ``query`` and ``where``, best first."""
        return filter_hits(rank_by_relevance(self.load(), query), where)

    def clear(self) -> None:
        """Remove the persisted collection."""
        with self._lock:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                raise StoreError(f"Failed to clear fallback store {self.path}: {e}") from e
        logger.info("Cleared fallback store %s", self.path)


class FallbackIndex(BaseIndex):
    """:class:`BaseIndex` over a :class:`LocalJSONStore` with heuristic scoring."""

    mode = Mode.FALLBACK

    def __init__(self, store: LocalJSONStore, dimension: int = 0) -> None:
        self._store = store
        self._dimension = dimension
        self._write_lock = threading.Lock()

    @property
    def needs_query_vector(self) -> bool:
        return False

    def upsert(
        self,
        records: list[IndexRecord],
        on_batch: Callable[[int, int], None] | None = None,
    ) -> int:
        """Replace the persisted collection with ``records`` in one write."""
        if not records:
            return 0

        with self._write_lock:
            self._store.save(list(records))

        if on_batch is not None:
            on_batch(1, 1)
        return len(records)

    def fetch(self, component_id: str) -> IndexRecord:
        for record in self._store.load():
            if record.id == component_id:
                return record
        raise NotFoundError(component_id, "fallback store")

    def search(
        self,
        query: str,
        query_vector: list[float] | None,
        k: int = 10,
        where: Mapping[str, Any] | None = None,
    ) -> list[SearchHit]:
        return self._store.search(query, where)[: max(k, 0)]

    def similar(self, component_id: str, k: int = 5) -> list[SearchHit]:
        records = self._store.load()
        target = next((r for r in records if r.id == component_id), None)
        if target is None:
            raise NotFoundError(component_id, "fallback store")
        return rank_by_similarity(target, records, k)

    def list_where(
        self,
        where: Mapping[str, Any],
        limit: int | None = None,
    ) -> list[IndexRecord]:
        matched = [r for r in self._store.load() if matches_filter(flat_metadata(r), where)]
        return matched[:limit] if limit is not None else matched

    def records(self) -> list[IndexRecord]:
        return self._store.load()

    def delete(self, component_id: str) -> None:
        with self._write_lock:
            records = self._store.load()
            remaining = [r for r in records if r.id != component_id]
            if len(remaining) != len(records):
                self._store.save(remaining)
                logger.info("Deleted %s from fallback store", component_id)

    def clear(self) -> None:
        with self._write_lock:
            self._store.clear()

    def stats(self) -> IndexStats:
        return IndexStats(count=len(self._store.load()), dimension=self._dimension, mode=self.mode)
