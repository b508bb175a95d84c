"""ChromaDB primary index.

Connects to a remote Chroma server (``HttpClient``) or an embedded on-disk
database (``PersistentClient``). Each record is stored as its vector, a flat
scalar metadata dict for filtering, and the full record JSON as the document.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import chromadb

from compindex.exceptions import NotFoundError, StoreError
from compindex.scoring import FILTER_OPERATORS
from compindex.serialize import flat_metadata, record_from_json, record_to_json
from compindex.store.base import BaseIndex
from compindex.types import IndexRecord, IndexStats, Mode, SearchHit

if TYPE_CHECKING:
    from collections.abc import Callable

    from compindex.config import CompindexConfig

__all__ = ["ChromaIndex"]

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def _to_chroma_where(where: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Translate a filter into Chroma's one-operator-per-clause form."""
    if not where:
        return None

    clauses: list[dict[str, Any]] = []
    for key, condition in where.items():
        if key in ("$and", "$or"):
            subs = [c for c in (_to_chroma_where(s) for s in condition) if c]
            if len(subs) == 1:
                clauses.append(subs[0])
            elif subs:
                clauses.append({key: subs})
        elif isinstance(condition, Mapping):
            for op, value in condition.items():
                if op not in FILTER_OPERATORS:
                    raise StoreError(f"Unsupported filter operator: {op}")
                clauses.append({key: {op: list(value) if op in ("$in", "$nin") else value}})
        else:
            clauses.append({key: {"$eq": condition}})

    if not clauses:
        return None
    return clauses[0] if len(clauses) == 1 else {"$and": clauses}


def _vector(raw: Any) -> tuple[float, ...]:
    if raw is None:
        return ()
    return tuple(float(v) for v in raw)


class ChromaIndex(BaseIndex):
    """Primary index backed by ChromaDB.

    Usage::

        index = ChromaIndex(host="vectors.internal", port=8000)
        index.probe()
        index.upsert(records)
        hits = index.search("withdraw", query_vector, k=5, where={"domain": "banking"})
    """

    mode = Mode.PRIMARY

    def __init__(
        self,
        *,
        persist_path: Path | None = None,
        host: str = "",
        port: int = 8000,
        collection_name: str = "compindex",
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise StoreError(f"batch_size must be >= 1, got {batch_size}")
        if not host and persist_path is None:
            raise StoreError("Chroma index needs either a host or a persist_path")

        self._collection_name = collection_name
        self._batch_size = batch_size
        location = f"{host}:{port}" if host else str(persist_path)

        try:
            if host:
                self._client = chromadb.HttpClient(host=host, port=port)
            else:
                self._client = chromadb.PersistentClient(path=str(persist_path))
            self._collection = self._client.get_or_create_collection(name=collection_name)
        except Exception as e:
            raise StoreError(f"Failed to initialize ChromaDB at {location}: {e}") from e

        logger.info("ChromaDB index initialized at %s (collection=%s)", location, collection_name)

    @classmethod
    def from_config(cls, config: CompindexConfig) -> ChromaIndex:
        """Build an index from the ``[index]`` config section."""
        section = config.index
        return cls(
            persist_path=Path(section.path) if section.path else None,
            host=section.host,
            port=section.port,
            collection_name=section.collection_name,
            batch_size=section.batch_size,
        )

    @property
    def needs_query_vector(self) -> bool:
        return True

    def probe(self) -> None:
        """Check that the index answers.

        Raises:
            StoreError: If the server or collection is unreachable.
        """
        try:
            self._client.heartbeat()
            self._collection.count()
        except Exception as e:
            raise StoreError(f"ChromaDB probe failed: {e}") from e

    def upsert(
        self,
        records: list[IndexRecord],
        on_batch: Callable[[int, int], None] | None = None,
    ) -> int:
        """Upsert records in sequential fixed-size batches.

        A failed batch aborts the remaining ones. Batches already written stay
        written; retrying is safe because upsert replaces by id.

        Raises:
            StoreError: If a batch fails.
        """
        if not records:
            return 0

        total = math.ceil(len(records) / self._batch_size)
        for number, start in enumerate(range(0, len(records), self._batch_size), start=1):
            batch = records[start : start + self._batch_size]
            try:
                self._collection.upsert(
                    ids=[r.id for r in batch],
                    embeddings=[list(r.vector) for r in batch],  # type: ignore[arg-type]
                    documents=[record_to_json(r) for r in batch],
                    metadatas=[flat_metadata(r) for r in batch],  # type: ignore[misc]
                )
            except Exception as e:
                raise StoreError(
                    f"Failed to upsert batch {number}/{total} "
                    f"(ids {batch[0].id}..{batch[-1].id}): {e}"
                ) from e

            logger.info("Upserted batch %d/%d (%d records)", number, total, len(batch))
            if on_batch is not None:
                on_batch(number, total)

        return len(records)

    def fetch(self, component_id: str) -> IndexRecord:
        try:
            result = self._collection.get(
                ids=[component_id],
                include=["documents", "embeddings"],
            )
        except Exception as e:
            raise StoreError(f"Failed to fetch {component_id}: {e}") from e

        ids = result.get("ids") or []
        if not ids:
            raise NotFoundError(component_id, "index")
        return self._records_from_get(result)[0]

    def search(
        self,
        query: str,
        query_vector: list[float] | None,
        k: int = 10,
        where: Mapping[str, Any] | None = None,
    ) -> list[SearchHit]:
        if query_vector is None:
            raise StoreError(f"Vector search for {query!r} requires a query embedding")
        return self._query(query_vector, k, _to_chroma_where(where))

    def similar(self, component_id: str, k: int = 5) -> list[SearchHit]:
        target = self.fetch(component_id)
        where = _to_chroma_where({"id": {"$ne": component_id}})
        hits = self._query(list(target.vector), k + 1, where)
        return [h for h in hits if h.record.id != component_id][:k]

    def list_where(
        self,
        where: Mapping[str, Any],
        limit: int | None = None,
    ) -> list[IndexRecord]:
        try:
            result = self._collection.get(
                where=_to_chroma_where(where),  # type: ignore[arg-type]
                limit=limit,
                include=["documents", "embeddings"],
            )
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to list records where {dict(where)}: {e}") from e
        return self._records_from_get(result)

    def records(self) -> list[IndexRecord]:
        try:
            result = self._collection.get(include=["documents", "embeddings"])
        except Exception as e:
            raise StoreError(f"Failed to read index records: {e}") from e
        return self._records_from_get(result)

    def delete(self, component_id: str) -> None:
        try:
            self._collection.delete(ids=[component_id])
        except Exception as e:
            raise StoreError(f"Failed to delete {component_id}: {e}") from e
        logger.info("Deleted %s from index", component_id)

    def clear(self) -> None:
        try:
            self._client.delete_collection(name=self._collection_name)
            self._collection = self._client.get_or_create_collection(name=self._collection_name)
        except Exception as e:
            raise StoreError(f"Failed to clear collection {self._collection_name}: {e}") from e
        logger.info("Cleared collection %s", self._collection_name)

    def stats(self) -> IndexStats:
        try:
            count = self._collection.count()
            dimension = 0
            if count:
                sample = self._collection.get(limit=1, include=["embeddings"])
                embeddings = sample.get("embeddings")
                if embeddings is not None and len(embeddings) > 0:
                    dimension = len(embeddings[0])
        except Exception as e:
            raise StoreError(f"Failed to read index stats: {e}") from e
        return IndexStats(count=count, dimension=dimension, mode=self.mode)

    def _query(
        self,
        query_vector: list[float],
        k: int,
        where: dict[str, Any] | None,
    ) -> list[SearchHit]:
        try:
            total = self._collection.count()
        except Exception as e:
            raise StoreError(f"Failed to count records: {e}") from e
        if total == 0 or k < 1:
            return []

        # Clamp k to collection size (ChromaDB raises if k > total count).
        actual_k = min(k, total)

        try:
            results = self._collection.query(
                query_embeddings=[query_vector],  # type: ignore[arg-type]
                n_results=actual_k,
                where=where,  # type: ignore[arg-type]
                include=["documents", "distances"],
            )
        except Exception as e:
            err_name = type(e).__name__
            if where is not None and "NotEnough" in err_name:
                # Some ChromaDB versions raise when k exceeds the number of
                # documents matching the filter; re-query with the match count.
                logger.debug("Filtered query (k=%d) failed, retrying: %s", actual_k, e)
                try:
                    matching = self._collection.get(where=where, include=[])  # type: ignore[arg-type]
                    match_count = len(matching["ids"])
                    if match_count == 0:
                        return []
                    results = self._collection.query(
                        query_embeddings=[query_vector],  # type: ignore[arg-type]
                        n_results=min(actual_k, match_count),
                        where=where,  # type: ignore[arg-type]
                        include=["documents", "distances"],
                    )
                except Exception as retry_err:
                    raise StoreError(f"Query failed: {retry_err}") from retry_err
            else:
                raise StoreError(f"Query failed: {e}") from e

        # ChromaDB returns batched results; we query with one embedding.
        raw_ids = results.get("ids")
        raw_docs = results.get("documents")
        raw_dists = results.get("distances")
        if not raw_ids or not raw_docs or not raw_dists:
            return []

        hits: list[SearchHit] = []
        for doc, dist in zip(raw_docs[0], raw_dists[0], strict=True):
            record = record_from_json(doc or "{}")
            # Convert distance to similarity score (higher = more similar)
            hits.append(SearchHit(record=record, score=1.0 / (1.0 + dist), distance=dist))
        return hits

    @staticmethod
    def _records_from_get(result: Mapping[str, Any]) -> list[IndexRecord]:
        ids = result.get("ids") or []
        documents = result.get("documents")
        embeddings = result.get("embeddings")
        if documents is None:
            documents = [None] * len(ids)
        if embeddings is None:
            embeddings = [None] * len(ids)

        return [
            record_from_json(doc or "{}", _vector(emb))
            for doc, emb in zip(documents, embeddings, strict=True)
        ]
