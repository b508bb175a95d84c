"""Abstract base class for component index backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from compindex.types import IndexRecord, IndexStats, Mode, SearchHit

__all__ = ["BaseIndex"]

logger = logging.getLogger(__name__)


class BaseIndex(ABC):
    """Storage capability shared by the primary index and the fallback store.

    The retrieval engine is written once against this interface; choosing a
    mode is choosing which implementation is bound.
    """

    #: Mode this backend serves.
    mode: Mode

    def probe(self) -> None:
        """Check that the backend is reachable.

        Raises:
            StoreError: If it is not.
        """

    @property
    @abstractmethod
    def needs_query_vector(self) -> bool:
        """Whether :meth:`search` ranks by a query embedding."""

    @abstractmethod
    def upsert(
        self,
        records: list[IndexRecord],
        on_batch: Callable[[int, int], None] | None = None,
    ) -> int:
        """Insert or replace records by id.

        Args:
            records: Records to store.
            on_batch: Optional progress callback ``(batch_number, total_batches)``.

        Returns:
            Number of records written.

        Raises:
            StoreError: If storage fails.
        """

    @abstractmethod
    def fetch(self, component_id: str) -> IndexRecord:
        """Return the stored record for ``component_id``.

        Raises:
            NotFoundError: If the id is not stored.
            StoreError: If the lookup fails.
        """

    @abstractmethod
    def search(
        self,
        query: str,
        query_vector: list[float] | None,
        k: int = 10,
        where: Mapping[str, Any] | None = None,
    ) -> list[SearchHit]:
        """Return the ``k`` best matches for a query, best first.

        Args:
            query: Query text.
            query_vector: Query embedding when :attr:`needs_query_vector`.
            k: Number of results to return.
            where: Optional metadata filter.
        """

    @abstractmethod
    def similar(self, component_id: str, k: int = 5) -> list[SearchHit]:
        """Return up to ``k`` records most similar to ``component_id``, excluding it.

        Raises:
            NotFoundError: If the id is not stored.
        """

    @abstractmethod
    def list_where(
        self,
        where: Mapping[str, Any],
        limit: int | None = None,
    ) -> list[IndexRecord]:
        """List records matching a metadata filter without ranking."""

    @abstractmethod
    def records(self) -> list[IndexRecord]:
        """Return every stored record."""

    @abstractmethod
    def delete(self, component_id: str) -> None:
        """Remove one record. Deleting an absent id is not an error."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""

    @abstractmethod
    def stats(self) -> IndexStats:
        """Return record count and vector dimension."""
