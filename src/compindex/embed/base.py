"""Embedding provider interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

__all__ = ["BaseEmbedder"]

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """Turns a component's context text (or a search query) into a vector.

    The indexing pipeline may call :meth:`embed` from several worker threads
    at once.
    """

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed one text.

        Raises:
            EmbeddingError: If the provider fails or replies with garbage.
        """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of the vectors this provider returns."""
