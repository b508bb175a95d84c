"""Local embeddings through ChromaDB's bundled ONNX MiniLM function.

Needs nothing beyond ``chromadb``, which the primary index already depends
on. The model files (~80MB) are downloaded on first use.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chromadb.utils.embedding_functions import DefaultEmbeddingFunction

from compindex.embed.base import BaseEmbedder
from compindex.exceptions import EmbeddingError

if TYPE_CHECKING:
    from compindex.config import CompindexConfig

__all__ = ["ChromaDBEmbedder"]

logger = logging.getLogger(__name__)


class ChromaDBEmbedder(BaseEmbedder):
    """Default provider: ``all-MiniLM-L6-v2``, 384 dimensions, no server.

    ``[embedding] model`` cannot change the model; a different value is only
    reported in the log.
    """

    MODEL = "all-MiniLM-L6-v2"

    def __init__(self, config: CompindexConfig) -> None:
        requested = config.embedding.model
        if requested and requested != self.MODEL:
            logger.warning(
                "ChromaDB provider only supports %s, ignoring model=%r", self.MODEL, requested
            )

        try:
            self._function = DefaultEmbeddingFunction()
        except Exception as e:
            raise EmbeddingError(f"Failed to initialize ChromaDB embedding function: {e}") from e

        self._dimension: int | None = None
        logger.info("Local ONNX embedder ready (%s)", self.MODEL)

    def embed(self, text: str) -> list[float]:
        try:
            output = self._function([text])
        except Exception as e:
            raise EmbeddingError(f"ChromaDB embedding failed: {e}") from e

        if output is None or len(output) != 1:
            count = 0 if output is None else len(output)
            raise EmbeddingError(f"ChromaDB returned unexpected result: {count} vectors for 1 text")

        vector = [float(v) for v in output[0]]
        self._dimension = len(vector)
        return vector

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self.embed("dimension probe")
        assert self._dimension is not None
        return self._dimension
