"""Ollama embedding provider (``POST /api/embed``)."""

from __future__ import annotations

import logging

from compindex.embed.remote import RemoteEmbedder, post_json

__all__ = ["OllamaEmbedder"]

logger = logging.getLogger(__name__)


class OllamaEmbedder(RemoteEmbedder):
    """Embeds component context with a model served by a local Ollama.

    Config fields used::

        [embedding]
        provider = "ollama"
        model = "nomic-embed-text"
        base_url = ""           # empty = http://localhost:11434
    """

    service = "Ollama"
    default_base_url = "http://localhost:11434"

    def _request(self, text: str) -> list[list[float]]:
        data = post_json(
            f"{self._base_url}/api/embed",
            {"model": self._model, "input": [text]},
            service=self.service,
        )
        return list(data.get("embeddings") or [])
