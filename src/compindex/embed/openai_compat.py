"""OpenAI-compatible embedding provider (``POST {base_url}/embeddings``).

Also covers servers that mimic the OpenAI API, such as LiteLLM or vLLM.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from compindex.embed.remote import RemoteEmbedder, post_json
from compindex.exceptions import EmbeddingError

if TYPE_CHECKING:
    from compindex.config import CompindexConfig

__all__ = ["OpenAICompatEmbedder"]

logger = logging.getLogger(__name__)


class OpenAICompatEmbedder(RemoteEmbedder):
    """Embeds component context through an OpenAI-style ``/embeddings`` endpoint.

    Config fields used::

        [embedding]
        provider = "openai"
        model = "text-embedding-3-small"
        api_key_env = "OPENAI_API_KEY"   # env var holding the key; empty = no auth
        base_url = ""                     # empty = https://api.openai.com/v1
    """

    service = "Embedding API"
    default_base_url = "https://api.openai.com/v1"

    def __init__(self, config: CompindexConfig) -> None:
        super().__init__(config)
        key_env = config.embedding.api_key_env
        self._api_key = os.environ.get(key_env, "") if key_env else ""
        if key_env and not self._api_key:
            logger.warning("API key env var %s is not set; requests may fail", key_env)

    def _request(self, text: str) -> list[list[float]]:
        url = f"{self._base_url}/embeddings"
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        data = post_json(
            url,
            {"model": self._model, "input": [text]},
            service=self.service,
            headers=headers,
        )
        try:
            return [item["embedding"] for item in data.get("data") or []]
        except (KeyError, TypeError) as e:
            raise EmbeddingError(f"Reply from {url} has an item without an 'embedding' field") from e
