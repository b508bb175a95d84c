"""Shared JSON-over-HTTP plumbing for remote embedding providers."""

from __future__ import annotations

import json
import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from compindex.embed.base import BaseEmbedder
from compindex.exceptions import EmbeddingError

if TYPE_CHECKING:
    from compindex.config import CompindexConfig

__all__ = ["RemoteEmbedder", "post_json"]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120  # seconds


def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    service: str,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """POST a JSON body and decode the JSON reply.

    Raises:
        EmbeddingError: On HTTP errors, connection failures or a body that is
            not a JSON object. ``service`` names the provider in the message.
    """
    request = Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", **(headers or {})},
    )

    # HTTPError subclasses URLError, so it is caught first.
    try:
        with urlopen(request, timeout=timeout) as resp:
            body = resp.read()
    except HTTPError as e:
        raise EmbeddingError(f"{service} API error (HTTP {e.code}) from {url}: {e.reason}") from e
    except (ConnectionError, URLError) as e:
        raise EmbeddingError(f"{service} not reachable at {url}: {e}") from e

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise EmbeddingError(f"{service} returned invalid JSON from {url}") from e
    if not isinstance(data, dict):
        raise EmbeddingError(f"{service} returned {type(data).__name__} instead of an object")
    return data


class RemoteEmbedder(BaseEmbedder):
    """Base for providers that embed one text per HTTP request.

    Subclasses set :attr:`service` and :attr:`default_base_url` and implement
    :meth:`_request`. The vector dimension is learned from the first reply.
    """

    service = "Embedding API"
    default_base_url = ""

    def __init__(self, config: CompindexConfig) -> None:
        self._model = config.embedding.model
        self._base_url = (config.embedding.base_url or self.default_base_url).rstrip("/")
        self._dimension: int | None = None

    @abstractmethod
    def _request(self, text: str) -> list[list[float]]:
        """Send ``text`` and return every vector in the reply."""

    def embed(self, text: str) -> list[float]:
        vectors = self._request(text)
        if len(vectors) != 1:
            raise EmbeddingError(f"{self.service} returned {len(vectors)} embeddings for 1 input")

        vector = [float(v) for v in vectors[0]]
        if self._dimension is None:
            self._dimension = len(vector)
            logger.debug("%s model %s has dimension %d", self.service, self._model, len(vector))
        return vector

    @property
    def dimension(self) -> int:
        """Vector size; the first access may cost one probe request."""
        if self._dimension is None:
            self.embed("dimension probe")
        assert self._dimension is not None
        return self._dimension
