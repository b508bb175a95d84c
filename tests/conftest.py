"""Shared fixtures for compindex tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from compindex.config import CompindexConfig
from compindex.embed.base import BaseEmbedder
from compindex.exceptions import EmbeddingError
from compindex.store.fallback import FallbackIndex, LocalJSONStore

if TYPE_CHECKING:
    from pathlib import Path


class FakeEmbedder(BaseEmbedder):
    """Deterministic 3-dim embedder; texts containing ``fail_on`` raise."""

    def __init__(self, fail_on: str = "") -> None:
        self.fail_on = fail_on
        self.texts: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.texts.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingError(f"provider rejected input containing {self.fail_on!r}")
        return [float(len(text) % 17) + 1.0, float(text.count("a")) + 1.0, 1.0]

    @property
    def dimension(self) -> int:
        return 3


@pytest.fixture
def config(tmp_path: Path) -> CompindexConfig:
    """Config with the primary index disabled and the fallback store in tmp_path."""
    cfg = CompindexConfig()
    cfg.index.provider = ""
    cfg.fallback.path = str(tmp_path / "cache" / "embeddings.json")
    cfg.embedding.dimension = 3
    return cfg


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fallback_index(tmp_path: Path) -> FallbackIndex:
    return FallbackIndex(LocalJSONStore(tmp_path / "embeddings.json"), dimension=3)
