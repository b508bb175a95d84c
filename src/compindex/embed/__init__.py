"""Embedding providers.

Importing this package registers ``chromadb``, ``ollama`` and ``openai`` in
the ``"embedding"`` category of :data:`compindex.registry.default_registry`.
"""

from compindex.embed.base import BaseEmbedder
from compindex.embed.chromadb_embed import ChromaDBEmbedder
from compindex.embed.ollama import OllamaEmbedder
from compindex.embed.openai_compat import OpenAICompatEmbedder
from compindex.embed.remote import RemoteEmbedder
from compindex.registry import default_registry

__all__ = [
    "BaseEmbedder",
    "ChromaDBEmbedder",
    "OllamaEmbedder",
    "OpenAICompatEmbedder",
    "RemoteEmbedder",
]

for _name, _cls in (
    ("chromadb", ChromaDBEmbedder),
    ("ollama", OllamaEmbedder),
    ("openai", OpenAICompatEmbedder),
):
    default_registry.register("embedding", _name, _cls)
