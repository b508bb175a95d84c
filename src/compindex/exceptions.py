"""Errors raised by compindex.

Everything derives from :class:`CompindexError`, so callers can catch the
whole family at the engine boundary. Library errors (chromadb, urllib, json,
TOML) are wrapped at the seam where they occur and chained with ``from``.
"""

__all__ = [
    "CompindexError",
    "ConfigError",
    "EmbeddingError",
    "NotFoundError",
    "PipelineError",
    "PluginError",
    "StoreError",
]


class CompindexError(Exception):
    """Root of the compindex error family."""


class ConfigError(CompindexError):
    """The TOML config file is unreadable or has the wrong shape."""


class EmbeddingError(CompindexError):
    """An embedding provider failed or returned an unusable vector."""


class StoreError(CompindexError):
    """The primary index or the fallback store rejected an operation."""


class NotFoundError(StoreError):
    """No record with ``component_id`` exists in the active store."""

    def __init__(self, component_id: str, where: str = "index") -> None:
        self.component_id = component_id
        self.where = where
        super().__init__(f"Component {component_id} not found in {where}")


class PipelineError(CompindexError):
    """An ingest run stopped on an error that is not a store error."""


class PluginError(CompindexError):
    """A provider name or category is unknown, or registered twice."""
