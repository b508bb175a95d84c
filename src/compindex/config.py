"""compindex settings.

One dataclass per TOML table (`[embedding]`, `[index]`, `[fallback]`,
`[enrich]`). Every field has a default, so an empty file is a valid config.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING, TypeVar

import tomli_w

if sys.version_info >= (3, 12):
    import tomllib
else:
    import tomli as tomllib

from compindex.exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "CompindexConfig",
    "EmbeddingConfig",
    "EnrichConfig",
    "FallbackConfig",
    "IndexConfig",
    "default_config",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """[embedding] section."""

    provider: str = "chromadb"
    model: str = "all-MiniLM-L6-v2"
    base_url: str = ""
    api_key_env: str = ""
    dimension: int = 384
    max_workers: int = 1


@dataclass
class IndexConfig:
    """[index] section.

    ``host`` selects a remote Chroma server, ``path`` an embedded on-disk
    one. An empty ``provider`` disables the primary index entirely.
    """

    provider: str = "chroma"
    host: str = ""
    port: int = 8000
    path: str = ""
    collection_name: str = "compindex"
    batch_size: int = 100
    list_limit: int = 1000


@dataclass
class FallbackConfig:
    """[fallback] section."""

    path: str = ".cache/embeddings.json"


@dataclass
class EnrichConfig:
    """[enrich] section."""

    content_limit: int = 2000
    context_limit: int = 1000


@dataclass
class CompindexConfig:
    """All four sections together."""

    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    enrich: EnrichConfig = field(default_factory=EnrichConfig)


# TOML table name -> dataclass, in file order.
_SECTIONS: dict[str, type] = {
    "embedding": EmbeddingConfig,
    "index": IndexConfig,
    "fallback": FallbackConfig,
    "enrich": EnrichConfig,
}


def default_config() -> CompindexConfig:
    return CompindexConfig()


def save_config(config: CompindexConfig, path: Path) -> None:
    """Write ``config`` to ``path`` as TOML, one table per section."""
    tables = {name: asdict(getattr(config, name)) for name in _SECTIONS}
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_bytes(tomli_w.dumps(tables).encode("utf-8"))
    except OSError as e:
        raise ConfigError(f"Failed to save config to {path}: {e}") from e
    logger.info("Saved config to %s", path)


def _build_section(cls: type[_T], table: dict[str, object]) -> _T:
    names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(table) - names)
    if unknown:
        logger.debug("Ignoring unknown %s keys: %s", cls.__name__, ", ".join(unknown))
    return cls(**{k: v for k, v in table.items() if k in names})


def load_config(path: Path) -> CompindexConfig:
    """Read a TOML config file.

    Absent tables and keys keep their defaults; unknown keys are ignored.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or a known
            section is not a table.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = CompindexConfig()
    for name, cls in _SECTIONS.items():
        table = data.get(name)
        if table is None:
            continue
        if not isinstance(table, dict):
            raise ConfigError(f"Config section [{name}] in {path} is not a table")
        setattr(config, name, _build_section(cls, table))

    logger.info("Loaded config from %s", path)
    return config
