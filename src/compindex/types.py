"""Data contracts for compindex.

Frozen dataclasses that flow through the engine:
  Component → ComponentMetadata → IndexRecord → stored → SearchHit
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "SCHEMA_VERSION",
    "CodeMetrics",
    "Component",
    "ComponentMetadata",
    "IndexRecord",
    "IndexStats",
    "IngestReport",
    "MigrationReport",
    "Mode",
    "RecordQuality",
    "Relationships",
    "SearchHit",
    "UIProperties",
    "UIReport",
]

SCHEMA_VERSION = "1.0.0"


class Mode(str, Enum):
    """Which backend a session is bound to. Decided once at start-up."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Component:
    """A unit of source code as produced by the upstream scanner."""

    id: str
    name: str
    kind: str
    file_path: str = ""
    line_number: int = 0
    content: str = ""
    complexity: float = 0
    dependencies: tuple[str, ...] = ()
    domain: str = ""
    service: str = ""
    extra: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class UIProperties:
    has_validation: bool = False
    has_state: bool = False
    has_events: bool = False
    is_responsive: bool = False


@dataclass(frozen=True)
class CodeMetrics:
    lines_of_code: int = 0
    comment_ratio: float = 0.0


@dataclass(frozen=True)
class ComponentMetadata:
    """Enriched, storable description of a component."""

    name: str
    kind: str
    file_path: str
    line_number: int
    content: str
    content_hash: str
    content_length: int
    language: str
    domain: str
    service: str
    complexity: float
    dependencies: tuple[str, ...] = ()
    # Reverse dependencies. Nothing populates this yet.
    dependents: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    ui_pattern: str = "custom"
    ui_framework: str | None = None
    ui_properties: UIProperties = field(default_factory=UIProperties)
    metrics: CodeMetrics = field(default_factory=CodeMetrics)
    business_domain: str = "general"
    business_function: str = "unknown"
    data_entities: tuple[str, ...] = ()
    external_apis: tuple[str, ...] = ()
    migration_priority: str = "low"
    migration_complexity: str = "simple"
    estimated_effort: int = 0
    created_at: str = ""
    updated_at: str = ""
    version: str = SCHEMA_VERSION
    tags: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    search_keywords: tuple[str, ...] = ()
    semantic_context: str = ""


@dataclass(frozen=True)
class Relationships:
    similar_components: tuple[str, ...] = ()
    related_services: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class RecordQuality:
    embedding_quality: float = 1.0
    content_quality: float = 1.0
    metadata_completeness: float = 0.0


@dataclass(frozen=True)
class IndexRecord:
    """A component's enriched metadata plus its embedding vector."""

    id: str
    metadata: ComponentMetadata
    vector: tuple[float, ...] = ()
    relationships: Relationships = field(default_factory=Relationships)
    quality: RecordQuality = field(default_factory=RecordQuality)


@dataclass(frozen=True)
class SearchHit:
    """A retrieved record and its score (higher = better)."""

    record: IndexRecord
    score: float
    distance: float = 0.0


@dataclass(frozen=True)
class IndexStats:
    count: int
    dimension: int
    mode: Mode


@dataclass(frozen=True)
class IngestReport:
    """Outcome of one ``ingest`` call."""

    indexed: int
    mode: Mode
    failed: tuple[str, ...] = ()


@dataclass(frozen=True)
class UIReport:
    total_ui_components: int = 0
    patterns: dict[str, int] = field(default_factory=dict)
    frameworks: dict[str, int] = field(default_factory=dict)
    properties: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MigrationReport:
    total_components: int = 0
    priorities: dict[str, int] = field(default_factory=dict)
    complexities: dict[str, int] = field(default_factory=dict)
    domains: dict[str, int] = field(default_factory=dict)
    services: dict[str, int] = field(default_factory=dict)
    estimated_total_effort: int = 0
