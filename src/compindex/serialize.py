"""Conversion between IndexRecord and plain dicts.

Two shapes are produced:

- the full record document (JSON-safe, lossless) used by the fallback store
  and as the Chroma ``document`` payload;
- a flat scalar metadata dict used for filtering in both backends.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any

from compindex.exceptions import StoreError
from compindex.types import (
    SCHEMA_VERSION,
    CodeMetrics,
    ComponentMetadata,
    IndexRecord,
    RecordQuality,
    Relationships,
    UIProperties,
)

__all__ = [
    "FILTER_FIELDS",
    "flat_metadata",
    "record_from_dict",
    "record_from_json",
    "record_to_dict",
    "record_to_json",
]

logger = logging.getLogger(__name__)

FILTER_FIELDS = (
    "id",
    "name",
    "kind",
    "file_path",
    "language",
    "domain",
    "service",
    "complexity",
    "content_length",
    "content_hash",
    "ui_pattern",
    "ui_framework",
    "business_domain",
    "business_function",
    "migration_priority",
    "migration_complexity",
    "estimated_effort",
    "lines_of_code",
)

_TUPLE_FIELDS = (
    "dependencies",
    "dependents",
    "imports",
    "includes",
    "data_entities",
    "external_apis",
    "tags",
    "labels",
    "search_keywords",
)


def record_to_dict(record: IndexRecord) -> dict[str, Any]:
    """Serialize a record, vector included, to JSON-safe primitives."""
    return {
        "id": record.id,
        "vector": list(record.vector),
        "metadata": asdict(record.metadata),
        "relationships": asdict(record.relationships),
        "quality": asdict(record.quality),
    }


def _tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(str(v) for v in value)


def _metadata_from_dict(data: dict[str, Any]) -> ComponentMetadata:
    known = set(ComponentMetadata.__dataclass_fields__)
    values = {k: v for k, v in data.items() if k in known}
    for name in _TUPLE_FIELDS:
        if name in values:
            values[name] = _tuple(values[name])
    values["ui_properties"] = UIProperties(**(data.get("ui_properties") or {}))
    values["metrics"] = CodeMetrics(**(data.get("metrics") or {}))
    values.setdefault("version", SCHEMA_VERSION)
    return ComponentMetadata(**values)


def record_from_dict(data: dict[str, Any]) -> IndexRecord:
    """Deserialize a record produced by :func:`record_to_dict`.

    Raises:
        StoreError: If required fields are missing or malformed.
    """
    if not isinstance(data, dict):
        raise StoreError(f"Malformed index record: expected an object, got {type(data).__name__}")
    try:
        rel = data.get("relationships") or {}
        return IndexRecord(
            id=str(data["id"]),
            vector=tuple(float(v) for v in data.get("vector") or ()),
            metadata=_metadata_from_dict(data["metadata"]),
            relationships=Relationships(
                similar_components=_tuple(rel.get("similar_components")),
                related_services=_tuple(rel.get("related_services")),
                dependencies=_tuple(rel.get("dependencies")),
            ),
            quality=RecordQuality(**(data.get("quality") or {})),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed index record {data.get('id', '?')!r}: {e}") from e


def record_to_json(record: IndexRecord) -> str:
    """Serialize a record without its vector (stored separately by Chroma)."""
    data = record_to_dict(record)
    data["vector"] = []
    return json.dumps(data)


def record_from_json(text: str, vector: tuple[float, ...] = ()) -> IndexRecord:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreError(f"Stored record document is not valid JSON: {e}") from e
    data["vector"] = list(vector)
    return record_from_dict(data)


def flat_metadata(record: IndexRecord) -> dict[str, str | int | float | bool]:
    """Scalar view of a record used for metadata filters.

    Every key in :data:`FILTER_FIELDS` is present; ``ui_framework`` is ``""``
    when no framework was detected.
    """
    meta = record.metadata
    return {
        "id": record.id,
        "name": meta.name,
        "kind": meta.kind,
        "file_path": meta.file_path,
        "language": meta.language,
        "domain": meta.domain,
        "service": meta.service,
        "complexity": meta.complexity,
        "content_length": meta.content_length,
        "content_hash": meta.content_hash,
        "ui_pattern": meta.ui_pattern,
        "ui_framework": meta.ui_framework or "",
        "business_domain": meta.business_domain,
        "business_function": meta.business_function,
        "migration_priority": meta.migration_priority,
        "migration_complexity": meta.migration_complexity,
        "estimated_effort": meta.estimated_effort,
        "lines_of_code": meta.metrics.lines_of_code,
    }
