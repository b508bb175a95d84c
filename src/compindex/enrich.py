"""Metadata enrichment for source-code components.

Derives the full :class:`ComponentMetadata` from a raw :class:`Component`
using keyword regexes and simple thresholds. Every function here is pure:
no I/O, no collaborator calls, and a safe default for any input.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from datetime import UTC, datetime
from pathlib import PurePath

from compindex.types import (
    CodeMetrics,
    Component,
    ComponentMetadata,
    RecordQuality,
    Relationships,
    UIProperties,
)

__all__ = [
    "DEFAULT_CONTENT_LIMIT",
    "DEFAULT_CONTEXT_LIMIT",
    "NO_UI_PATTERN",
    "analyze_ui_properties",
    "assess_quality",
    "business_function",
    "code_metrics",
    "content_fingerprint",
    "content_quality",
    "detect_language",
    "detect_ui_framework",
    "detect_ui_pattern",
    "embedding_context",
    "enrich",
    "estimate_effort",
    "extract_business_context",
    "extract_data_entities",
    "extract_external_apis",
    "extract_imports",
    "extract_includes",
    "generate_labels",
    "generate_tags",
    "has_ui_pattern",
    "metadata_completeness",
    "migration_complexity",
    "migration_priority",
    "relationships_for",
    "search_keywords",
    "semantic_context",
]

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_LIMIT = 2000
DEFAULT_CONTEXT_LIMIT = 1000

_I = re.IGNORECASE

# Ordered: the first matching pattern wins.
_UI_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("form", re.compile(r"QDialog|QForm|QInputDialog|QMessageBox|form|input|button", _I)),
    ("table", re.compile(r"QTable|QTableView|QTableWidget|table|grid|list", _I)),
    ("modal", re.compile(r"QDialog|QMessageBox|modal|popup|dialog", _I)),
    ("navigation", re.compile(r"QMenu|QMenuBar|QToolBar|QTabWidget|menu|navigation", _I)),
    ("chart", re.compile(r"QChart|QChartView|QGraph|chart|graph|plot", _I)),
)
NO_UI_PATTERN = "custom"

_UI_FRAMEWORKS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("qt", re.compile(r"QWidget|QApplication|Qt::", _I)),
    ("wxwidgets", re.compile(r"wxWidgets|wx::", _I)),
    ("gtk", re.compile(r"gtk|Gtk::", _I)),
    ("win32", re.compile(r"Win32|Windows::", _I)),
    ("cocoa", re.compile(r"NSView|NSWindow|Cocoa", _I)),
)

_UI_PROPERTIES: dict[str, re.Pattern[str]] = {
    "has_validation": re.compile(r"validate|validation|check|verify", _I),
    "has_state": re.compile(r"state|status|enabled|disabled|visible", _I),
    "has_events": re.compile(r"signal|slot|event|callback|onClick|onChange", _I),
    "is_responsive": re.compile(r"resize|layout|responsive|adaptive", _I),
}

_BUSINESS_DOMAINS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("banking", re.compile(r"account|transaction|balance|withdraw|deposit|loan", _I)),
    ("ecommerce", re.compile(r"product|order|cart|payment|inventory|shipping", _I)),
    ("iot", re.compile(r"sensor|device|monitor|control|data|stream", _I)),
    ("healthcare", re.compile(r"patient|medical|diagnosis|treatment|health", _I)),
)

_BUSINESS_FUNCTIONS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("authentication", re.compile(r"login|auth|password|user|session", _I)),
    ("authorization", re.compile(r"role|permission|access|admin", _I)),
    ("data_processing", re.compile(r"process|transform|convert|calculate", _I)),
    ("reporting", re.compile(r"report|analytics|statistics|metrics", _I)),
    ("communication", re.compile(r"api|http|socket|message|network", _I)),
)

_ENTITY_RE = re.compile(r"(?:class|struct)\s+(\w+)")
_API_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"https?://\S+"),
    re.compile(r"curl|http|https|api", _I),
    re.compile(r"REST|SOAP|GraphQL", _I),
)
_SYSTEM_INCLUDE_RE = re.compile(r'#include\s*<([^>]+)>')
_LOCAL_INCLUDE_RE = re.compile(r'#include\s*"([^"]+)"')

_LANGUAGES = {".cpp": "cpp", ".h": "h", ".hpp": "hpp", ".cc": "cc", ".cxx": "cxx"}
_DEFAULT_LANGUAGE = "cpp"

# Fields that must be filled for a record to count as complete.
_REQUIRED_FIELDS = (
    "name",
    "kind",
    "file_path",
    "content",
    "domain",
    "service",
    "complexity",
    "dependencies",
    "metrics",
    "migration_priority",
)


def _dedup(values: list[str]) -> tuple[str, ...]:
    """Drop falsy entries and duplicates, keeping first-seen order."""
    return tuple(dict.fromkeys(v for v in values if v))


def content_fingerprint(content: str) -> str:
    """Compute the SHA-256 fingerprint of raw component content."""
    digest = hashlib.sha256(content.encode("utf-8", errors="surrogatepass")).hexdigest()
    return f"sha256:{digest}"


def detect_language(file_path: str) -> str:
    return _LANGUAGES.get(PurePath(file_path).suffix.lower(), _DEFAULT_LANGUAGE)


def detect_ui_pattern(content: str) -> str:
    """Classify content into a UI pattern; ``"custom"`` when nothing matches."""
    for pattern, regex in _UI_PATTERNS:
        if regex.search(content):
            return pattern
    return NO_UI_PATTERN


def has_ui_pattern(component: Component) -> bool:
    return detect_ui_pattern(component.content) != NO_UI_PATTERN


def detect_ui_framework(content: str) -> str | None:
    for framework, regex in _UI_FRAMEWORKS:
        if regex.search(content):
            return framework
    return None


def analyze_ui_properties(content: str) -> UIProperties:
    return UIProperties(
        **{name: bool(regex.search(content)) for name, regex in _UI_PROPERTIES.items()}
    )


def code_metrics(content: str) -> CodeMetrics:
    """Count code lines and the share of comment lines."""
    lines = content.split("\n")
    code_lines = [ln for ln in lines if ln.strip() and not ln.strip().startswith("//")]
    comment_lines = [ln for ln in lines if ln.strip().startswith("//") or "/*" in ln]
    return CodeMetrics(
        lines_of_code=len(code_lines),
        comment_ratio=len(comment_lines) / len(lines),
    )


def extract_imports(content: str) -> tuple[str, ...]:
    """Return ``#include <...>`` targets."""
    return tuple(_SYSTEM_INCLUDE_RE.findall(content))


def extract_includes(content: str) -> tuple[str, ...]:
    """Return ``#include "..."`` targets."""
    return tuple(_LOCAL_INCLUDE_RE.findall(content))


def extract_data_entities(content: str) -> tuple[str, ...]:
    return tuple(_ENTITY_RE.findall(content))


def extract_external_apis(content: str) -> tuple[str, ...]:
    """Collect URLs and protocol keywords, deduplicated in order of pattern."""
    found: list[str] = []
    for regex in _API_RES:
        found.extend(m.group(0) for m in regex.finditer(content))
    return _dedup(found)


def business_function(component: Component) -> str:
    for function, regex in _BUSINESS_FUNCTIONS:
        if regex.search(component.name) or regex.search(component.content):
            return function
    return "unknown"


def extract_business_context(
    component: Component,
) -> tuple[str, str, tuple[str, ...], tuple[str, ...]]:
    """Return ``(business_domain, business_function, data_entities, external_apis)``.

    Entities and API references are only extracted once a business domain
    matched; otherwise the component is ``general`` with empty lists.
    """
    for domain, regex in _BUSINESS_DOMAINS:
        if regex.search(component.name) or regex.search(component.content):
            return (
                domain,
                business_function(component),
                extract_data_entities(component.content),
                extract_external_apis(component.content),
            )
    return "general", "unknown", (), ()


def migration_priority(component: Component) -> str:
    deps = len(component.dependencies)
    if component.complexity > 7 or deps > 10:
        return "high"
    if component.complexity > 4 or deps > 5:
        return "medium"
    return "low"


def migration_complexity(component: Component) -> str:
    deps = len(component.dependencies)
    if component.complexity > 8 or has_ui_pattern(component):
        return "complex"
    if component.complexity > 5 or deps > 7:
        return "moderate"
    return "simple"


def estimate_effort(component: Component) -> int:
    """Estimate migration effort in hours.

    ``complexity * 2 + dependencies * 0.5``, times 1.5 for UI components,
    rounded half-up.
    """
    effort = component.complexity * 2 + len(component.dependencies) * 0.5
    if has_ui_pattern(component):
        effort *= 1.5
    return int(math.floor(effort + 0.5))


def search_keywords(component: Component) -> tuple[str, ...]:
    return _dedup(
        [
            component.name,
            component.kind,
            component.domain,
            component.service,
            *component.dependencies,
            *extract_data_entities(component.content),
            *extract_external_apis(component.content),
        ]
    )


def generate_tags(component: Component) -> tuple[str, ...]:
    tags = [
        component.kind,
        component.domain,
        component.service,
        detect_language(component.file_path),
    ]
    if has_ui_pattern(component):
        tags.append("ui-component")
    return _dedup(tags)


def generate_labels(component: Component) -> tuple[str, ...]:
    deps = len(component.dependencies)
    labels: list[str] = []
    if component.complexity > 7:
        labels.append("high-complexity")
    if component.complexity < 3:
        labels.append("low-complexity")
    if deps > 5:
        labels.append("high-coupling")
    if deps == 0:
        labels.append("independent")
    return tuple(labels)


def semantic_context(component: Component) -> str:
    return (
        f"{component.name} is a {component.kind} in the {component.domain or 'unknown'} "
        f"domain, part of {component.service or 'unknown'} service. "
        f"{business_function(component)} functionality."
    )


def embedding_context(component: Component, limit: int = DEFAULT_CONTEXT_LIMIT) -> str:
    """Build the text sent to the embedding provider for a component."""
    return "\n".join(
        [
            f"Component: {component.name} ({component.kind})",
            f"Domain: {component.domain or 'unknown'}",
            f"Service: {component.service or 'unknown'}",
            f"Content: {component.content[:limit]}",
            f"Dependencies: {', '.join(component.dependencies)}",
            f"Business Function: {business_function(component)}",
        ]
    )


def content_quality(component: Component) -> float:
    """Score raw content between 0.1 and 1.0."""
    quality = 1.0
    length = len(component.content)
    if length < 10:
        quality *= 0.5
    if length > 5000:
        quality *= 0.8
    if component.complexity > 10:
        quality *= 0.7
    return max(0.1, quality)


def _is_filled(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, tuple, list, dict)):
        return len(value) > 0
    return True


def metadata_completeness(metadata: ComponentMetadata) -> float:
    filled = sum(1 for name in _REQUIRED_FIELDS if _is_filled(getattr(metadata, name, None)))
    return filled / len(_REQUIRED_FIELDS)


def assess_quality(component: Component, metadata: ComponentMetadata) -> RecordQuality:
    return RecordQuality(
        embedding_quality=1.0,
        content_quality=content_quality(component),
        metadata_completeness=metadata_completeness(metadata),
    )


def relationships_for(component: Component) -> Relationships:
    """Relationship stub; only direct dependencies are known at index time."""
    return Relationships(dependencies=tuple(component.dependencies))


def enrich(
    component: Component,
    *,
    now: str | None = None,
    content_limit: int = DEFAULT_CONTENT_LIMIT,
) -> ComponentMetadata:
    """Derive the enriched metadata for one component.

    Args:
        component: Raw component from the scanner.
        now: ISO-8601 timestamp for ``created_at``/``updated_at``.
            Defaults to the current UTC time.
        content_limit: Maximum number of content characters kept in the record.

    Returns:
        Enriched metadata. Identical for identical ``component`` and ``now``.
    """
    timestamp = now or datetime.now(UTC).isoformat()
    content = component.content
    domain, function, entities, apis = extract_business_context(component)

    return ComponentMetadata(
        name=component.name,
        kind=component.kind,
        file_path=component.file_path,
        line_number=component.line_number,
        content=content[:content_limit],
        content_hash=content_fingerprint(content),
        content_length=len(content),
        language=detect_language(component.file_path),
        domain=component.domain or "unknown",
        service=component.service or "unknown",
        complexity=component.complexity,
        dependencies=tuple(component.dependencies),
        imports=extract_imports(content),
        includes=extract_includes(content),
        ui_pattern=detect_ui_pattern(content),
        ui_framework=detect_ui_framework(content),
        ui_properties=analyze_ui_properties(content),
        metrics=code_metrics(content),
        business_domain=domain,
        business_function=function,
        data_entities=entities,
        external_apis=apis,
        migration_priority=migration_priority(component),
        migration_complexity=migration_complexity(component),
        estimated_effort=estimate_effort(component),
        created_at=timestamp,
        updated_at=timestamp,
        tags=generate_tags(component),
        labels=generate_labels(component),
        search_keywords=search_keywords(component),
        semantic_context=semantic_context(component),
    )
