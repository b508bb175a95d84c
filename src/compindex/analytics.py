"""Read-only aggregate reports over indexed records."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from compindex.enrich import NO_UI_PATTERN
from compindex.types import MigrationReport, UIReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from compindex.types import IndexRecord

__all__ = ["migration_census", "ui_census"]

_UI_FLAGS = ("has_validation", "has_state", "has_events", "is_responsive")


def ui_census(records: Iterable[IndexRecord]) -> UIReport:
    """Count UI patterns, frameworks and property flags.

    ``patterns`` covers every record (``custom`` included); the total only
    counts records where a concrete UI pattern was detected.
    """
    patterns: Counter[str] = Counter()
    frameworks: Counter[str] = Counter()
    properties: Counter[str] = Counter({flag: 0 for flag in _UI_FLAGS})
    total = 0

    for record in records:
        meta = record.metadata
        patterns[meta.ui_pattern] += 1
        if meta.ui_pattern != NO_UI_PATTERN:
            total += 1
        if meta.ui_framework:
            frameworks[meta.ui_framework] += 1
        for flag in _UI_FLAGS:
            if getattr(meta.ui_properties, flag):
                properties[flag] += 1

    return UIReport(
        total_ui_components=total,
        patterns=dict(patterns),
        frameworks=dict(frameworks),
        properties=dict(properties),
    )


def migration_census(records: Iterable[IndexRecord]) -> MigrationReport:
    """Count migration priorities, buckets, domains and services; sum effort."""
    priorities: Counter[str] = Counter()
    complexities: Counter[str] = Counter()
    domains: Counter[str] = Counter()
    services: Counter[str] = Counter()
    total = 0
    effort = 0

    for record in records:
        meta = record.metadata
        total += 1
        priorities[meta.migration_priority] += 1
        complexities[meta.migration_complexity] += 1
        domains[meta.domain] += 1
        services[meta.service] += 1
        effort += meta.estimated_effort

    return MigrationReport(
        total_components=total,
        priorities=dict(priorities),
        complexities=dict(complexities),
        domains=dict(domains),
        services=dict(services),
        estimated_total_effort=effort,
    )
