"""Heuristic scoring used when no vector index is available.

Replaces vector similarity with text matching (relevance) and metadata
overlap (similarity). Also evaluates metadata filters locally with the same
operator semantics the primary index applies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from compindex.serialize import flat_metadata
from compindex.types import IndexRecord, SearchHit

__all__ = [
    "FILTER_OPERATORS",
    "NAME_WEIGHT",
    "CONTENT_WEIGHT",
    "KEYWORD_WEIGHT",
    "TAG_WEIGHT",
    "filter_hits",
    "is_text_match",
    "matches_filter",
    "rank_by_relevance",
    "rank_by_similarity",
    "relevance_score",
    "similarity_score",
]

NAME_WEIGHT = 10
CONTENT_WEIGHT = 5
KEYWORD_WEIGHT = 3
TAG_WEIGHT = 2

KIND_WEIGHT = 0.3
DOMAIN_WEIGHT = 0.2
SERVICE_WEIGHT = 0.2
KEYWORD_OVERLAP_WEIGHT = 0.3

FILTER_OPERATORS = frozenset({"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin"})


def relevance_score(record: IndexRecord, query: str) -> int:
    """Score how well a record matches a free-text query.

    Case-insensitive substring matching against name, content snippet,
    keywords and tags, weighted in that order.
    """
    q = query.lower()
    meta = record.metadata
    score = 0
    if q in meta.name.lower():
        score += NAME_WEIGHT
    if q in meta.content.lower():
        score += CONTENT_WEIGHT
    if any(q in k.lower() for k in meta.search_keywords):
        score += KEYWORD_WEIGHT
    if any(q in t.lower() for t in meta.tags):
        score += TAG_WEIGHT
    return score


def is_text_match(record: IndexRecord, query: str) -> bool:
    """True when ``query`` occurs in the name, content or a keyword.

    Tags only affect ordering; a tag match alone does not make a hit.
    """
    q = query.lower()
    meta = record.metadata
    return (
        q in meta.name.lower()
        or q in meta.content.lower()
        or any(q in k.lower() for k in meta.search_keywords)
    )


def rank_by_relevance(records: Iterable[IndexRecord], query: str) -> list[SearchHit]:
    """Return text-matching records sorted by descending relevance.

    Membership is decided by :func:`is_text_match`. The sort is stable, so
    ties keep their stored order.
    """
    hits = []
    for record in records:
        if is_text_match(record, query):
            score = relevance_score(record, query)
            hits.append(SearchHit(record=record, score=float(score)))
    hits.sort(key=lambda h: h.score, reverse=True)
    return hits


def similarity_score(a: IndexRecord, b: IndexRecord) -> float:
    """Metadata overlap between two records, in ``[0.0, 1.0]``.

    The keyword term divides by the larger keyword set, so it is not
    symmetric when the sets differ in size.
    """
    ma, mb = a.metadata, b.metadata
    score = 0.0
    if ma.kind == mb.kind:
        score += KIND_WEIGHT
    if ma.domain == mb.domain:
        score += DOMAIN_WEIGHT
    if ma.service == mb.service:
        score += SERVICE_WEIGHT

    ka, kb = ma.search_keywords, mb.search_keywords
    largest = max(len(ka), len(kb))
    if largest:
        other = set(kb)
        common = sum(1 for k in ka if k in other)
        score += KEYWORD_OVERLAP_WEIGHT * (common / largest)
    return min(score, 1.0)


def rank_by_similarity(
    target: IndexRecord,
    records: Iterable[IndexRecord],
    top_k: int,
) -> list[SearchHit]:
    """Score every record other than ``target`` and keep the best ``top_k``."""
    hits = [
        SearchHit(record=r, score=similarity_score(target, r))
        for r in records
        if r.id != target.id
    ]
    hits.sort(key=lambda h: h.score, reverse=True)
    return hits[:top_k]


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "$eq":
        return actual == expected
    if op == "$ne":
        return actual != expected
    if op == "$in":
        return actual in expected
    if op == "$nin":
        return actual not in expected
    try:
        if op == "$gt":
            return actual > expected
        if op == "$gte":
            return actual >= expected
        if op == "$lt":
            return actual < expected
        if op == "$lte":
            return actual <= expected
    except TypeError:
        return False
    raise ValueError(f"Unsupported filter operator: {op}")


def matches_filter(metadata: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    """Evaluate a metadata filter against a flat metadata mapping.

    ``where`` maps a field to a literal (equality) or to an operator mapping
    such as ``{"$gte": 3, "$lte": 8}``. Fields are AND-ed; ``$and`` and
    ``$or`` take lists of nested filters.

    Raises:
        ValueError: On an unknown operator.
    """
    if not where:
        return True
    for key, condition in where.items():
        if key == "$and":
            if not all(matches_filter(metadata, sub) for sub in condition):
                return False
            continue
        if key == "$or":
            if not any(matches_filter(metadata, sub) for sub in condition):
                return False
            continue

        if key not in metadata:
            return False
        actual = metadata[key]
        if isinstance(condition, Mapping):
            for op, expected in condition.items():
                if op not in FILTER_OPERATORS:
                    raise ValueError(f"Unsupported filter operator: {op}")
                if not _compare(op, actual, expected):
                    return False
        elif actual != condition:
            return False
    return True


def filter_hits(hits: Iterable[SearchHit], where: Mapping[str, Any] | None) -> list[SearchHit]:
    return [h for h in hits if matches_filter(flat_metadata(h.record), where)]
