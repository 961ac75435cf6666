"""
Catalog-wide feature vocabulary with document-frequency and IDF tables.

The vocabulary is built once per catalog snapshot and never mutated; every
embedding of that snapshot is laid out against it.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Mapping

from .errors import InvalidArgumentError, require
from .models import FEATURE_CLASSES, CatalogItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureVocabulary:
    """Per-class document frequencies and IDF weights, keyed by first-seen spelling."""
    genres: Mapping[str, int] = field(default_factory=dict)
    actors: Mapping[str, int] = field(default_factory=dict)
    directors: Mapping[str, int] = field(default_factory=dict)
    tags: Mapping[str, int] = field(default_factory=dict)
    decades: Mapping[str, int] = field(default_factory=dict)

    genre_idf: Mapping[str, float] = field(default_factory=dict)
    actor_idf: Mapping[str, float] = field(default_factory=dict)
    director_idf: Mapping[str, float] = field(default_factory=dict)
    tag_idf: Mapping[str, float] = field(default_factory=dict)
    decade_idf: Mapping[str, float] = field(default_factory=dict)

    total_items: int = 0
    min_year: int | None = None
    max_year: int | None = None
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        for feature_class in FEATURE_CLASSES:
            for attr in (_FREQUENCY_ATTRS[feature_class], _IDF_ATTRS[feature_class]):
                table = getattr(self, attr)
                if not isinstance(table, MappingProxyType):
                    object.__setattr__(self, attr, MappingProxyType(dict(table)))
            frequencies = getattr(self, _FREQUENCY_ATTRS[feature_class])
            idf = getattr(self, _IDF_ATTRS[feature_class])
            missing = [name for name in frequencies if name not in idf]
            if missing:
                raise InvalidArgumentError(
                    _IDF_ATTRS[feature_class], f"missing IDF entries for {missing[:5]}"
                )

    @property
    def total_features(self) -> int:
        return sum(len(self.frequencies(c)) for c in FEATURE_CLASSES)

    def frequencies(self, feature_class: str) -> Mapping[str, int]:
        return getattr(self, _attr_for(_FREQUENCY_ATTRS, feature_class))

    def idf_table(self, feature_class: str) -> Mapping[str, float]:
        return getattr(self, _attr_for(_IDF_ATTRS, feature_class))

    def document_frequency(self, feature_class: str, name: str) -> int:
        """Case-insensitive DF lookup; 0 for features outside the vocabulary."""
        return _lookup(self.frequencies(feature_class), name, 0)

    def idf(self, feature_class: str, name: str) -> float:
        """Case-insensitive IDF lookup; 0.0 for features outside the vocabulary."""
        return _lookup(self.idf_table(feature_class), name, 0.0)


_FREQUENCY_ATTRS = {
    "genre": "genres",
    "actor": "actors",
    "director": "directors",
    "tag": "tags",
    "decade": "decades",
}
_IDF_ATTRS = {c: f"{c}_idf" for c in FEATURE_CLASSES}


def _attr_for(attrs: dict[str, str], feature_class: str) -> str:
    try:
        return attrs[feature_class]
    except KeyError:
        raise InvalidArgumentError("feature_class", f"unknown feature class {feature_class!r}") from None


def _lookup(table: Mapping, name: str, default):
    if name in table:
        return table[name]
    key = str(name).strip().lower()
    for candidate, value in table.items():
        if candidate.lower() == key:
            return value
    return default


def compute_idf(total_documents: int, documents_with_feature: int) -> float:
    """ln(total / df), guarded to 0 for a zero document frequency."""
    if documents_with_feature <= 0 or total_documents <= 0:
        return 0.0
    return max(0.0, math.log(total_documents / documents_with_feature))


def _document_counts(items: list[CatalogItem], feature_class: str) -> dict[str, int]:
    """
    Count, per feature value, how many items carry it.

    Each item counts at most once per value (case-insensitive); the first
    spelling seen becomes the key. Insertion order is first appearance in
    the catalog, which keeps the resulting vocabulary order reproducible.
    """
    spelling: dict[str, str] = {}
    counts: dict[str, int] = {}
    for item in items:
        seen_in_item: set[str] = set()
        for value in item.features(feature_class):
            if value is None or not str(value).strip():
                continue
            key = str(value).strip().lower()
            if key in seen_in_item:
                continue
            seen_in_item.add(key)
            if key not in spelling:
                spelling[key] = str(value).strip()
                counts[key] = 0
            counts[key] += 1
    return {spelling[key]: count for key, count in counts.items()}


def _top_k(counts: dict[str, int], limit: int) -> dict[str, int]:
    """Keep the ``limit`` most frequent features; ties keep catalog order. 0 = unlimited."""
    if limit <= 0 or len(counts) <= limit:
        return counts
    # sorted() is stable, so equal frequencies stay in first-appearance order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])[:limit]
    return dict(ranked)


def build_vocabulary(
    items: Iterable[CatalogItem],
    max_actors: int = 0,
    max_directors: int = 0,
    max_tags: int = 0,
) -> FeatureVocabulary:
    """
    Scan the catalog once and build the shared feature vocabulary.

    Args:
        items: Catalog snapshot
        max_actors: Keep only the N most frequent actors (0 = unlimited)
        max_directors: Keep only the N most frequent directors (0 = unlimited)
        max_tags: Keep only the N most frequent tags (0 = unlimited)

    Genres and decades are never capped. An empty catalog yields an empty
    vocabulary with ``total_items == 0``.
    """
    require(items, "items")
    for name, cap in (("max_actors", max_actors), ("max_directors", max_directors), ("max_tags", max_tags)):
        if cap < 0:
            raise InvalidArgumentError(name, f"must be non-negative, 0 means unlimited (got {cap})")

    item_list = list(items)
    if not item_list:
        logger.warning("No items provided to build vocabulary")
        return FeatureVocabulary()

    total = len(item_list)
    logger.info(f"Building vocabulary from {total} items")

    caps = {"genre": 0, "actor": max_actors, "director": max_directors, "tag": max_tags, "decade": 0}
    tables: dict[str, object] = {}
    for feature_class in FEATURE_CLASSES:
        counts = _top_k(_document_counts(item_list, feature_class), caps[feature_class])
        tables[_FREQUENCY_ATTRS[feature_class]] = counts
        tables[_IDF_ATTRS[feature_class]] = {
            name: compute_idf(total, df) for name, df in counts.items()
        }

    years = [item.release_year for item in item_list if item.release_year is not None]
    vocabulary = FeatureVocabulary(
        total_items=total,
        min_year=min(years) if years else None,
        max_year=max(years) if years else None,
        **tables,
    )

    logger.info(
        f"Built vocabulary: {len(vocabulary.genres)} genres, {len(vocabulary.actors)} actors, "
        f"{len(vocabulary.directors)} directors, {len(vocabulary.tags)} tags, "
        f"{len(vocabulary.decades)} decades"
    )
    return vocabulary
