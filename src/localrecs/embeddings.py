"""
Turn catalog items into fixed-length, unit-length feature vectors.

Vector layout (one block per vocabulary class, in vocabulary order):

    [genres | actors | directors | tags | temporal | community | critic]

Feature blocks use binary TF x IDF. The temporal block is either the
IDF-weighted decade block or a single normalized release-year dimension.
Ratings are scaled to [0, 1] and default to a neutral 0.5 when unknown so
unrated items are neither favored nor penalized.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Hashable, Iterable

import numpy as np

from .config import NEUTRAL_FEATURE_VALUE
from .errors import InvalidArgumentError, require
from .models import CatalogItem, ItemEmbedding
from .vector_math import normalize
from .vocabulary import FeatureVocabulary

logger = logging.getLogger(__name__)

TFIDF_BLOCKS = ("genre", "actor", "director", "tag")
RATING_DIMENSIONS = 2


class TemporalFeature(Enum):
    DECADE = "decade"  # IDF-weighted decade block
    YEAR = "year"      # one dimension, year scaled by the catalog's year range


def _coerce_temporal(value) -> TemporalFeature:
    if isinstance(value, TemporalFeature):
        return value
    try:
        return TemporalFeature(str(value).lower())
    except ValueError:
        raise InvalidArgumentError("temporal_feature", f"unknown temporal feature {value!r}") from None


@dataclass(frozen=True)
class _EmbeddingLayout:
    """Dimension index of every vocabulary feature, resolved once per vocabulary."""
    # block name -> {lowercased feature: (dimension index, idf)}
    blocks: dict[str, dict[str, tuple[int, float]]]
    temporal: TemporalFeature
    year_offset: int | None
    rating_offset: int
    dimension: int
    min_year: int | None
    max_year: int | None

    @classmethod
    def from_vocabulary(
        cls,
        vocabulary: FeatureVocabulary,
        temporal: TemporalFeature = TemporalFeature.DECADE,
    ) -> "_EmbeddingLayout":
        block_names = TFIDF_BLOCKS + (("decade",) if temporal is TemporalFeature.DECADE else ())
        blocks: dict[str, dict[str, tuple[int, float]]] = {}
        offset = 0
        for name in block_names:
            index: dict[str, tuple[int, float]] = {}
            for position, (feature, idf) in enumerate(vocabulary.idf_table(name).items()):
                index[feature.lower()] = (offset + position, float(idf))
            blocks[name] = index
            offset += len(vocabulary.idf_table(name))

        year_offset = None
        if temporal is TemporalFeature.YEAR:
            year_offset = offset
            offset += 1

        return cls(
            blocks=blocks,
            temporal=temporal,
            year_offset=year_offset,
            rating_offset=offset,
            dimension=offset + RATING_DIMENSIONS,
            min_year=vocabulary.min_year,
            max_year=vocabulary.max_year,
        )

    def embed(self, item: CatalogItem) -> np.ndarray:
        vector = np.zeros(self.dimension, dtype=np.float64)

        for name, index in self.blocks.items():
            for value in item.features(name):
                hit = index.get(value.lower())
                if hit is not None:
                    position, idf = hit
                    vector[position] = idf

        if self.year_offset is not None:
            vector[self.year_offset] = _normalized_year(item.release_year, self.min_year, self.max_year)

        vector[self.rating_offset] = _normalized_rating(item.community_rating, 10.0)
        vector[self.rating_offset + 1] = _normalized_rating(item.critic_rating, 100.0)

        return normalize(vector)


def _normalized_rating(rating: float | None, scale: float) -> float:
    if rating is None:
        return NEUTRAL_FEATURE_VALUE
    value = float(rating) / scale
    if not np.isfinite(value):
        return NEUTRAL_FEATURE_VALUE
    return min(1.0, max(0.0, value))


def _normalized_year(year: int | None, min_year: int | None, max_year: int | None) -> float:
    if year is None or min_year is None or max_year is None or max_year <= min_year:
        return NEUTRAL_FEATURE_VALUE
    return min(1.0, max(0.0, (year - min_year) / (max_year - min_year)))


def embedding_dimension(
    vocabulary: FeatureVocabulary,
    temporal_feature: TemporalFeature | str = TemporalFeature.DECADE,
) -> int:
    """Number of dimensions of every embedding built against ``vocabulary``."""
    require(vocabulary, "vocabulary")
    temporal = _coerce_temporal(temporal_feature)
    size = sum(len(vocabulary.idf_table(name)) for name in TFIDF_BLOCKS)
    size += len(vocabulary.decade_idf) if temporal is TemporalFeature.DECADE else 1
    return size + RATING_DIMENSIONS


def compute_embedding(
    item: CatalogItem,
    vocabulary: FeatureVocabulary,
    temporal_feature: TemporalFeature | str = TemporalFeature.DECADE,
) -> ItemEmbedding:
    require(item, "item")
    require(vocabulary, "vocabulary")
    layout = _EmbeddingLayout.from_vocabulary(vocabulary, _coerce_temporal(temporal_feature))
    return ItemEmbedding(item.item_id, layout.embed(item))


def compute_embeddings(
    items: Iterable[CatalogItem],
    vocabulary: FeatureVocabulary,
    temporal_feature: TemporalFeature | str = TemporalFeature.DECADE,
) -> dict[Hashable, ItemEmbedding]:
    """
    Embed every catalog item against one vocabulary.

    The dimension layout is resolved once and shared by all items, so every
    returned vector has the same length and block order.
    """
    require(items, "items")
    require(vocabulary, "vocabulary")

    item_list = list(items)
    logger.info(f"Computing embeddings for {len(item_list)} items")

    layout = _EmbeddingLayout.from_vocabulary(vocabulary, _coerce_temporal(temporal_feature))
    embeddings: dict[Hashable, ItemEmbedding] = {}
    for item in item_list:
        embeddings[item.item_id] = ItemEmbedding(item.item_id, layout.embed(item))

    if embeddings:
        logger.info(f"Computed {len(embeddings)} embeddings (dimension: {layout.dimension})")
    else:
        logger.info("No embeddings computed (0 items provided)")
    return embeddings
