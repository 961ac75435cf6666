"""
Aggregate a user's watch history into a taste vector.

Only fully watched items contribute. Each one is weighted by recency,
favorite status and replays, and the weighted average of their embeddings
is scaled to unit length.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from statistics import mean, pstdev
from typing import Hashable, Mapping

import numpy as np

from .errors import EmptyCollectionError, require
from .models import CatalogItem, ItemEmbedding, UserProfile, WatchState
from .recommender_config import RecommenderConfig
from .sources import WatchHistorySource
from .vector_math import normalize, scale, weighted_sum
from .weights import combined_weight, days_since

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatchRecord:
    """A fully watched item that contributes to the taste vector."""
    item_id: Hashable
    last_played_date: datetime | None
    is_favorite: bool
    play_count: int


def _stabilize_weights(weights: np.ndarray) -> np.ndarray:
    """
    Rescale weights by their maximum so the weighted average stays finite.

    The taste vector is normalized afterwards, so a common factor does not
    change the result. If a weight overflowed to infinity, the infinite
    weights share the mass equally.
    """
    if weights.size == 0:
        return weights
    infinite = np.isinf(weights)
    if infinite.any():
        return infinite.astype(np.float64)
    peak = weights.max()
    if peak <= 0:
        return weights
    return weights / peak


def _rating_stats(values: list[float]) -> tuple[float | None, float]:
    if not values:
        return None, 0.0
    return mean(values), (pstdev(values) if len(values) > 1 else 0.0)


class UserProfileService:
    """
    Builds a user's taste vector from fully watched items.

    Weighting strategy per watched item:
    - Recency: exponential decay with the configured half-life
    - Favorite: multiplied by ``favorite_boost``
    - Replays: multiplied by 1 + log_base(play_count), base ``rewatch_boost``

    Partially watched or in-progress items never contribute, even when
    favorited; they do not reflect content the user actually finished.
    """

    def __init__(self, watch_history: WatchHistorySource):
        self.watch_history = require(watch_history, "watch_history")

    def get_watch_records(
        self,
        user_id: Hashable,
        item_ids,
        metadata: Mapping[Hashable, CatalogItem] | None = None,
    ) -> list[WatchRecord]:
        """Fully watched items of ``user_id`` among ``item_ids``."""
        if not self.watch_history.has_user(user_id):
            logger.warning(f"User not found: {user_id}")
            return []

        records = []
        for item_id in item_ids:
            state: WatchState | None = self.watch_history.get_watch_state(user_id, item_id)
            if state is None:
                continue
            item = metadata.get(item_id) if metadata else None
            if not state.is_fully_watched(item.kind if item else None):
                continue
            records.append(WatchRecord(
                item_id=item_id,
                last_played_date=state.last_played_date,
                is_favorite=state.is_favorite,
                play_count=max(1, state.play_count),
            ))
        return records

    def build_user_profile(
        self,
        user_id: Hashable,
        embeddings: Mapping[Hashable, ItemEmbedding],
        config: RecommenderConfig,
        metadata: Mapping[Hashable, CatalogItem] | None = None,
        reference_time: datetime | None = None,
    ) -> UserProfile | None:
        """
        Aggregate the user's watched embeddings into one unit-length taste vector.

        Args:
            user_id: User to profile
            embeddings: item id -> embedding for the current catalog snapshot
            config: Weighting configuration
            metadata: Optional catalog records, used to derive series watched
                status from episodes and to attach rating statistics
            reference_time: Reference point for recency decay (default: now)

        Returns:
            The profile, or None when the user has no fully watched item in
            the catalog; None is the cold-start signal, not an error.
        """
        require(embeddings, "embeddings")
        require(config, "config")
        if len(embeddings) == 0:
            raise EmptyCollectionError("embeddings", "embeddings dictionary cannot be empty")

        logger.info(f"Building user profile for user {user_id}")

        records = self.get_watch_records(user_id, embeddings.keys(), metadata)
        if not records:
            logger.warning(f"No watch history found for user {user_id}")
            return None

        logger.info(f"Found {len(records)} watched items for user {user_id}")

        taste_vector = self._compute_taste_vector(records, embeddings, config, reference_time)
        stats = self._rating_statistics(records, metadata)

        profile = UserProfile(
            user_id=user_id,
            taste_vector=taste_vector,
            watched_item_count=len(records),
            **stats,
        )
        logger.info(f"Built profile for user {user_id}: {len(records)} items")
        return profile

    def _compute_taste_vector(
        self,
        records: list[WatchRecord],
        embeddings: Mapping[Hashable, ItemEmbedding],
        config: RecommenderConfig,
        reference_time: datetime | None,
    ) -> np.ndarray:
        ref_time = reference_time or datetime.now(timezone.utc)

        vectors = []
        weights = []
        for record in records:
            embedding = embeddings.get(record.item_id)
            if embedding is None:
                continue
            # Raises for a non-positive half-life; callers validate config first
            weights.append(combined_weight(
                days_since(record.last_played_date, ref_time),
                config.recency_decay_half_life_days,
                record.is_favorite,
                config.favorite_boost,
                record.play_count,
                config.rewatch_boost,
            ))
            vectors.append(embedding.vector)

        dimension = next(iter(embeddings.values())).dimensions
        if not vectors:
            return np.zeros(dimension, dtype=np.float64)

        weight_array = _stabilize_weights(np.asarray(weights, dtype=np.float64))
        total_weight = float(weight_array.sum())
        accumulated = weighted_sum(vectors, weight_array)

        # Weighted average, then unit length for cosine scoring
        if total_weight > 0:
            accumulated = scale(accumulated, 1.0 / total_weight)
        return normalize(accumulated)

    def _rating_statistics(
        self,
        records: list[WatchRecord],
        metadata: Mapping[Hashable, CatalogItem] | None,
    ) -> dict:
        if not metadata:
            return {}
        community = []
        critic = []
        for record in records:
            item = metadata.get(record.item_id)
            if item is None:
                continue
            if item.community_rating is not None:
                community.append(min(1.0, max(0.0, item.community_rating / 10.0)))
            if item.critic_rating is not None:
                critic.append(min(1.0, max(0.0, item.critic_rating / 100.0)))

        avg_community, std_community = _rating_stats(community)
        avg_critic, std_critic = _rating_stats(critic)
        return {
            "average_community_rating": avg_community,
            "average_critic_rating": avg_critic,
            "community_rating_std": std_community,
            "critic_rating_std": std_critic,
        }
