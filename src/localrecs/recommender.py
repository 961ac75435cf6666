"""
Rank unwatched catalog items for one user.

Two paths share one output type:

- Personalized: cosine similarity of each candidate embedding to the user's
  taste vector, optionally blended with a rating-proximity term.
- Cold start: catalog ratings only, used when the profile is missing or
  built from too few watched items.

Both produce scores in [0, 1], sorted descending.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Hashable, Mapping

import numpy as np

from .config import DEFAULT_MAX_RESULTS, RATING_PROXIMITY_MIN_SIGMA
from .errors import EmptyCollectionError, InvalidArgumentError, require
from .models import CatalogItem, ItemEmbedding, MediaKind, ScoredRecommendation, UserProfile, WatchState
from .recommender_config import RecommenderConfig
from .sources import WatchHistorySource
from .vector_math import normalize
from .weights import days_since

logger = logging.getLogger(__name__)


def _clamp_unit(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _normalized(rating: float | None, scale: float) -> float | None:
    if rating is None or not math.isfinite(rating):
        return None
    return _clamp_unit(rating / scale)


def _gaussian_closeness(value: float, center: float, std: float) -> float:
    sigma = max(std, RATING_PROXIMITY_MIN_SIGMA)
    return math.exp(-((value - center) ** 2) / (2 * sigma ** 2))


def rating_proximity(item: CatalogItem, profile: UserProfile) -> float | None:
    """
    How close an item's ratings sit to the ratings the user usually watches.

    Averages a Gaussian closeness per rating the item and the profile both
    have. Returns None when there is nothing to compare.
    """
    scores = []
    community = _normalized(item.community_rating, 10.0)
    if community is not None and profile.average_community_rating is not None:
        scores.append(_gaussian_closeness(
            community, profile.average_community_rating, profile.community_rating_std
        ))
    critic = _normalized(item.critic_rating, 100.0)
    if critic is not None and profile.average_critic_rating is not None:
        scores.append(_gaussian_closeness(
            critic, profile.average_critic_rating, profile.critic_rating_std
        ))
    if not scores:
        return None
    return sum(scores) / len(scores)


class RecommendationEngine:
    """Filters, scores and ranks candidates for a single user."""

    def __init__(self, watch_history: WatchHistorySource):
        self.watch_history = require(watch_history, "watch_history")

    def generate_recommendations(
        self,
        user_id: Hashable,
        profile: UserProfile | None,
        embeddings: Mapping[Hashable, ItemEmbedding],
        metadata: Mapping[Hashable, CatalogItem],
        config: RecommenderConfig,
        media_type: MediaKind | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        reference_time: datetime | None = None,
    ) -> list[ScoredRecommendation]:
        """
        Top ``max_results`` recommendations for ``user_id``.

        Args:
            user_id: User to recommend for
            profile: Taste profile, or None when the user has no usable history
            embeddings: item id -> embedding of the current catalog snapshot
            metadata: item id -> catalog record of the same snapshot
            config: Recommendation settings
            media_type: Restrict candidates to movies or series (default: both)
            max_results: Maximum number of results
            reference_time: "Now" for the abandoned-series rule (default: now)

        Returns:
            Recommendations sorted by descending score; empty when nothing
            qualifies.

        Raises:
            InvalidArgumentError: missing inputs, empty collections or a
                negative ``max_results``
        """
        require(embeddings, "embeddings")
        require(metadata, "metadata")
        require(config, "config")
        if len(embeddings) == 0:
            raise EmptyCollectionError("embeddings", "embeddings dictionary cannot be empty")
        if len(metadata) == 0:
            raise EmptyCollectionError("metadata", "metadata dictionary cannot be empty")
        if max_results < 0:
            raise InvalidArgumentError("max_results", f"cannot be negative (got {max_results})")
        if media_type is not None and not isinstance(media_type, MediaKind):
            raise InvalidArgumentError("media_type", f"expected MediaKind, got {media_type!r}")

        if profile is None or profile.watched_item_count < config.min_watched_items_for_personalization:
            count = 0 if profile is None else profile.watched_item_count
            logger.info(
                f"Cold start for user {user_id}: {count} watched items "
                f"(need {config.min_watched_items_for_personalization})"
            )
            return self.cold_start_recommendations(user_id, metadata, media_type, max_results)

        return self.personalized_recommendations(
            user_id, profile, embeddings, metadata, config, media_type, max_results, reference_time
        )

    def _watch_state(self, user_id: Hashable, item_id: Hashable) -> WatchState | None:
        return self.watch_history.get_watch_state(user_id, item_id)

    def cold_start_recommendations(
        self,
        user_id: Hashable,
        metadata: Mapping[Hashable, CatalogItem],
        media_type: MediaKind | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> list[ScoredRecommendation]:
        """Highest rated unwatched items; community rating first, critic rating breaks ties."""
        candidates = []
        for item_id, item in metadata.items():
            if media_type is not None and item.kind is not media_type:
                continue
            state = self._watch_state(user_id, item_id)
            if state is not None and state.is_fully_watched(item.kind):
                continue
            candidates.append(item)

        # Stable sort: items with equal ratings keep catalog order
        candidates.sort(key=lambda item: (
            -(item.community_rating or 0.0),
            -(item.critic_rating or 0.0),
        ))

        results = [
            ScoredRecommendation(item.item_id, _clamp_unit((item.community_rating or 0.0) / 10.0))
            for item in candidates[:max_results]
        ]
        logger.info(f"Generated {len(results)} cold-start recommendations for user {user_id}")
        return results

    def _is_candidate(
        self,
        user_id: Hashable,
        item: CatalogItem,
        config: RecommenderConfig,
        media_type: MediaKind | None,
        reference_time: datetime,
    ) -> bool:
        if media_type is not None and item.kind is not media_type:
            return False
        if not item.has_descriptive_features:
            logger.debug(f"Skipping {item.item_id}: no genres or actors")
            return False

        state = self._watch_state(user_id, item.item_id)
        if state is None:
            return True
        if state.is_fully_watched(item.kind):
            return False
        if state.is_in_progress:
            return False
        if item.kind is MediaKind.SERIES:
            if state.has_watched_episodes:
                # Started series are not re-recommended
                return False
            if (
                config.exclude_abandoned_series
                and state.last_played_date is not None
                and days_since(state.last_played_date, reference_time) >= config.abandoned_series_threshold_days
            ):
                logger.debug(f"Skipping abandoned series {item.item_id}")
                return False
        return True

    def personalized_recommendations(
        self,
        user_id: Hashable,
        profile: UserProfile,
        embeddings: Mapping[Hashable, ItemEmbedding],
        metadata: Mapping[Hashable, CatalogItem],
        config: RecommenderConfig,
        media_type: MediaKind | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        reference_time: datetime | None = None,
    ) -> list[ScoredRecommendation]:
        """Cosine similarity to the taste vector over every eligible unwatched item."""
        ref_time = reference_time or datetime.now(timezone.utc)

        candidate_ids = []
        vectors = []
        for item_id, item in metadata.items():
            embedding = embeddings.get(item_id)
            if embedding is None:
                continue
            if not self._is_candidate(user_id, item, config, media_type, ref_time):
                continue
            if embedding.dimensions != profile.dimensions:
                raise InvalidArgumentError(
                    "embeddings",
                    f"embedding of {item_id} has {embedding.dimensions} dimensions, "
                    f"taste vector has {profile.dimensions}",
                )
            candidate_ids.append(item_id)
            vectors.append(embedding.vector)

        if not candidate_ids:
            logger.warning(f"No candidate items for user {user_id}")
            return []

        scores = self._cosine_scores(profile.taste_vector, np.vstack(vectors))

        blend = config.rating_proximity_weight
        if blend > 0:
            for i, item_id in enumerate(candidate_ids):
                proximity = rating_proximity(metadata[item_id], profile)
                if proximity is not None:
                    scores[i] = (1.0 - blend) * scores[i] + blend * proximity

        # Stable: equal scores keep catalog order
        order = np.argsort(-scores, kind="stable")[:max_results]
        results = [
            ScoredRecommendation(candidate_ids[i], _clamp_unit(float(scores[i])))
            for i in order
        ]
        logger.info(
            f"Generated {len(results)} recommendations for user {user_id} "
            f"from {len(candidate_ids)} candidates"
        )
        return results

    @staticmethod
    def _cosine_scores(taste_vector: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        """
        Cosine of every row against the taste vector, clamped into [0, 1].

        Same result as ``cosine_similarity`` per row, computed in one matrix
        product. Zero-magnitude rows and a zero taste vector score 0.
        """
        unit_taste = normalize(taste_vector)
        row_norms = np.linalg.norm(matrix, axis=1)
        with np.errstate(divide="ignore", invalid="ignore"):
            scores = (matrix @ unit_taste) / row_norms
        scores[~np.isfinite(scores)] = 0.0
        return np.clip(scores, 0.0, 1.0)
