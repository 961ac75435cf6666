import math
from dataclasses import asdict, dataclass, field

from .config import (
    MOVIE_RECOMMENDATION_COUNT,
    TV_RECOMMENDATION_COUNT,
    FAVORITE_BOOST,
    REWATCH_BOOST,
    RECENCY_DECAY_HALF_LIFE_DAYS,
    MIN_WATCHED_ITEMS_FOR_PERSONALIZATION,
    EXCLUDE_ABANDONED_SERIES,
    ABANDONED_SERIES_THRESHOLD_DAYS,
    MAX_VOCABULARY_ACTORS,
    MAX_VOCABULARY_DIRECTORS,
    MAX_VOCABULARY_TAGS,
    RATING_PROXIMITY_WEIGHT,
    TEMPORAL_FEATURE,
)
from .embeddings import TemporalFeature
from .errors import InvalidArgumentError


@dataclass
class RecommenderConfig:
    """
    Tunables of one recommendation cycle.

    Defaults mirror ``localrecs.config`` (and therefore its environment
    overrides). Construction does not validate: hosts call ``validate()``
    before running the pipeline, and the core's own argument checks still
    reject bad values on the paths that use them.
    """

    # Output sizes per media kind
    movie_recommendation_count: int = MOVIE_RECOMMENDATION_COUNT
    tv_recommendation_count: int = TV_RECOMMENDATION_COUNT

    # Taste vector weighting
    favorite_boost: float = FAVORITE_BOOST
    rewatch_boost: float = REWATCH_BOOST  # logarithm base of the replay boost
    recency_decay_half_life_days: float = RECENCY_DECAY_HALF_LIFE_DAYS

    # Cold-start guardrail
    min_watched_items_for_personalization: int = MIN_WATCHED_ITEMS_FOR_PERSONALIZATION

    # Partially watched series with no activity for this long are skipped
    exclude_abandoned_series: bool = EXCLUDE_ABANDONED_SERIES
    abandoned_series_threshold_days: int = ABANDONED_SERIES_THRESHOLD_DAYS

    # Vocabulary caps (0 = unlimited)
    max_vocabulary_actors: int = MAX_VOCABULARY_ACTORS
    max_vocabulary_directors: int = MAX_VOCABULARY_DIRECTORS
    max_vocabulary_tags: int = MAX_VOCABULARY_TAGS

    # Scoring strategies
    rating_proximity_weight: float = RATING_PROXIMITY_WEIGHT
    temporal_feature: TemporalFeature = field(default_factory=lambda: TemporalFeature(TEMPORAL_FEATURE))

    def __post_init__(self) -> None:
        if not isinstance(self.temporal_feature, TemporalFeature):
            try:
                self.temporal_feature = TemporalFeature(str(self.temporal_feature).lower())
            except ValueError:
                raise InvalidArgumentError(
                    "temporal_feature", f"unknown temporal feature {self.temporal_feature!r}"
                ) from None

    def validation_errors(self) -> list[str]:
        """Every configuration problem, one message per offending field."""
        errors = []
        if self.movie_recommendation_count < 0:
            errors.append("movie_recommendation_count must be non-negative")
        if self.tv_recommendation_count < 0:
            errors.append("tv_recommendation_count must be non-negative")
        if self.favorite_boost < 0:
            errors.append("favorite_boost must be non-negative")
        if self.rewatch_boost <= 1:
            errors.append("rewatch_boost must be greater than 1")
        if self.recency_decay_half_life_days <= 0:
            errors.append("recency_decay_half_life_days must be positive")
        for name in ("favorite_boost", "rewatch_boost", "recency_decay_half_life_days"):
            if not math.isfinite(getattr(self, name)):
                errors.append(f"{name} must be finite")
        if self.min_watched_items_for_personalization < 0:
            errors.append("min_watched_items_for_personalization must be non-negative")
        if self.abandoned_series_threshold_days < 1:
            errors.append("abandoned_series_threshold_days must be at least 1")
        if self.max_vocabulary_actors < 0:
            errors.append("max_vocabulary_actors must be non-negative (0 = unlimited)")
        if self.max_vocabulary_directors < 0:
            errors.append("max_vocabulary_directors must be non-negative (0 = unlimited)")
        if self.max_vocabulary_tags < 0:
            errors.append("max_vocabulary_tags must be non-negative (0 = unlimited)")
        if not (0.0 <= self.rating_proximity_weight <= 1.0):
            errors.append("rating_proximity_weight must be in [0, 1]")
        return errors

    def validate(self) -> None:
        errors = self.validation_errors()
        if errors:
            raise InvalidArgumentError("config", "; ".join(errors))

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["temporal_feature"] = self.temporal_feature.value
        return payload
