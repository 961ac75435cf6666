import math

import pytest

from localrecs.embeddings import TemporalFeature
from localrecs.errors import InvalidArgumentError
from localrecs.recommender_config import RecommenderConfig


def test_defaults():
    cfg = RecommenderConfig()

    assert cfg.movie_recommendation_count == 25
    assert cfg.tv_recommendation_count == 25
    assert cfg.favorite_boost == 2.0
    assert cfg.rewatch_boost == 1.5
    assert cfg.recency_decay_half_life_days == 365.0
    assert cfg.min_watched_items_for_personalization == 3
    assert cfg.exclude_abandoned_series is True
    assert cfg.abandoned_series_threshold_days == 90
    assert cfg.max_vocabulary_actors == 500
    assert cfg.max_vocabulary_directors == 0
    assert cfg.max_vocabulary_tags == 500
    assert cfg.rating_proximity_weight == 0.0
    assert cfg.temporal_feature is TemporalFeature.DECADE
    assert cfg.validation_errors() == []


def test_env_overrides_and_validation(fresh_config):
    config, recommender_config = fresh_config(
        LOCALRECS_FAVORITE_BOOST="3.5",
        LOCALRECS_REWATCH_BOOST="0.5",  # should clamp to min
        LOCALRECS_MAX_VOCAB_ACTORS="50",
        LOCALRECS_EXCLUDE_ABANDONED_SERIES="false",
        LOCALRECS_TEMPORAL_FEATURE="Year",
    )

    assert config.FAVORITE_BOOST == 3.5
    assert config.REWATCH_BOOST == 1.0
    assert config.MAX_VOCABULARY_ACTORS == 50
    assert config.EXCLUDE_ABANDONED_SERIES is False
    assert config.TEMPORAL_FEATURE == "year"

    cfg = recommender_config.RecommenderConfig()
    assert cfg.favorite_boost == 3.5
    assert cfg.max_vocabulary_actors == 50
    assert cfg.temporal_feature is TemporalFeature.YEAR


def test_invalid_env_values_fall_back_to_defaults(fresh_config):
    # Use clearly invalid strings to exercise the ValueError branches
    config, _ = fresh_config(
        LOCALRECS_RECENCY_HALF_LIFE_DAYS="not-a-float",
        LOCALRECS_MIN_WATCHED_ITEMS="bad-int",
        LOCALRECS_EXCLUDE_ABANDONED_SERIES="maybe",
        LOCALRECS_TEMPORAL_FEATURE="century",
    )

    assert config.RECENCY_DECAY_HALF_LIFE_DAYS == 365.0
    assert config.MIN_WATCHED_ITEMS_FOR_PERSONALIZATION == 3
    assert config.EXCLUDE_ABANDONED_SERIES is True
    assert config.TEMPORAL_FEATURE == "decade"


def test_validation_collects_every_error():
    cfg = RecommenderConfig(
        movie_recommendation_count=-1,
        rewatch_boost=1.0,
        recency_decay_half_life_days=0,
        abandoned_series_threshold_days=0,
        max_vocabulary_tags=-5,
        rating_proximity_weight=1.5,
    )

    errors = cfg.validation_errors()

    assert len(errors) == 6
    with pytest.raises(InvalidArgumentError) as exc:
        cfg.validate()
    assert exc.value.param_name == "config"
    assert "recency_decay_half_life_days" in str(exc.value)


@pytest.mark.parametrize(
    "field_name,value",
    [
        ("favorite_boost", math.inf),
        ("rewatch_boost", math.inf),
        ("recency_decay_half_life_days", math.inf),
        ("favorite_boost", math.nan),
    ],
)
def test_non_finite_weighting_values_are_rejected(field_name, value):
    cfg = RecommenderConfig(**{field_name: value})

    assert f"{field_name} must be finite" in cfg.validation_errors()
    with pytest.raises(InvalidArgumentError):
        cfg.validate()


def test_temporal_feature_accepts_strings():
    assert RecommenderConfig(temporal_feature="year").temporal_feature is TemporalFeature.YEAR
    with pytest.raises(InvalidArgumentError):
        RecommenderConfig(temporal_feature="century")


def test_to_dict_is_plain_data():
    payload = RecommenderConfig(temporal_feature="year").to_dict()

    assert payload["temporal_feature"] == "year"
    assert payload["favorite_boost"] == 2.0
