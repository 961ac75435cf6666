"""
Configuration constants for the local recommendation core.

This module centralizes the tunable defaults of the pipeline.
Values can be overridden via environment variables.
"""
import os
import logging

logger = logging.getLogger(__name__)


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """
    Safely parse float from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated float value
    """
    try:
        val = float(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """
    Safely parse integer from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated integer value
    """
    try:
        val = int(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    """Parse a boolean flag ("1/0", "true/false", "yes/no", "on/off")."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning(f"Invalid {key}='{raw}', using default {default}")
    return default


def _get_choice_env(key: str, default: str, choices: tuple[str, ...]) -> str:
    """Parse a string restricted to a fixed set of (lowercase) choices."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value not in choices:
        logger.warning(f"Invalid {key}='{raw}', expected one of {choices}, using default {default}")
        return default
    return value


# Output sizes
MOVIE_RECOMMENDATION_COUNT = _get_int_env("LOCALRECS_MOVIE_RECOMMENDATION_COUNT", 25, min_val=0)
TV_RECOMMENDATION_COUNT = _get_int_env("LOCALRECS_TV_RECOMMENDATION_COUNT", 25, min_val=0)
DEFAULT_MAX_RESULTS = 25

# Taste vector weighting
FAVORITE_BOOST = _get_float_env("LOCALRECS_FAVORITE_BOOST", 2.0, min_val=0.0)
REWATCH_BOOST = _get_float_env("LOCALRECS_REWATCH_BOOST", 1.5, min_val=1.0)
RECENCY_DECAY_HALF_LIFE_DAYS = _get_float_env("LOCALRECS_RECENCY_HALF_LIFE_DAYS", 365.0, min_val=0.001)

# Personalization guardrails
MIN_WATCHED_ITEMS_FOR_PERSONALIZATION = _get_int_env("LOCALRECS_MIN_WATCHED_ITEMS", 3, min_val=0)
EXCLUDE_ABANDONED_SERIES = _get_bool_env("LOCALRECS_EXCLUDE_ABANDONED_SERIES", True)
ABANDONED_SERIES_THRESHOLD_DAYS = _get_int_env("LOCALRECS_ABANDONED_SERIES_DAYS", 90, min_val=1)

# Vocabulary caps (0 = unlimited)
MAX_VOCABULARY_ACTORS = _get_int_env("LOCALRECS_MAX_VOCAB_ACTORS", 500, min_val=0)
MAX_VOCABULARY_DIRECTORS = _get_int_env("LOCALRECS_MAX_VOCAB_DIRECTORS", 0, min_val=0)
MAX_VOCABULARY_TAGS = _get_int_env("LOCALRECS_MAX_VOCAB_TAGS", 500, min_val=0)

# Scoring strategies
RATING_PROXIMITY_WEIGHT = _get_float_env("LOCALRECS_RATING_PROXIMITY_WEIGHT", 0.0, min_val=0.0)
RATING_PROXIMITY_MIN_SIGMA = 0.1
TEMPORAL_FEATURE = _get_choice_env("LOCALRECS_TEMPORAL_FEATURE", "decade", ("decade", "year"))

# Neutral value for a missing rating or year (normalized scale)
NEUTRAL_FEATURE_VALUE = 0.5

# Per-user loop parallelism
MAX_WORKERS = _get_int_env("LOCALRECS_MAX_WORKERS", 1, min_val=1)
