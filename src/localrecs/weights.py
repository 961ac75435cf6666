"""
Scalar weighting functions for watch-history aggregation.

A watched item contributes to the taste vector with

    weight = decay(days since last play) * favorite boost * rewatch boost

applied in that order: the favorite boost scales the already-decayed
weight and the rewatch boost compounds on top.
"""
from __future__ import annotations

import math
import sys
from datetime import datetime, timezone

from .errors import InvalidArgumentError

_MAX_WEIGHT = sys.float_info.max


def _finite(weight: float) -> float:
    """Keep extreme boost factors from overflowing to infinity; NaN counts as no weight."""
    if math.isnan(weight):
        return 0.0
    return min(weight, _MAX_WEIGHT)


def exponential_decay(days_since: float, half_life_days: float) -> float:
    """
    Weight halves every ``half_life_days``: 0.5 ** (days_since / half_life_days).

    Raises:
        InvalidArgumentError: ``days_since`` is negative or ``half_life_days``
            is not positive (a configuration error, never clamped).
    """
    if days_since < 0:
        raise InvalidArgumentError("days_since", f"cannot be negative (got {days_since})")
    if half_life_days <= 0:
        raise InvalidArgumentError("half_life_days", f"must be greater than 0 (got {half_life_days})")
    return math.pow(0.5, days_since / half_life_days)


def favorite_boost(weight: float, is_favorite: bool, boost_factor: float) -> float:
    if weight < 0:
        raise InvalidArgumentError("weight", f"cannot be negative (got {weight})")
    if boost_factor < 0:
        raise InvalidArgumentError("boost_factor", f"cannot be negative (got {boost_factor})")
    if weight == 0:
        # 0 * inf is NaN
        return 0.0
    return _finite(weight * boost_factor) if is_favorite else weight


def rewatch_boost(weight: float, play_count: int, base: float = 1.5) -> float:
    """
    Logarithmic replay boost: weight * (1 + log_base(play_count)).

    A single play leaves the weight unchanged.
    """
    if weight < 0:
        raise InvalidArgumentError("weight", f"cannot be negative (got {weight})")
    if play_count < 1:
        raise InvalidArgumentError("play_count", f"must be at least 1 (got {play_count})")
    if base <= 1:
        raise InvalidArgumentError("base", f"must be greater than 1 (got {base})")

    if play_count == 1 or weight == 0:
        return weight
    return _finite(weight * (1.0 + math.log(play_count, base)))


def combined_weight(
    days_since: float,
    half_life_days: float,
    is_favorite: bool,
    favorite_boost_factor: float,
    play_count: int,
    rewatch_base: float = 1.5,
) -> float:
    """Decay, then favorite boost, then rewatch boost."""
    weight = exponential_decay(days_since, half_life_days)
    weight = favorite_boost(weight, is_favorite, favorite_boost_factor)
    return rewatch_boost(weight, play_count, rewatch_base)


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def days_since(timestamp: datetime | None, reference_time: datetime | None = None) -> float:
    """
    Fractional days between ``timestamp`` and ``reference_time`` (default: now).

    Missing or future timestamps count as "just now" (0 days). Naive datetimes
    are treated as UTC so they can be compared with aware ones.
    """
    if timestamp is None:
        return 0.0
    reference = _as_utc(reference_time) if reference_time else datetime.now(timezone.utc)
    age = (reference - _as_utc(timestamp)).total_seconds() / 86400.0
    return max(0.0, age)
