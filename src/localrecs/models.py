"""Catalog, watch-state and result records shared by every stage."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Hashable, Iterable

import numpy as np

from .errors import InvalidArgumentError

UNKNOWN_DECADE = "Unknown"


class MediaKind(Enum):
    MOVIE = "movie"
    SERIES = "series"


def _clean_features(values: Iterable[str] | None) -> tuple[str, ...]:
    """Drop blank entries and case-insensitive duplicates, keeping first spelling and order."""
    cleaned: list[str] = []
    seen: set[str] = set()
    for value in values or ():
        if value is None:
            continue
        text = str(value).strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(text)
    return tuple(cleaned)


def decade_label(year: int | None) -> str:
    """Decade bucket for a release year, e.g. 1999 -> "1990s"."""
    if year is None:
        return UNKNOWN_DECADE
    return f"{(year // 10) * 10}s"


@dataclass(frozen=True)
class CatalogItem:
    """A movie or series as described by the catalog snapshot."""
    item_id: Hashable
    name: str
    kind: MediaKind
    genres: tuple[str, ...] = ()
    actors: tuple[str, ...] = ()
    directors: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    community_rating: float | None = None  # 0-10
    critic_rating: float | None = None     # 0-100
    release_year: int | None = None

    def __post_init__(self) -> None:
        if self.name is None or not str(self.name).strip():
            raise InvalidArgumentError("name", "catalog item name must be non-empty")
        if not isinstance(self.kind, MediaKind):
            raise InvalidArgumentError("kind", f"expected MediaKind, got {self.kind!r}")
        # Frozen dataclass: normalize feature lists through object.__setattr__
        for attr in ("genres", "actors", "directors", "tags"):
            object.__setattr__(self, attr, _clean_features(getattr(self, attr)))

    @property
    def decade(self) -> str:
        return decade_label(self.release_year)

    @property
    def has_descriptive_features(self) -> bool:
        """Items with neither genres nor actors are too sparse to score by similarity."""
        return bool(self.genres or self.actors)

    def features(self, feature_class: str) -> tuple[str, ...]:
        """Feature values of one class ("genre", "actor", "director", "tag", "decade")."""
        if feature_class == "decade":
            return (self.decade,)
        try:
            return getattr(self, FEATURE_FIELDS[feature_class])
        except KeyError:
            raise InvalidArgumentError("feature_class", f"unknown feature class {feature_class!r}") from None


# Feature class -> CatalogItem attribute, in embedding block order
FEATURE_FIELDS = {
    "genre": "genres",
    "actor": "actors",
    "director": "directors",
    "tag": "tags",
}
FEATURE_CLASSES = ("genre", "actor", "director", "tag", "decade")


@dataclass(frozen=True)
class WatchState:
    """
    Per (user, item) watch data supplied by the watch-history collaborator.

    For series the series-level ``played`` flag is not trusted when episode
    counts are available; watched status is derived from the episodes.
    """
    played: bool = False
    is_favorite: bool = False
    play_count: int = 0
    last_played_date: datetime | None = None
    playback_position_ticks: int = 0
    watched_episode_count: int = 0
    total_episode_count: int = 0

    def is_fully_watched(self, kind: MediaKind | None = None) -> bool:
        if kind is MediaKind.SERIES and self.total_episode_count > 0:
            return self.watched_episode_count >= self.total_episode_count
        return bool(self.played)

    @property
    def is_in_progress(self) -> bool:
        return self.playback_position_ticks > 0

    @property
    def has_watched_episodes(self) -> bool:
        return self.watched_episode_count > 0


@dataclass(frozen=True, eq=False)
class ItemEmbedding:
    item_id: Hashable
    vector: np.ndarray
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def dimensions(self) -> int:
        return int(self.vector.shape[0])

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.vector))


@dataclass(frozen=True, eq=False)
class UserProfile:
    """Normalized taste vector of a user, rebuilt on every cycle and never persisted."""
    user_id: Hashable
    taste_vector: np.ndarray
    watched_item_count: int = 0
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Normalized (0-1) rating statistics of the watched items
    average_community_rating: float | None = None
    average_critic_rating: float | None = None
    community_rating_std: float = 0.0
    critic_rating_std: float = 0.0

    @property
    def dimensions(self) -> int:
        return int(self.taste_vector.shape[0])


@dataclass(frozen=True)
class ScoredRecommendation:
    item_id: Hashable
    score: float


@dataclass(frozen=True)
class UserRecommendations:
    """Movie and TV recommendations produced for one user in one cycle."""
    user_id: Hashable
    movies: list[ScoredRecommendation] = field(default_factory=list)
    tv: list[ScoredRecommendation] = field(default_factory=list)
    cold_start: bool = False
