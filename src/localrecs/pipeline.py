"""
One recommendation cycle over a catalog snapshot.

Vocabulary and embeddings are rebuilt from scratch on every call to
``compute_embeddings``; nothing is cached between cycles. The per-user loop
only reads the shared embeddings and metadata, so it can run on a thread
pool.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Hashable, Iterable

from tqdm import tqdm

from .config import MAX_WORKERS
from .embeddings import compute_embeddings, embedding_dimension
from .errors import InvalidArgumentError, require
from .models import CatalogItem, ItemEmbedding, MediaKind, UserRecommendations
from .profile import UserProfileService
from .recommender import RecommendationEngine
from .recommender_config import RecommenderConfig
from .sources import CatalogSource, WatchHistorySource
from .utils import log_duration, timed
from .vocabulary import FeatureVocabulary, build_vocabulary

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkReport:
    """Stage timings of one full cycle, in milliseconds."""
    item_count: int = 0
    movie_count: int = 0
    series_count: int = 0
    user_count: int = 0
    vocabulary_sizes: dict[str, int] = field(default_factory=dict)
    embedding_dimension: int = 0
    timings_ms: dict[str, float] = field(default_factory=dict)

    @property
    def total_ms(self) -> float:
        return sum(self.timings_ms.values())

    @property
    def per_user_ms(self) -> float:
        if self.user_count == 0:
            return 0.0
        return self.timings_ms.get("recommendations", 0.0) / self.user_count

    def summary(self) -> str:
        lines = [
            f"Items: {self.item_count} ({self.movie_count} movies, {self.series_count} series)",
            "Vocabulary: " + ", ".join(f"{k}={v}" for k, v in self.vocabulary_sizes.items()),
            f"Embedding dimension: {self.embedding_dimension}",
        ]
        for stage, ms in self.timings_ms.items():
            lines.append(f"  {stage}: {ms:.1f}ms")
        lines.append(f"Total: {self.total_ms:.1f}ms, {self.per_user_ms:.2f}ms per user ({self.user_count} users)")
        return "\n".join(lines)


class RecommendationPipeline:
    """
    Wires vocabulary, embeddings, profiles and ranking for a set of users.

    The configuration is validated up front; any error raised by a stage
    propagates to the caller unchanged.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        watch_history: WatchHistorySource,
        config: RecommenderConfig | None = None,
    ):
        self.catalog = require(catalog, "catalog")
        self.watch_history = require(watch_history, "watch_history")
        self.config = config if config is not None else RecommenderConfig()
        self.config.validate()

        self.profile_service = UserProfileService(watch_history)
        self.engine = RecommendationEngine(watch_history)

    def build_vocabulary(self, items: Iterable[CatalogItem]) -> FeatureVocabulary:
        return build_vocabulary(
            items,
            max_actors=self.config.max_vocabulary_actors,
            max_directors=self.config.max_vocabulary_directors,
            max_tags=self.config.max_vocabulary_tags,
        )

    @log_duration
    def compute_embeddings(self) -> tuple[dict[Hashable, ItemEmbedding], dict[Hashable, CatalogItem]]:
        """
        Fresh embeddings and metadata for the current catalog snapshot.

        Returns:
            (item id -> embedding, item id -> catalog record)
        """
        items = list(self.catalog.get_all_items())
        metadata = {item.item_id: item for item in items}
        vocabulary = self.build_vocabulary(items)
        embeddings = compute_embeddings(items, vocabulary, self.config.temporal_feature)
        return embeddings, metadata

    def recommend_for_user(
        self,
        user_id: Hashable,
        embeddings: dict[Hashable, ItemEmbedding],
        metadata: dict[Hashable, CatalogItem],
        reference_time: datetime | None = None,
    ) -> UserRecommendations:
        """Movie and TV recommendations for one user against precomputed embeddings."""
        profile = self.profile_service.build_user_profile(
            user_id, embeddings, self.config, metadata=metadata, reference_time=reference_time
        )
        cold_start = (
            profile is None
            or profile.watched_item_count < self.config.min_watched_items_for_personalization
        )

        movies = self.engine.generate_recommendations(
            user_id, profile, embeddings, metadata, self.config,
            media_type=MediaKind.MOVIE,
            max_results=self.config.movie_recommendation_count,
            reference_time=reference_time,
        )
        tv = self.engine.generate_recommendations(
            user_id, profile, embeddings, metadata, self.config,
            media_type=MediaKind.SERIES,
            max_results=self.config.tv_recommendation_count,
            reference_time=reference_time,
        )
        logger.info(f"User {user_id}: {len(movies)} movie and {len(tv)} TV recommendations")
        return UserRecommendations(user_id=user_id, movies=movies, tv=tv, cold_start=cold_start)

    def recommend_for_users(
        self,
        user_ids: Iterable[Hashable],
        max_workers: int | None = None,
        show_progress: bool = False,
        reference_time: datetime | None = None,
    ) -> dict[Hashable, UserRecommendations]:
        """
        Run a full cycle: embeddings once, then the per-user loop.

        Args:
            user_ids: Users to refresh
            max_workers: Thread pool size (default: LOCALRECS_MAX_WORKERS);
                1 runs sequentially
            show_progress: Show a tqdm progress bar over users
            reference_time: "Now" for recency decay (default: now)

        Returns:
            user id -> recommendations, in input order
        """
        require(user_ids, "user_ids")
        users = list(user_ids)
        workers = MAX_WORKERS if max_workers is None else max_workers
        if workers < 1:
            raise InvalidArgumentError("max_workers", f"must be at least 1 (got {workers})")

        embeddings, metadata = self.compute_embeddings()
        if not embeddings:
            logger.warning("Catalog is empty, no recommendations computed")
            return {}

        logger.info(f"Refreshing recommendations for {len(users)} users ({workers} workers)")

        def run(user_id):
            return self.recommend_for_user(user_id, embeddings, metadata, reference_time)

        results: dict[Hashable, UserRecommendations] = {}
        if workers == 1 or len(users) <= 1:
            for user_id in tqdm(users, desc="Users", disable=not show_progress):
                results[user_id] = run(user_id)
            return results

        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in input order and re-raises the first worker error
            outcomes = executor.map(run, users)
            for user_id, recs in tqdm(zip(users, outcomes), total=len(users), desc="Users", disable=not show_progress):
                results[user_id] = recs
        return results

    def benchmark(
        self,
        user_ids: Iterable[Hashable],
        reference_time: datetime | None = None,
    ) -> BenchmarkReport:
        """Time each stage of a sequential cycle and log the report."""
        require(user_ids, "user_ids")
        users = list(user_ids)
        report = BenchmarkReport(user_count=len(users))
        timings = report.timings_ms

        with timed("catalog", timings):
            items = list(self.catalog.get_all_items())
            metadata = {item.item_id: item for item in items}
        report.item_count = len(items)
        report.movie_count = sum(1 for item in items if item.kind is MediaKind.MOVIE)
        report.series_count = report.item_count - report.movie_count

        with timed("vocabulary", timings):
            vocabulary = self.build_vocabulary(items)
        report.vocabulary_sizes = {
            "genres": len(vocabulary.genres),
            "actors": len(vocabulary.actors),
            "directors": len(vocabulary.directors),
            "tags": len(vocabulary.tags),
            "decades": len(vocabulary.decades),
        }
        report.embedding_dimension = embedding_dimension(vocabulary, self.config.temporal_feature)

        with timed("embeddings", timings):
            embeddings = compute_embeddings(items, vocabulary, self.config.temporal_feature)

        if embeddings:
            with timed("recommendations", timings):
                for user_id in users:
                    self.recommend_for_user(user_id, embeddings, metadata, reference_time)
        else:
            timings["recommendations"] = 0.0

        logger.info(f"Benchmark report\n{report.summary()}")
        return report
