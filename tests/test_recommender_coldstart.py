import numpy as np
import pytest

from conftest import NOW, make_item, watched
from localrecs.embeddings import compute_embeddings
from localrecs.models import MediaKind, UserProfile, WatchState
from localrecs.profile import UserProfileService
from localrecs.recommender import RecommendationEngine
from localrecs.recommender_config import RecommenderConfig
from localrecs.sources import InMemoryWatchHistory
from localrecs.vocabulary import build_vocabulary


@pytest.fixture
def config():
    return RecommenderConfig(min_watched_items_for_personalization=3)


@pytest.fixture
def embeddings(catalog_items):
    return compute_embeddings(catalog_items, build_vocabulary(catalog_items))


def test_no_profile_ranks_by_community_rating(watch_history, embeddings, metadata, config):
    recs = RecommendationEngine(watch_history).generate_recommendations(
        "newcomer", None, embeddings, metadata, config, media_type=MediaKind.SERIES
    )

    assert [r.item_id for r in recs] == ["sopranos", "dark", "expanse"]
    assert [r.score for r in recs] == pytest.approx([0.92, 0.87, 0.85])


def test_two_watched_items_below_threshold_use_cold_start(embeddings, metadata, config):
    history = InMemoryWatchHistory()
    history.record("casual", "inception", watched(days_ago=3))
    history.record("casual", "interstellar", watched(days_ago=4))
    profile = UserProfileService(history).build_user_profile(
        "casual", embeddings, config, metadata=metadata, reference_time=NOW
    )
    assert profile.watched_item_count == 2

    recs = RecommendationEngine(history).generate_recommendations(
        "casual", profile, embeddings, metadata, config, media_type=MediaKind.MOVIE
    )

    assert [r.item_id for r in recs] == [
        "godfather", "goodfellas", "heat", "blade-runner", "arrival", "notebook", "tenet", "mystery-reel",
    ]
    assert recs[0].score == pytest.approx(0.92)
    # Unrated items score 0 and sort last
    assert recs[-1].score == 0.0


def test_cold_start_matches_rating_ranking_regardless_of_profile(embeddings, metadata, config):
    history = InMemoryWatchHistory()
    engine = RecommendationEngine(history)
    thin_profile = UserProfile("u", np.ones(embeddings["heat"].dimensions), watched_item_count=1)

    without_profile = engine.generate_recommendations("u", None, embeddings, metadata, config)
    with_thin_profile = engine.generate_recommendations("u", thin_profile, embeddings, metadata, config)

    assert without_profile == with_thin_profile


def test_critic_rating_breaks_ties():
    metadata = {
        "a": make_item("a", genres=["Drama"], community_rating=8.0, critic_rating=70),
        "b": make_item("b", genres=["Drama"], community_rating=8.0, critic_rating=90),
        "c": make_item("c", genres=["Drama"], community_rating=8.0),
    }

    recs = RecommendationEngine(InMemoryWatchHistory()).cold_start_recommendations("u", metadata)

    assert [r.item_id for r in recs] == ["b", "a", "c"]
    assert all(r.score == pytest.approx(0.8) for r in recs)


def test_cold_start_excludes_only_fully_watched(metadata, embeddings, config):
    history = InMemoryWatchHistory()
    history.record("u", "godfather", watched())
    history.record("u", "goodfellas", WatchState(playback_position_ticks=9000))

    recs = RecommendationEngine(history).generate_recommendations(
        "u", None, embeddings, metadata, config, media_type=MediaKind.MOVIE, max_results=2
    )

    # In-progress items stay eligible in cold start
    assert [r.item_id for r in recs] == ["inception", "goodfellas"]


def test_cold_start_scores_are_clamped():
    metadata = {"odd": make_item("odd", community_rating=12.0)}

    recs = RecommendationEngine(InMemoryWatchHistory()).cold_start_recommendations("u", metadata)

    assert recs[0].score == 1.0
