import importlib
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from localrecs.models import CatalogItem, MediaKind, WatchState  # noqa: E402
from localrecs.recommender_config import RecommenderConfig  # noqa: E402
from localrecs.sources import InMemoryCatalog, InMemoryWatchHistory  # noqa: E402

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_item(item_id, kind=MediaKind.MOVIE, **kwargs):
    kwargs.setdefault("name", f"Item {item_id}")
    return CatalogItem(item_id=item_id, kind=kind, **kwargs)


def watched(days_ago=10, favorite=False, play_count=1):
    return WatchState(
        played=True,
        is_favorite=favorite,
        play_count=play_count,
        last_played_date=NOW - timedelta(days=days_ago),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def catalog_items():
    """Sci-fi, drama and crime movies plus a few series."""
    return [
        make_item("inception", name="Inception", genres=["Sci-Fi", "Thriller"],
                  actors=["Leonardo DiCaprio", "Tom Hardy"], directors=["Christopher Nolan"],
                  tags=["dreams"], community_rating=8.8, critic_rating=87, release_year=2010),
        make_item("interstellar", name="Interstellar", genres=["Sci-Fi", "Drama"],
                  actors=["Matthew McConaughey", "Anne Hathaway"], directors=["Christopher Nolan"],
                  tags=["space"], community_rating=8.6, critic_rating=73, release_year=2014),
        make_item("tenet", name="Tenet", genres=["Sci-Fi", "Action"],
                  actors=["John David Washington"], directors=["Christopher Nolan"],
                  community_rating=7.3, critic_rating=69, release_year=2020),
        make_item("arrival", name="Arrival", genres=["Sci-Fi", "Drama"],
                  actors=["Amy Adams"], directors=["Denis Villeneuve"],
                  tags=["space"], community_rating=7.9, critic_rating=94, release_year=2016),
        make_item("blade-runner", name="Blade Runner 2049", genres=["Sci-Fi"],
                  actors=["Ryan Gosling"], directors=["Denis Villeneuve"],
                  community_rating=8.0, critic_rating=88, release_year=2017),
        make_item("godfather", name="The Godfather", genres=["Crime", "Drama"],
                  actors=["Marlon Brando", "Al Pacino"], directors=["Francis Ford Coppola"],
                  community_rating=9.2, critic_rating=97, release_year=1972),
        make_item("heat", name="Heat", genres=["Crime", "Thriller"],
                  actors=["Al Pacino", "Robert De Niro"], directors=["Michael Mann"],
                  community_rating=8.3, critic_rating=86, release_year=1995),
        make_item("goodfellas", name="Goodfellas", genres=["Crime", "Drama"],
                  actors=["Robert De Niro", "Ray Liotta"], directors=["Martin Scorsese"],
                  community_rating=8.7, critic_rating=96, release_year=1990),
        make_item("notebook", name="The Notebook", genres=["Romance", "Drama"],
                  actors=["Ryan Gosling", "Rachel McAdams"], directors=["Nick Cassavetes"],
                  community_rating=7.8, critic_rating=53, release_year=2004),
        make_item("mystery-reel", name="Mystery Reel"),
        make_item("dark", kind=MediaKind.SERIES, name="Dark", genres=["Sci-Fi", "Drama"],
                  actors=["Louis Hofmann"], community_rating=8.7, release_year=2017),
        make_item("sopranos", kind=MediaKind.SERIES, name="The Sopranos", genres=["Crime", "Drama"],
                  actors=["James Gandolfini"], community_rating=9.2, critic_rating=94, release_year=1999),
        make_item("expanse", kind=MediaKind.SERIES, name="The Expanse", genres=["Sci-Fi"],
                  actors=["Steven Strait"], community_rating=8.5, release_year=2015),
    ]


@pytest.fixture
def catalog(catalog_items):
    return InMemoryCatalog(catalog_items)


@pytest.fixture
def metadata(catalog_items):
    return {item.item_id: item for item in catalog_items}


@pytest.fixture
def watch_history():
    """A sci-fi fan who has seen three Nolan/Villeneuve films."""
    history = InMemoryWatchHistory()
    history.record("scifi-fan", "inception", watched(days_ago=5, favorite=True, play_count=3))
    history.record("scifi-fan", "interstellar", watched(days_ago=30))
    history.record("scifi-fan", "arrival", watched(days_ago=60))
    history.add_user("newcomer")
    return history


@pytest.fixture
def default_config():
    return RecommenderConfig()


@pytest.fixture
def fresh_config(monkeypatch):
    """
    Reload config modules so environment overrides take effect.
    """
    import localrecs.config as config
    import localrecs.recommender_config as recommender_config

    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        importlib.reload(config)
        importlib.reload(recommender_config)
        return config, recommender_config

    yield _reload

    monkeypatch.undo()
    importlib.reload(config)
    importlib.reload(recommender_config)
