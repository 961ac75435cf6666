import math

import numpy as np
import pytest

from conftest import make_item
from localrecs.embeddings import (
    TemporalFeature,
    compute_embedding,
    compute_embeddings,
    embedding_dimension,
)
from localrecs.errors import InvalidArgumentError
from localrecs.vocabulary import build_vocabulary


@pytest.fixture
def two_items():
    return [
        make_item("a", genres=["Drama"], release_year=1990),
        make_item("b", genres=["Comedy"], release_year=2000, community_rating=8.0, critic_rating=60),
    ]


def test_layout_and_values(two_items):
    vocab = build_vocabulary(two_items)

    emb = compute_embedding(two_items[0], vocab)

    ln2 = math.log(2)
    # [Drama, Comedy | 1990s, 2000s | community, critic]
    raw = np.array([ln2, 0.0, ln2, 0.0, 0.5, 0.5])
    assert emb.dimensions == 6
    assert np.allclose(emb.vector, raw / np.linalg.norm(raw))


def test_ratings_are_scaled_to_unit_range(two_items):
    vocab = build_vocabulary(two_items)

    emb = compute_embedding(two_items[1], vocab)

    ln2 = math.log(2)
    raw = np.array([0.0, ln2, 0.0, ln2, 0.8, 0.6])
    assert np.allclose(emb.vector, raw / np.linalg.norm(raw))


def test_year_strategy_uses_one_normalized_dimension(two_items):
    vocab = build_vocabulary(two_items)

    embeddings = compute_embeddings(two_items, vocab, TemporalFeature.YEAR)

    ln2 = math.log(2)
    raw_a = np.array([ln2, 0.0, 0.0, 0.5, 0.5])
    raw_b = np.array([0.0, ln2, 1.0, 0.8, 0.6])
    assert np.allclose(embeddings["a"].vector, raw_a / np.linalg.norm(raw_a))
    assert np.allclose(embeddings["b"].vector, raw_b / np.linalg.norm(raw_b))
    assert embedding_dimension(vocab, "year") == 5


def test_all_embeddings_share_dimension_and_are_unit_length(catalog_items):
    vocab = build_vocabulary(catalog_items, max_actors=5)

    embeddings = compute_embeddings(catalog_items, vocab)

    assert set(embeddings) == {item.item_id for item in catalog_items}
    expected = embedding_dimension(vocab)
    for emb in embeddings.values():
        assert emb.dimensions == expected
        assert emb.magnitude == pytest.approx(1.0)
        assert np.isfinite(emb.vector).all()


def test_features_outside_vocabulary_are_ignored(two_items):
    vocab = build_vocabulary(two_items)
    stranger = make_item("x", genres=["Western", "drama"], release_year=1992)

    emb = compute_embedding(stranger, vocab)

    assert emb.dimensions == 6
    # "drama" matches case-insensitively, "Western" has no dimension
    assert emb.vector[0] > 0
    assert emb.vector[1] == 0.0


def test_empty_vocabulary_keeps_rating_dimensions():
    vocab = build_vocabulary([])
    emb = compute_embedding(make_item("solo"), vocab)

    assert emb.dimensions == 2
    assert np.allclose(emb.vector, [1 / math.sqrt(2), 1 / math.sqrt(2)])


def test_compute_embeddings_empty_input_returns_empty_dict(two_items):
    vocab = build_vocabulary(two_items)
    assert compute_embeddings([], vocab) == {}


def test_invalid_arguments(two_items):
    vocab = build_vocabulary(two_items)
    with pytest.raises(InvalidArgumentError) as exc:
        compute_embedding(None, vocab)
    assert exc.value.param_name == "item"
    with pytest.raises(InvalidArgumentError) as exc:
        compute_embeddings(two_items, None)
    assert exc.value.param_name == "vocabulary"
    with pytest.raises(InvalidArgumentError) as exc:
        compute_embeddings(two_items, vocab, "century")
    assert exc.value.param_name == "temporal_feature"
