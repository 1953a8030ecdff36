import random
from collections import Counter

import pytest

from pairflip.classes import CardFace
from pairflip.deck import generate_pairs
from pairflip.settings import BLUE, GREEN, RED

from conftest import NoShuffle


@pytest.mark.parametrize("total", [2, 4, 6, 12, 30, 36])
def test_every_face_appears_exactly_twice(total):
    faces = generate_pairs(total, rng=random.Random(total))
    assert len(faces) == total
    assert set(Counter(faces).values()) == {2}
    assert len(set(faces)) == total // 2


def test_shuffle_only_permutes():
    first = generate_pairs(20, rng=random.Random(1))
    second = generate_pairs(20, rng=random.Random(2))
    unshuffled = generate_pairs(20, rng=NoShuffle())
    assert Counter(first) == Counter(second) == Counter(unshuffled)


def test_deal_order_without_shuffle():
    faces = generate_pairs(6, symbols=["A", "B", "C"], colors=[RED, BLUE, GREEN], rng=NoShuffle())
    assert faces == [
        CardFace("A", RED), CardFace("A", RED),
        CardFace("B", BLUE), CardFace("B", BLUE),
        CardFace("C", GREEN), CardFace("C", GREEN),
    ]


def test_palette_wraps_when_pairs_exceed_it():
    faces = generate_pairs(8, symbols=["X", "Y"], colors=[RED], rng=NoShuffle())
    assert Counter(faces) == {CardFace("X", RED): 4, CardFace("Y", RED): 4}


def test_fisher_yates_draws_from_the_unshuffled_tail():
    calls = []

    class Recording:
        def randint(self, a, b):
            calls.append((a, b))
            return b

    generate_pairs(4, rng=Recording())
    assert calls == [(0, 3), (1, 3), (2, 3), (3, 3)]


@pytest.mark.parametrize("total", [0, -2, 3, 7])
def test_rejects_odd_or_non_positive_counts(total):
    with pytest.raises(ValueError):
        generate_pairs(total)
