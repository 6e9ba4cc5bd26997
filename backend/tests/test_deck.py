import random
from collections import Counter
from itertools import permutations

import pytest

from flippin.services.games.deck import ANIMALS, build_deck, shuffle


def test_deck_has_ten_pairs_each_twice():
    for seed in range(50):
        cards = build_deck(rng=random.Random(seed))
        assert len(cards) == 20
        counts = Counter(card.pair_id for card in cards)
        assert sorted(counts) == list(range(10))
        assert set(counts.values()) == {2}


def test_pair_ids_share_label():
    cards = build_deck(rng=random.Random(3))
    labels = {}
    for card in cards:
        assert labels.setdefault(card.pair_id, card.label) == card.label
    assert set(labels.values()) == {label for label, _ in ANIMALS}


def test_every_card_starts_face_down():
    assert all(not c.revealed and not c.matched for c in build_deck())


def test_unshuffled_deck_is_ordered():
    cards = build_deck(shuffled=False)
    assert [c.pair_id for c in cards] == [i // 2 for i in range(20)]
    assert cards[0].label == cards[1].label == 'lion'


def test_seeded_shuffle_is_reproducible():
    first = [c.pair_id for c in build_deck(rng=random.Random(42))]
    second = [c.pair_id for c in build_deck(rng=random.Random(42))]
    assert first == second


def test_shuffle_returns_a_permutation():
    items = list(range(20))
    result = shuffle(items, random.Random(9))
    assert result is items
    assert sorted(result) == list(range(20))


def test_shuffle_is_uniform_over_small_permutations():
    rng = random.Random(1234)
    trials = 6000
    counts = Counter(tuple(shuffle([0, 1, 2], rng)) for _ in range(trials))
    assert set(counts) == set(permutations([0, 1, 2]))
    # expected 1000 each, standard deviation about 29
    for count in counts.values():
        assert 850 < count < 1150


@pytest.mark.parametrize('pairs', [0, 11, -1])
def test_build_deck_rejects_bad_pair_count(pairs):
    with pytest.raises(ValueError):
        build_deck(pairs)


def test_smaller_deck():
    cards = build_deck(4, rng=random.Random(0))
    assert len(cards) == 8
    assert set(Counter(c.pair_id for c in cards).values()) == {2}
