import random
from typing import List, Sequence, Tuple

from flippin.models import Card

# (label, emoji) catalog the deck is drawn from
ANIMALS: Tuple[Tuple[str, str], ...] = (
    ('lion', '\U0001F981'),
    ('elephant', '\U0001F418'),
    ('fox', '\U0001F98A'),
    ('frog', '\U0001F438'),
    ('cat', '\U0001F431'),
    ('dog', '\U0001F436'),
    ('panda', '\U0001F43C'),
    ('rabbit', '\U0001F430'),
    ('tiger', '\U0001F42F'),
    ('bear', '\U0001F43B'),
)

DEFAULT_PAIRS = 10


def shuffle(items: list, rng=None) -> list:
    """Fisher-Yates shuffle in place; returns ``items`` for chaining."""
    rng = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def build_deck(pairs: int = DEFAULT_PAIRS, catalog: Sequence[Tuple[str, str]] = ANIMALS,
               rng=None, shuffled: bool = True) -> List[Card]:
    """Build ``pairs`` pairs from the catalog, two cards per pair id."""
    if not 1 <= pairs <= len(catalog):
        raise ValueError(f"pairs must be between 1 and {len(catalog)}, got {pairs}")
    cards = []
    for pair_id, (label, emoji) in enumerate(catalog[:pairs]):
        cards.append(Card(pair_id=pair_id, label=label, emoji=emoji))
        cards.append(Card(pair_id=pair_id, label=label, emoji=emoji))
    if shuffled:
        shuffle(cards, rng)
    return cards
