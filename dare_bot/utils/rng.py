"""Injectable randomness for card draws and random player picks."""

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def build_rng(*, seed: Optional[int] = None) -> random.Random:
    """Return a random generator; deterministic when a seed is given."""
    return random.Random(seed)


def pick_one(rng: random.Random, items: Sequence[T]) -> T:
    """Pick one item uniformly at random. The sequence must not be empty."""
    return items[rng.randrange(len(items))]
