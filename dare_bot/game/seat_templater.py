"""
Seat Templater

Personalizes card text for the current seating. Cards may address
other players relative to the one whose turn it is:

    {left}      the previous seat
    {right}     the next seat
    {opposite}  half the table away (only at tables of four or more)
    {player}    any other player, picked at random

Each placeholder is resolved once per call, so repeated occurrences
share the same name.
"""

import random
import re
from typing import Callable, NamedTuple, Optional, Sequence

from ..utils.rng import pick_one

PLAYER = "{player}"
LEFT = "{left}"
RIGHT = "{right}"
OPPOSITE = "{opposite}"

FALLBACK_PLAYER = "the player"
FALLBACK_LEFT = "the player on the left"
FALLBACK_RIGHT = "the player on the right"
FALLBACK_OPPOSITE = "the player across"

# Smallest table where "opposite" means a distinct seat
MIN_PLAYERS_FOR_OPPOSITE = 4

_TOKEN_PATTERN = re.compile("|".join(re.escape(token) for token in (PLAYER, LEFT, RIGHT, OPPOSITE)))


class Seat(NamedTuple):
    """Minimal player shape accepted by render_text."""
    name: str


def _name_at(players: Sequence, index: Optional[int]) -> str:
    if index is None or not players:
        return ""
    return getattr(players[index], "name", "") or ""


def left_index(count: int, current: int) -> int:
    return (current - 1) % count


def right_index(count: int, current: int) -> int:
    return (current + 1) % count


def opposite_index(count: int, current: int) -> Optional[int]:
    if count < MIN_PLAYERS_FOR_OPPOSITE:
        return None
    return (current + count // 2) % count


def render_text(
    raw_text: str,
    players: Sequence,
    acting_index: int,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Replace seat placeholders in card text.

    Args:
        raw_text: Card text, possibly with placeholders
        players: Players in seating order; anything with a ``name``
        acting_index: Seat of the player whose turn it is
        rng: Random source for {player}; a fresh one if omitted

    Returns:
        str: Text with every present placeholder resolved. Missing or
        empty names are replaced by a generic phrase.
    """
    count = len(players)
    current = acting_index % count if count else 0

    def resolve_player() -> str:
        others = [
            _name_at(players, index)
            for index in range(count)
            if index != current and _name_at(players, index)
        ]
        if not others:
            return ""
        return pick_one(rng or random.Random(), others)

    resolvers = [
        (PLAYER, resolve_player, FALLBACK_PLAYER),
        (LEFT, lambda: _name_at(players, left_index(count, current) if count else None), FALLBACK_LEFT),
        (RIGHT, lambda: _name_at(players, right_index(count, current) if count else None), FALLBACK_RIGHT),
        (OPPOSITE, lambda: _name_at(players, opposite_index(count, current)), FALLBACK_OPPOSITE),
    ]

    values = {
        token: _or_fallback(resolve, fallback)
        for token, resolve, fallback in resolvers
        if token in raw_text
    }
    if not values:
        return raw_text
    # One pass, so a name that looks like a placeholder is left alone
    return _TOKEN_PATTERN.sub(lambda match: values[match.group(0)], raw_text)


def _or_fallback(resolve: Callable[[], str], fallback: str) -> str:
    name = resolve()
    return name if name else fallback
