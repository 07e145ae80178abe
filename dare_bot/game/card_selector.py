"""
Card Selector

Draws one card from a pack. If the requested level has no cards of the
requested type, the level is dropped and any card of that type in the
pack may be drawn instead. Draws are independent: the same card can come
up again on a later turn.
"""

import random
from typing import Optional, Sequence, TypeVar, Union

from sqlalchemy import select

from ..database.database import DatabaseSession
from ..database.models import Card, CardType, Pack
from ..utils.logging_config import get_logger
from ..utils.rng import pick_one
from .errors import NoCardsAvailable, PackNotFound

logger = get_logger(__name__)

T = TypeVar("T")


def coerce_card_type(card_type: Union[str, CardType]) -> CardType:
    if isinstance(card_type, CardType):
        return card_type
    return CardType(str(card_type).lower())


def choose_card(strict: Sequence[T], relaxed: Sequence[T], rng: random.Random) -> Optional[T]:
    """
    Pick from the strict pool, or from the relaxed pool when it is empty.

    Returns None when both pools are empty.
    """
    if strict:
        return pick_one(rng, strict)
    if relaxed:
        return pick_one(rng, relaxed)
    return None


class CardSelector:
    """
    Picks cards from the catalog stored in the database.

    The random source is injectable so draws are reproducible in tests.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    async def select_card(
        self,
        card_type: Union[str, CardType],
        pack_id: str,
        level: Optional[str] = None,
    ) -> Card:
        """
        Draw a random card of ``card_type`` from ``pack_id``.

        Args:
            card_type: truth or dare
            pack_id: Pack to draw from
            level: Preferred level; ignored if the pack has no such cards

        Returns:
            Card: The drawn card

        Raises:
            PackNotFound: The pack does not exist
            NoCardsAvailable: The pack has no cards of this type at all
        """
        card_type = coerce_card_type(card_type)

        async with DatabaseSession() as session:
            pack = await session.get(Pack, pack_id)
            if pack is None:
                raise PackNotFound(pack_id)

            base_query = (
                select(Card)
                .where(Card.pack_id == pack_id, Card.type == card_type)
                .order_by(Card.id)
            )

            strict_query = base_query.where(Card.level == level) if level else base_query
            result = await session.execute(strict_query)
            strict = list(result.scalars().all())

            relaxed = []
            if level and not strict:
                result = await session.execute(base_query)
                relaxed = list(result.scalars().all())

        card = choose_card(strict, relaxed, self.rng)
        if card is None:
            raise NoCardsAvailable(pack_id, card_type.value)

        if level and not strict:
            logger.debug(f"No {card_type.value} cards at level {level} in pack {pack_id}, drew level {card.level}")
        return card
