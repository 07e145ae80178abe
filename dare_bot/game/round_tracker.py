"""
Round Tracker

Records turns. A round starts as ``assigned`` and ends as ``completed``
or ``skipped``, either through the proof vote (see proof_consensus) or
through the manual override below, which players use to correct a
result and which may move a round in any direction.
"""

from typing import List, Optional, Union

from sqlalchemy import func, select

from ..database.database import DatabaseSession
from ..database.models import CardSnapshot, Room, Round, RoundStatus
from ..utils.logging_config import get_logger, log_room_event
from .errors import InvalidRoundStatus, RoomNotFound, RoundNotFound

logger = get_logger(__name__)


def coerce_round_status(status: Union[str, RoundStatus]) -> RoundStatus:
    if isinstance(status, RoundStatus):
        return status
    try:
        return RoundStatus(str(status).lower())
    except ValueError:
        raise InvalidRoundStatus(status) from None


class RoundTracker:
    """Creates rounds and changes their status outside of voting."""

    async def create_round(self, room_id: str, player_id: str, card: CardSnapshot) -> Round:
        """
        Record a dealt card for a player.

        Args:
            room_id: Room the turn belongs to
            player_id: Acting player
            card: Snapshot of the card as shown to the players

        Returns:
            Round: The new round, status ``assigned``

        Raises:
            RoomNotFound: The room does not exist
        """
        async with DatabaseSession() as session:
            room = await session.get(Room, room_id)
            if room is None:
                raise RoomNotFound(room_id)

            result = await session.execute(
                select(func.count()).select_from(Round).where(Round.room_id == room_id)
            )
            number = result.scalar_one() + 1

            round_obj = Round(
                room_id=room_id,
                number=number,
                player_id=player_id,
                card_id=card.card_id,
                card_text=card.text,
                card_type=card.card_type,
                level=card.level,
                pack_id=card.pack_id,
                status=RoundStatus.ASSIGNED,
            )
            session.add(round_obj)
            await session.flush()

        log_room_event(room_id, "round_created", round_id=round_obj.id, player_id=player_id,
                       card_id=card.card_id)
        return round_obj

    async def set_round_status(
        self,
        round_id: str,
        room_id: str,
        status: Union[str, RoundStatus],
    ) -> Round:
        """
        Set a round's status unconditionally.

        No transition check is made: ``completed`` can go back to
        ``assigned``.

        Raises:
            InvalidRoundStatus: Unknown status value
            RoundNotFound: No such round in this room
        """
        new_status = coerce_round_status(status)

        async with DatabaseSession() as session:
            round_obj = await session.get(Round, round_id)
            if round_obj is None or round_obj.room_id != room_id:
                raise RoundNotFound(round_id)

            previous = round_obj.status
            round_obj.status = new_status

        log_room_event(room_id, "round_status_set", round_id=round_id,
                       previous=previous.value, status=new_status.value)
        return round_obj

    async def get_round(self, round_id: str) -> Optional[Round]:
        async with DatabaseSession() as session:
            return await session.get(Round, round_id)

    async def list_rounds(self, room_id: str, limit: Optional[int] = None) -> List[Round]:
        """Rounds of a room, newest first."""
        async with DatabaseSession() as session:
            query = (
                select(Round)
                .where(Round.room_id == room_id)
                .order_by(Round.number.desc())
            )
            if limit:
                query = query.limit(limit)
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_latest_round(self, room_id: str) -> Optional[Round]:
        rounds = await self.list_rounds(room_id, limit=1)
        return rounds[0] if rounds else None

    async def count_rounds(self, room_id: str) -> int:
        async with DatabaseSession() as session:
            result = await session.execute(
                select(func.count()).select_from(Round).where(Round.room_id == room_id)
            )
            return result.scalar_one()
