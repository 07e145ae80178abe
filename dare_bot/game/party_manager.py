"""
Party Manager

This module ties the game services together for the bot handlers:
rooms and seating, turn rotation, dealing a turn and opening proofs.

A turn runs through the whole pipeline: the card selector draws a card,
the seat templater personalizes it for the acting player and the round
tracker records the rendered snapshot.
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy import func, select

from ..database.database import DatabaseSession
from ..database.models import Card, CardSnapshot, CardType, Gender, Pack, PackMode, Proof, Room, RoomPlayer, Round
from ..database.pack_files import sync_packs_from_files
from ..utils.config import get_settings
from ..utils.logging_config import get_logger, log_room_event
from ..utils.locks import KeyedLocks
from ..utils.rng import build_rng
from .card_selector import CardSelector
from .errors import InvalidGender, NoPlayersInRoom, PackNotFound, RoomFull, RoomNotFound, RoundNotFound
from .proof_consensus import ProofConsensusEngine
from .round_tracker import RoundTracker
from .seat_templater import render_text

# Logger setup
logger = get_logger(__name__)


@dataclass(frozen=True)
class Turn:
    """A dealt turn: who acts, what they drew and the recorded round."""
    round: Round
    player: RoomPlayer
    card: Card
    text: str
    acting_index: int


def coerce_gender(gender: Union[str, Gender]) -> Gender:
    if isinstance(gender, Gender):
        return gender
    try:
        return Gender(str(gender).strip().lower())
    except ValueError:
        raise InvalidGender(gender) from None


class PartyManager:
    """
    Central manager for party rooms.

    This class handles:
    - Creating rooms and binding them to group chats
    - Seating players
    - Dealing turns in seat order
    - Opening proofs for dealt rounds
    - Listing and reloading the pack catalog
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the manager and the services it drives."""
        self.settings = get_settings()
        self.rng = rng or build_rng()
        self.card_selector = CardSelector(rng=self.rng)
        self.round_tracker = RoundTracker()
        self.proof_engine = ProofConsensusEngine()
        # Two draws in one room must not get the same turn number
        self._room_locks = KeyedLocks()

    # Rooms

    async def create_room(self, created_by: Union[int, str], group_id: Optional[Union[int, str]] = None) -> Room:
        """
        Create a new room.

        Args:
            created_by: User ID of the creator; this user breaks vote ties
            group_id: Group chat that receives proofs, if already known

        Returns:
            Room: The new room
        """
        async with DatabaseSession() as session:
            room = Room(
                created_by=str(created_by),
                group_id=str(group_id) if group_id is not None else None,
            )
            session.add(room)
            await session.flush()

        log_room_event(room.id, "room_created", created_by=created_by, group_id=group_id)
        return room

    async def get_room(self, room_id: str) -> Room:
        """
        Load a room.

        Raises:
            RoomNotFound: No room with this ID
        """
        async with DatabaseSession() as session:
            room = await session.get(Room, room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    async def find_room_for_group(self, group_id: Union[int, str]) -> Optional[Room]:
        """Most recently created room bound to a group chat."""
        async with DatabaseSession() as session:
            result = await session.execute(
                select(Room)
                .where(Room.group_id == str(group_id))
                .order_by(Room.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def bind_group(self, room_id: str, group_id: Union[int, str]) -> Room:
        """
        Send proofs of this room to a group chat from now on.

        Raises:
            RoomNotFound: No room with this ID
        """
        async with DatabaseSession() as session:
            room = await session.get(Room, room_id)
            if room is None:
                raise RoomNotFound(room_id)
            room.group_id = str(group_id)

        log_room_event(room_id, "group_bound", group_id=group_id)
        return room

    # Players

    async def add_player(
        self,
        room_id: str,
        name: str,
        gender: Union[str, Gender],
        user_id: Optional[Union[int, str]] = None,
    ) -> RoomPlayer:
        """
        Seat a player at the end of the table.

        A chat user who is already seated keeps their seat; their name
        and gender are updated.

        Args:
            room_id: Room to join
            name: Display name used in card texts
            gender: m or f
            user_id: Telegram user ID, if the player joined from a chat

        Returns:
            RoomPlayer: The seated player

        Raises:
            InvalidGender: Gender is not m or f
            RoomNotFound: No room with this ID
            RoomFull: The room reached MAX_PLAYERS_PER_ROOM
        """
        gender = coerce_gender(gender)

        async with DatabaseSession() as session:
            room = await session.get(Room, room_id)
            if room is None:
                raise RoomNotFound(room_id)

            if user_id is not None:
                result = await session.execute(
                    select(RoomPlayer).where(
                        RoomPlayer.room_id == room_id,
                        RoomPlayer.user_id == str(user_id),
                    )
                )
                existing = result.scalar_one_or_none()
                if existing is not None:
                    existing.name = name
                    existing.gender = gender
                    return existing

            result = await session.execute(
                select(func.count(), func.max(RoomPlayer.seat)).where(RoomPlayer.room_id == room_id)
            )
            count, last_seat = result.one()
            if count >= self.settings.max_players_per_room:
                raise RoomFull(room_id, self.settings.max_players_per_room)

            player = RoomPlayer(
                room_id=room_id,
                user_id=str(user_id) if user_id is not None else None,
                name=name,
                gender=gender,
                seat=0 if last_seat is None else last_seat + 1,
            )
            session.add(player)
            await session.flush()

        log_room_event(room_id, "player_joined", player_id=player.id, seat=player.seat)
        return player

    async def remove_player(self, room_id: str, player_id: str) -> bool:
        """
        Remove a player from the table. Their past rounds are kept.

        Returns:
            bool: True if the player was seated in this room
        """
        async with DatabaseSession() as session:
            player = await session.get(RoomPlayer, player_id)
            if player is None or player.room_id != room_id:
                return False
            await session.delete(player)

        log_room_event(room_id, "player_left", player_id=player_id)
        return True

    async def find_player_by_user(self, room_id: str, user_id: Union[int, str]) -> Optional[RoomPlayer]:
        async with DatabaseSession() as session:
            result = await session.execute(
                select(RoomPlayer).where(
                    RoomPlayer.room_id == room_id,
                    RoomPlayer.user_id == str(user_id),
                )
            )
            return result.scalar_one_or_none()

    async def list_players(self, room_id: str) -> List[RoomPlayer]:
        """Players of a room in seating order."""
        async with DatabaseSession() as session:
            result = await session.execute(
                select(RoomPlayer)
                .where(RoomPlayer.room_id == room_id)
                .order_by(RoomPlayer.seat, RoomPlayer.created_at)
            )
            return list(result.scalars().all())

    async def current_player_index(self, room_id: str) -> int:
        """
        Seat index of the player whose turn it is.

        Turns go around the table in seat order, one per dealt round.

        Raises:
            NoPlayersInRoom: Nobody is seated
        """
        players = await self.list_players(room_id)
        if not players:
            raise NoPlayersInRoom(room_id)
        return await self.round_tracker.count_rounds(room_id) % len(players)

    # Turns

    async def draw_turn(
        self,
        room_id: str,
        card_type: Union[str, CardType],
        pack_id: Optional[str] = None,
        level: Optional[str] = None,
    ) -> Turn:
        """
        Deal the next turn of a room.

        Args:
            room_id: Room to play in
            card_type: truth or dare
            pack_id: Pack to draw from (DEFAULT_PACK_ID when omitted)
            level: Preferred level

        Returns:
            Turn: The acting player, the card and the recorded round

        Raises:
            RoomNotFound: No room with this ID
            NoPlayersInRoom: Nobody is seated
            PackNotFound: Unknown pack
            NoCardsAvailable: The pack has no cards of this type
        """
        pack_id = pack_id or self.settings.default_pack_id
        await self.get_room(room_id)

        async with self._room_locks(room_id):
            players = await self.list_players(room_id)
            if not players:
                raise NoPlayersInRoom(room_id)

            acting_index = await self.round_tracker.count_rounds(room_id) % len(players)
            player = players[acting_index]

            card = await self.card_selector.select_card(card_type, pack_id, level)
            text = render_text(card.text, players, acting_index, rng=self.rng)
            round_obj = await self.round_tracker.create_round(
                room_id, player.id, CardSnapshot.from_card(card, text=text)
            )

        logger.info(f"Turn dealt - room_id: {room_id}, player: {player.name}, card: {card.id}")
        return Turn(round=round_obj, player=player, card=card, text=text, acting_index=acting_index)

    async def open_proof_for_latest_round(self, room_id: str, created_by: Union[int, str]) -> Proof:
        """
        Open a proof for the most recent round of a room.

        Raises:
            RoomNotFound: No room with this ID
            RoundNotFound: No round was dealt yet
        """
        await self.get_room(room_id)
        latest = await self.round_tracker.get_latest_round(room_id)
        if latest is None:
            raise RoundNotFound(f"latest in {room_id}")
        return await self.proof_engine.open_proof(room_id, str(created_by), round_id=latest.id)

    # Catalog

    async def list_packs(self, mode: Optional[Union[str, PackMode]] = None) -> List[Pack]:
        """Packs in the catalog, free ones first, then by title."""
        async with DatabaseSession() as session:
            query = select(Pack).order_by(Pack.paid, Pack.title)
            if mode is not None:
                query = query.where(Pack.mode == PackMode(mode))
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_pack(self, pack_id: str) -> Pack:
        async with DatabaseSession() as session:
            pack = await session.get(Pack, pack_id)
        if pack is None:
            raise PackNotFound(pack_id)
        return pack

    async def reload_packs(self) -> List[str]:
        """Re-read the pack files from PACKS_DIR."""
        return await sync_packs_from_files(self.settings.packs_dir)
