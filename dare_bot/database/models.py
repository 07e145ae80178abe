"""
Database Models for the Dare Bot

This module defines all SQLAlchemy models for the party game:
- Content catalog (packs and their truth/dare cards)
- Rooms with ordered player seating
- Rounds holding a snapshot of the card that was dealt
- Proofs of completed dares and the group votes on them
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, JSON, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a UUID string for SQLite compatibility."""
    return str(uuid.uuid4())


def generate_short_id(length: int = 10) -> str:
    """Generate a short id that players can type into a chat."""
    return uuid.uuid4().hex[:length]


# Difficulty levels, mildest first
LEVELS = ["Light", "Medium", "Bold", "Hard", "Extreme"]


# Enums for consistent data types
class CardType(enum.Enum):
    TRUTH = "truth"
    DARE = "dare"


class PackMode(enum.Enum):
    OFFLINE = "offline"
    ONLINE = "online"


class Gender(enum.Enum):
    MALE = "m"
    FEMALE = "f"


class TargetGender(enum.Enum):
    MALE = "m"
    FEMALE = "f"
    ANY = "any"


class RoundStatus(enum.Enum):
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ProofStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VoteValue(enum.Enum):
    YES = "yes"
    NO = "no"


@dataclass(frozen=True)
class CardSnapshot:
    """
    Copy of a card as it was dealt into a round.

    The text is the rendered text shown to the players, not the raw
    template, so later edits to the catalog never change past rounds.
    """
    card_id: Optional[str]
    text: str
    card_type: CardType
    level: str
    pack_id: str

    @classmethod
    def from_card(cls, card: "Card", text: Optional[str] = None) -> "CardSnapshot":
        return cls(
            card_id=card.id,
            text=card.text if text is None else text,
            card_type=card.type,
            level=card.level,
            pack_id=card.pack_id,
        )


class Pack(Base):
    """
    Themed collection of cards sharing a set of difficulty levels.
    """
    __tablename__ = "packs"

    id = Column(String(64), primary_key=True, doc="Pack ID (file name stem for file packs)")
    title = Column(String(255), nullable=False, doc="Display title")
    paid = Column(Boolean, default=False, doc="Whether the pack is paid content")
    price = Column(String(50), default="Free", doc="Price label shown in the catalog")
    levels = Column(JSON, default=list, doc="Ordered list of allowed levels")
    mode = Column(Enum(PackMode), default=PackMode.OFFLINE, doc="Offline (one device) or online (room) play")

    cards = relationship("Card", back_populates="pack", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Pack(id={self.id}, title={self.title}, mode={self.mode.value if self.mode else None})>"


class Card(Base):
    """
    A single truth or dare prompt.

    The text may contain the seat placeholders {player}, {left},
    {right} and {opposite}.
    """
    __tablename__ = "cards"

    id = Column(String(64), primary_key=True, default=generate_uuid, doc="Card ID")
    type = Column(Enum(CardType), nullable=False, doc="truth or dare")
    text = Column(Text, nullable=False, doc="Raw card text with placeholders")
    level = Column(String(50), nullable=False, doc="Difficulty level")
    pack_id = Column(String(64), ForeignKey("packs.id"), nullable=False, index=True, doc="Owning pack")
    requires_target = Column(Boolean, default=False, doc="Whether the card addresses another player")
    target_gender = Column(Enum(TargetGender), nullable=True, doc="Preferred gender of the addressed player")

    pack = relationship("Pack", back_populates="cards")

    def __repr__(self) -> str:
        return f"<Card(id={self.id}, type={self.type.value}, level={self.level}, pack={self.pack_id})>"


class Room(Base):
    """
    An online game session. The creator is the tie-breaking voter.
    """
    __tablename__ = "rooms"

    id = Column(String(16), primary_key=True, default=generate_short_id, doc="Room ID")
    created_by = Column(String(64), nullable=False, doc="User ID of the room creator")
    group_id = Column(String(64), nullable=True, doc="Group chat that receives proofs")
    created_at = Column(DateTime, default=func.now(), doc="Room creation timestamp")

    players = relationship("RoomPlayer", back_populates="room", cascade="all, delete-orphan",
                           order_by="RoomPlayer.seat")

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, created_by={self.created_by}, group_id={self.group_id})>"


class RoomPlayer(Base):
    """
    A seated player. Seat order drives turn rotation and {left}/{right}.
    """
    __tablename__ = "room_players"

    id = Column(String(36), primary_key=True, default=generate_uuid, doc="Player ID")
    room_id = Column(String(16), ForeignKey("rooms.id"), nullable=False, index=True, doc="Room ID")
    user_id = Column(String(64), nullable=True, doc="Telegram user ID, when joined from a chat")
    name = Column(String(255), nullable=False, doc="Display name")
    gender = Column(Enum(Gender), nullable=False, doc="m or f")
    seat = Column(Integer, nullable=False, default=0, doc="Seat number around the table")
    created_at = Column(DateTime, default=func.now(), doc="Join timestamp")

    room = relationship("Room", back_populates="players")

    def __repr__(self) -> str:
        return f"<RoomPlayer(name={self.name}, seat={self.seat})>"


class Round(Base):
    """
    One player's turn: who drew, which card (snapshot), and the outcome.
    """
    __tablename__ = "rounds"

    id = Column(String(36), primary_key=True, default=generate_uuid, doc="Round ID")
    room_id = Column(String(16), ForeignKey("rooms.id"), nullable=False, index=True, doc="Room ID")
    player_id = Column(String(36), nullable=False, index=True, doc="Acting player (kept after they leave)")

    # Card snapshot
    card_id = Column(String(64), nullable=True, doc="Source card ID")
    card_text = Column(Text, nullable=False, doc="Rendered card text")
    card_type = Column(Enum(CardType), nullable=False, doc="truth or dare")
    level = Column(String(50), nullable=False, doc="Card level")
    pack_id = Column(String(64), nullable=False, doc="Source pack ID")

    number = Column(Integer, nullable=False, default=1, doc="Turn number within the room, from 1")
    status = Column(Enum(RoundStatus), nullable=False, default=RoundStatus.ASSIGNED, doc="Round status")
    created_at = Column(DateTime, default=func.now(), doc="Deal timestamp")

    @property
    def snapshot(self) -> CardSnapshot:
        return CardSnapshot(
            card_id=self.card_id,
            text=self.card_text,
            card_type=self.card_type,
            level=self.level,
            pack_id=self.pack_id,
        )

    def __repr__(self) -> str:
        return f"<Round(id={self.id}, room={self.room_id}, status={self.status.value if self.status else None})>"


class Proof(Base):
    """
    A claim that a dare was completed, decided by a group vote.
    """
    __tablename__ = "proofs"

    id = Column(String(16), primary_key=True, default=generate_short_id, doc="Proof ID")
    room_id = Column(String(16), ForeignKey("rooms.id"), nullable=False, index=True, doc="Room ID")
    created_by = Column(String(64), nullable=False, doc="Who claimed completion")
    round_id = Column(String(36), ForeignKey("rounds.id"), nullable=True, doc="Round being verified")
    status = Column(Enum(ProofStatus), nullable=False, default=ProofStatus.PENDING, doc="Verdict")

    # Where the proof media was posted
    chat_id = Column(String(64), nullable=True, doc="Chat the proof was posted to")
    message_id = Column(String(64), nullable=True, doc="Posted message ID")

    created_at = Column(DateTime, default=func.now(), doc="Claim timestamp")

    votes = relationship("ProofVote", back_populates="proof", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Proof(id={self.id}, round={self.round_id}, status={self.status.value if self.status else None})>"


class ProofVote(Base):
    """
    One voter's current vote on a proof. Re-voting overwrites the row.
    """
    __tablename__ = "proof_votes"

    proof_id = Column(String(16), ForeignKey("proofs.id"), primary_key=True, doc="Proof ID")
    voter_id = Column(String(64), primary_key=True, doc="Voter identity")
    value = Column(Enum(VoteValue), nullable=False, doc="yes or no")
    created_at = Column(DateTime, default=func.now(), doc="Vote timestamp")

    proof = relationship("Proof", back_populates="votes")

    def __repr__(self) -> str:
        return f"<ProofVote(proof={self.proof_id}, voter={self.voter_id}, value={self.value.value})>"
