"""
Proof Consensus Engine

Players claim a dare was done by opening a proof; the room then votes
yes or no. After every vote the tally is recounted from the stored
votes and turned into a verdict:

- more yes than no: approved, the linked round becomes ``completed``
- more no than yes: rejected, the linked round becomes ``skipped``
- a tie: decided by the tie-breaker's vote when the current vote is
  flagged as one, otherwise the previous verdict stands

Only the room creator may cast a tie-breaking vote. That check belongs
to the caller; the engine trusts the flag it is given.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple, Union

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from ..database.database import DatabaseSession
from ..database.models import Proof, ProofStatus, ProofVote, Room, Round, RoundStatus, VoteValue
from ..utils.logging_config import get_logger, log_room_event
from ..utils.locks import KeyedLocks
from .errors import InvalidVoteValue, ProofNotFound, RoomNotFound, RoundNotFound

logger = get_logger(__name__)

# Round status that follows each final verdict
ROUND_STATUS_FOR_VERDICT = {
    ProofStatus.APPROVED: RoundStatus.COMPLETED,
    ProofStatus.REJECTED: RoundStatus.SKIPPED,
}


@dataclass(frozen=True)
class VoteOutcome:
    """Result of casting a vote."""
    status: ProofStatus
    yes_count: int
    no_count: int


def coerce_vote_value(value: Union[str, VoteValue]) -> VoteValue:
    if isinstance(value, VoteValue):
        return value
    try:
        return VoteValue(str(value).lower())
    except ValueError:
        raise InvalidVoteValue(value) from None


def tally_votes(values: Iterable[VoteValue]) -> Tuple[int, int]:
    """Count (yes, no) over a set of votes."""
    yes_count = no_count = 0
    for value in values:
        if value == VoteValue.YES:
            yes_count += 1
        elif value == VoteValue.NO:
            no_count += 1
    return yes_count, no_count


def decide_verdict(
    previous: ProofStatus,
    yes_count: int,
    no_count: int,
    vote: VoteValue,
    is_tie_breaker: bool,
) -> ProofStatus:
    """
    Turn a fresh tally into a proof status.

    A tie without a tie-breaking vote keeps ``previous``, so an approved
    or rejected proof does not fall back to pending when votes change.
    """
    if yes_count != no_count:
        return ProofStatus.APPROVED if yes_count > no_count else ProofStatus.REJECTED
    if is_tie_breaker:
        return ProofStatus.APPROVED if vote == VoteValue.YES else ProofStatus.REJECTED
    return previous


class ProofConsensusEngine:
    """
    Opens proofs, records votes and keeps proof and round status in step.

    Votes on one proof are processed one at a time; votes on different
    proofs do not wait for each other.
    """

    def __init__(self):
        self._proof_locks = KeyedLocks()

    async def open_proof(self, room_id: str, created_by: str, round_id: Optional[str] = None) -> Proof:
        """
        Create a pending proof, optionally linked to a round of the room.

        Raises:
            RoomNotFound: The room does not exist
            RoundNotFound: ``round_id`` is not a round of this room
        """
        async with DatabaseSession() as session:
            room = await session.get(Room, room_id)
            if room is None:
                raise RoomNotFound(room_id)

            if round_id is not None:
                round_obj = await session.get(Round, round_id)
                if round_obj is None or round_obj.room_id != room_id:
                    raise RoundNotFound(round_id)

            proof = Proof(
                room_id=room_id,
                created_by=str(created_by),
                round_id=round_id,
                status=ProofStatus.PENDING,
            )
            session.add(proof)
            await session.flush()

        log_room_event(room_id, "proof_opened", proof_id=proof.id, round_id=round_id, created_by=created_by)
        return proof

    async def get_proof(self, proof_id: str, room_id: Optional[str] = None) -> Proof:
        """
        Load a proof.

        Raises:
            ProofNotFound: Missing, or not part of ``room_id`` when given
        """
        async with DatabaseSession() as session:
            proof = await session.get(Proof, proof_id)
        if proof is None or (room_id is not None and proof.room_id != room_id):
            raise ProofNotFound(proof_id)
        return proof

    async def get_votes(self, proof_id: str) -> Dict[str, VoteValue]:
        """Current vote of every voter on a proof."""
        async with DatabaseSession() as session:
            result = await session.execute(
                select(ProofVote.voter_id, ProofVote.value).where(ProofVote.proof_id == proof_id)
            )
            return {voter_id: value for voter_id, value in result.all()}

    async def cast_vote(
        self,
        proof_id: str,
        voter_id: str,
        value: Union[str, VoteValue],
        is_tie_breaker: bool = False,
        room_id: Optional[str] = None,
    ) -> VoteOutcome:
        """
        Record a vote and recompute the proof's verdict.

        A voter has one vote per proof; voting again replaces it. The
        vote, the recount and any status change are written in a single
        transaction.

        Args:
            proof_id: Proof being voted on
            voter_id: Voter identity
            value: yes or no
            is_tie_breaker: The caller authorized this voter to break ties
            room_id: When given, the proof must belong to this room

        Returns:
            VoteOutcome: Status after the vote and the current tally

        Raises:
            InvalidVoteValue: ``value`` is not yes or no
            ProofNotFound: No such proof (in this room)
        """
        vote = coerce_vote_value(value)
        voter_id = str(voter_id)

        async with self._proof_locks(proof_id):
            async with DatabaseSession() as session:
                proof = await session.get(Proof, proof_id)
                if proof is None or (room_id is not None and proof.room_id != room_id):
                    raise ProofNotFound(proof_id)

                await self._upsert_vote(session, proof_id, voter_id, vote)

                result = await session.execute(
                    select(ProofVote.value).where(ProofVote.proof_id == proof_id)
                )
                yes_count, no_count = tally_votes(result.scalars().all())

                previous = proof.status
                status = decide_verdict(previous, yes_count, no_count, vote, is_tie_breaker)

                if status != previous:
                    proof.status = status
                    if proof.round_id:
                        await session.execute(
                            update(Round)
                            .where(Round.id == proof.round_id, Round.room_id == proof.room_id)
                            .values(status=ROUND_STATUS_FOR_VERDICT[status])
                        )

        if status != previous:
            log_room_event(proof.room_id, "proof_verdict", proof_id=proof_id, previous=previous.value,
                           status=status.value, yes=yes_count, no=no_count)
        else:
            logger.debug(f"Vote on proof {proof_id} left status {status.value} ({yes_count}:{no_count})")

        return VoteOutcome(status=status, yes_count=yes_count, no_count=no_count)

    async def attach_external_reference(
        self,
        proof_id: str,
        chat_id: str,
        message_id: str,
        room_id: Optional[str] = None,
    ) -> Proof:
        """
        Remember where the proof media was posted.

        Calling again overwrites the reference. The verdict is untouched.

        Raises:
            ProofNotFound: No such proof (in this room)
        """
        async with DatabaseSession() as session:
            proof = await session.get(Proof, proof_id)
            if proof is None or (room_id is not None and proof.room_id != room_id):
                raise ProofNotFound(proof_id)

            proof.chat_id = str(chat_id)
            proof.message_id = str(message_id)

        log_room_event(proof.room_id, "proof_posted", proof_id=proof_id, chat_id=chat_id, message_id=message_id)
        return proof

    @staticmethod
    async def _upsert_vote(session, proof_id: str, voter_id: str, vote: VoteValue) -> None:
        dialect = session.bind.dialect.name
        if dialect == "sqlite":
            insert = sqlite_insert
        elif dialect == "postgresql":
            insert = postgresql_insert
        else:
            existing = await session.get(ProofVote, (proof_id, voter_id))
            if existing is None:
                session.add(ProofVote(proof_id=proof_id, voter_id=voter_id, value=vote))
            else:
                existing.value = vote
            await session.flush()
            return

        statement = insert(ProofVote).values(proof_id=proof_id, voter_id=voter_id, value=vote)
        statement = statement.on_conflict_do_update(
            index_elements=["proof_id", "voter_id"],
            set_={"value": statement.excluded["value"]},
        )
        await session.execute(statement)
