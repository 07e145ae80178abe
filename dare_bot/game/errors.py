"""
Game Errors

Exceptions raised by the game services. All of them are recoverable:
handlers catch them and answer the user instead of failing the update.
"""


class PartyGameError(Exception):
    """Base class for expected, user-facing game errors."""

    user_message = "Something went wrong with the game."

    def __init__(self, message: str = None):
        super().__init__(message or self.user_message)


class NoCardsAvailable(PartyGameError):
    user_message = "There are no cards of this type in the pack."

    def __init__(self, pack_id: str, card_type: str):
        self.pack_id = pack_id
        self.card_type = card_type
        super().__init__(f"No {card_type} cards in pack '{pack_id}'")


class PackNotFound(PartyGameError):
    user_message = "This pack does not exist."

    def __init__(self, pack_id: str):
        self.pack_id = pack_id
        super().__init__(f"Pack '{pack_id}' not found")


class RoomNotFound(PartyGameError):
    user_message = "Room not found. Create one with /newroom."

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Room '{room_id}' not found")


class RoundNotFound(PartyGameError):
    user_message = "No round to update. Draw a card with /truth or /dare first."

    def __init__(self, round_id: str):
        self.round_id = round_id
        super().__init__(f"Round '{round_id}' not found")


class ProofNotFound(PartyGameError):
    user_message = "Proof not found."

    def __init__(self, proof_id: str):
        self.proof_id = proof_id
        super().__init__(f"Proof '{proof_id}' not found")


class InvalidVoteValue(PartyGameError):
    user_message = "A vote must be yes or no."

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid vote value: {value!r}")


class InvalidRoundStatus(PartyGameError):
    user_message = "Unknown round status."

    def __init__(self, status):
        self.status = status
        super().__init__(f"Invalid round status: {status!r}")


class InvalidGender(PartyGameError):
    user_message = "Gender must be m or f."

    def __init__(self, gender):
        self.gender = gender
        super().__init__(f"Invalid gender: {gender!r}")


class NoPlayersInRoom(PartyGameError):
    user_message = "Nobody has joined this room yet. Use /join first."

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Room '{room_id}' has no players")


class RoomFull(PartyGameError):
    user_message = "This room is full."

    def __init__(self, room_id: str, limit: int):
        self.room_id = room_id
        self.limit = limit
        super().__init__(f"Room '{room_id}' already has {limit} players")
