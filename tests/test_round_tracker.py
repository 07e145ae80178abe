import pytest

from dare_bot.database.models import CardType, Gender, RoundStatus
from dare_bot.game.errors import InvalidRoundStatus, RoomNotFound, RoundNotFound
from dare_bot.game.party_manager import PartyManager
from dare_bot.game.round_tracker import RoundTracker
from tests.factories import snapshot


async def _room_with_player():
    manager = PartyManager()
    room = await manager.create_room(created_by=1)
    player = await manager.add_player(room.id, "Ann", Gender.FEMALE)
    return room, player


@pytest.mark.asyncio
async def test_create_round_stores_snapshot_as_assigned(db):
    room, player = await _room_with_player()
    tracker = RoundTracker()

    round_obj = await tracker.create_round(room.id, player.id, snapshot(text="Dance with Bob"))

    stored = await tracker.get_round(round_obj.id)
    assert stored.status == RoundStatus.ASSIGNED
    assert stored.snapshot == snapshot(text="Dance with Bob")
    assert stored.player_id == player.id
    assert stored.number == 1


@pytest.mark.asyncio
async def test_create_round_in_unknown_room_fails(db):
    with pytest.raises(RoomNotFound):
        await RoundTracker().create_round("missing", "player", snapshot())


@pytest.mark.asyncio
async def test_rounds_are_listed_newest_first(db):
    room, player = await _room_with_player()
    tracker = RoundTracker()

    for text in ("first", "second", "third"):
        await tracker.create_round(room.id, player.id, snapshot(text=text))

    rounds = await tracker.list_rounds(room.id)
    assert [r.card_text for r in rounds] == ["third", "second", "first"]
    assert [r.number for r in rounds] == [3, 2, 1]
    assert (await tracker.get_latest_round(room.id)).card_text == "third"
    assert await tracker.count_rounds(room.id) == 3


@pytest.mark.asyncio
async def test_manual_override_can_move_a_round_backwards(db):
    room, player = await _room_with_player()
    tracker = RoundTracker()
    round_obj = await tracker.create_round(room.id, player.id, snapshot())

    await tracker.set_round_status(round_obj.id, room.id, RoundStatus.COMPLETED)
    await tracker.set_round_status(round_obj.id, room.id, "assigned")

    assert (await tracker.get_round(round_obj.id)).status == RoundStatus.ASSIGNED


@pytest.mark.asyncio
async def test_override_does_not_touch_the_snapshot(db):
    room, player = await _room_with_player()
    tracker = RoundTracker()
    round_obj = await tracker.create_round(room.id, player.id, snapshot(text="Sing", card_type=CardType.DARE))

    await tracker.set_round_status(round_obj.id, room.id, "skipped")

    stored = await tracker.get_round(round_obj.id)
    assert stored.snapshot == snapshot(text="Sing", card_type=CardType.DARE)


@pytest.mark.asyncio
async def test_override_requires_the_round_to_belong_to_the_room(db):
    room, player = await _room_with_player()
    other_room, _ = await _room_with_player()
    tracker = RoundTracker()
    round_obj = await tracker.create_round(room.id, player.id, snapshot())

    with pytest.raises(RoundNotFound):
        await tracker.set_round_status(round_obj.id, other_room.id, "completed")
    with pytest.raises(RoundNotFound):
        await tracker.set_round_status("missing", room.id, "completed")


@pytest.mark.asyncio
async def test_override_rejects_unknown_status(db):
    room, player = await _room_with_player()
    tracker = RoundTracker()
    round_obj = await tracker.create_round(room.id, player.id, snapshot())

    with pytest.raises(InvalidRoundStatus):
        await tracker.set_round_status(round_obj.id, room.id, "finished")
