import random

import pytest

from dare_bot.database.models import CardType, Gender, PackMode, ProofStatus, RoundStatus
from dare_bot.game.errors import (
    InvalidGender,
    NoCardsAvailable,
    NoPlayersInRoom,
    PackNotFound,
    RoomFull,
    RoomNotFound,
    RoundNotFound,
)
from dare_bot.game.party_manager import PartyManager
from tests.factories import add_pack


async def _table(manager, *names):
    room = await manager.create_room(created_by="host", group_id=-100)
    for name in names:
        await manager.add_player(room.id, name, "m")
    return room


@pytest.mark.asyncio
async def test_create_and_bind_room(db):
    manager = PartyManager()
    room = await manager.create_room(created_by=42)

    assert room.created_by == "42"
    assert room.group_id is None

    await manager.bind_group(room.id, -1001)
    assert (await manager.get_room(room.id)).group_id == "-1001"
    assert (await manager.find_room_for_group(-1001)).id == room.id

    with pytest.raises(RoomNotFound):
        await manager.bind_group("missing", -1)


@pytest.mark.asyncio
async def test_players_are_seated_in_join_order(db):
    manager = PartyManager()
    room = await _table(manager, "Ann", "Bob", "Cid")

    players = await manager.list_players(room.id)
    assert [p.name for p in players] == ["Ann", "Bob", "Cid"]
    assert [p.seat for p in players] == [0, 1, 2]


@pytest.mark.asyncio
async def test_add_player_validates_gender(db):
    manager = PartyManager()
    room = await manager.create_room(created_by="host")

    with pytest.raises(InvalidGender):
        await manager.add_player(room.id, "Ann", "x")

    player = await manager.add_player(room.id, "Ann", "F")
    assert player.gender == Gender.FEMALE


@pytest.mark.asyncio
async def test_rejoining_keeps_the_seat(db):
    manager = PartyManager()
    room = await manager.create_room(created_by="host")
    first = await manager.add_player(room.id, "Ann", "f", user_id=7)
    await manager.add_player(room.id, "Bob", "m", user_id=8)

    again = await manager.add_player(room.id, "Annie", "f", user_id=7)

    assert again.id == first.id
    assert [p.name for p in await manager.list_players(room.id)] == ["Annie", "Bob"]


@pytest.mark.asyncio
async def test_room_player_limit(db):
    manager = PartyManager()
    manager.settings.max_players_per_room = 2
    try:
        room = await _table(manager, "Ann", "Bob")
        with pytest.raises(RoomFull):
            await manager.add_player(room.id, "Cid", "m")
    finally:
        manager.settings.max_players_per_room = 20


@pytest.mark.asyncio
async def test_remove_player(db):
    manager = PartyManager()
    room = await _table(manager, "Ann", "Bob")
    bob = (await manager.list_players(room.id))[1]

    assert await manager.remove_player(room.id, bob.id) is True
    assert await manager.remove_player(room.id, bob.id) is False
    assert [p.name for p in await manager.list_players(room.id)] == ["Ann"]


@pytest.mark.asyncio
async def test_draw_turn_rotates_players_and_stores_rendered_text(db):
    await add_pack("party", [("dare", "Light", "Wave at {left}")])
    manager = PartyManager(rng=random.Random(1))
    room = await _table(manager, "Ann", "Bob", "Cid")

    turns = [await manager.draw_turn(room.id, CardType.DARE, "party") for _ in range(4)]

    assert [t.player.name for t in turns] == ["Ann", "Bob", "Cid", "Ann"]
    assert [t.text for t in turns] == ["Wave at Cid", "Wave at Ann", "Wave at Bob", "Wave at Cid"]

    rounds = await manager.round_tracker.list_rounds(room.id)
    assert [r.card_text for r in rounds] == ["Wave at Cid", "Wave at Bob", "Wave at Ann", "Wave at Cid"]
    assert all(r.status == RoundStatus.ASSIGNED for r in rounds)
    assert await manager.current_player_index(room.id) == 1
    assert len(manager._room_locks) == 0


@pytest.mark.asyncio
async def test_draw_turn_uses_the_default_pack(seeded_db):
    manager = PartyManager(rng=random.Random(3))
    room = await _table(manager, "Ann", "Bob")

    turn = await manager.draw_turn(room.id, "truth")

    assert turn.card.pack_id == manager.settings.default_pack_id == "base"
    assert turn.round.pack_id == "base"


@pytest.mark.asyncio
async def test_draw_turn_errors(db):
    await add_pack("party", [("truth", "Light", "Tell a secret")])
    manager = PartyManager()
    empty = await manager.create_room(created_by="host")
    room = await _table(manager, "Ann")

    with pytest.raises(RoomNotFound):
        await manager.draw_turn("missing", "truth", "party")
    with pytest.raises(NoPlayersInRoom):
        await manager.draw_turn(empty.id, "truth", "party")
    with pytest.raises(PackNotFound):
        await manager.draw_turn(room.id, "truth", "nope")
    with pytest.raises(NoCardsAvailable):
        await manager.draw_turn(room.id, "dare", "party")
    assert await manager.round_tracker.count_rounds(room.id) == 0


@pytest.mark.asyncio
async def test_proof_for_latest_round_drives_the_round_status(db):
    await add_pack("party", [("dare", "Light", "Do ten squats")])
    manager = PartyManager()
    room = await _table(manager, "Ann", "Bob")

    with pytest.raises(RoundNotFound):
        await manager.open_proof_for_latest_round(room.id, "Ann")

    turn = await manager.draw_turn(room.id, "dare", "party")
    proof = await manager.open_proof_for_latest_round(room.id, "Ann")
    assert proof.round_id == turn.round.id

    outcome = await manager.proof_engine.cast_vote(proof.id, "Bob", "no")
    assert outcome.status == ProofStatus.REJECTED
    assert (await manager.round_tracker.get_round(turn.round.id)).status == RoundStatus.SKIPPED


@pytest.mark.asyncio
async def test_list_packs_puts_free_packs_first(seeded_db):
    await add_pack("aaa", [], paid=True, title="Aaa")
    await add_pack("zzz_online", [], title="Zzz", mode=PackMode.ONLINE)

    packs = await PartyManager().list_packs()
    assert [p.id for p in packs] == ["base", "zzz_online", "aaa", "dating"]

    online = await PartyManager().list_packs(mode="online")
    assert [p.id for p in online] == ["zzz_online"]
