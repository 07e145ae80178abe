from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from dare_bot.database.models import ProofStatus
from dare_bot.handlers.command_handlers import party_manager
from dare_bot.handlers.proof_handlers import (
    build_vote_keyboard,
    extract_proof_id,
    handle_proof_code_text,
    handle_proof_media,
    handle_vote_callback,
    parse_vote_callback,
)
from tests.factories import add_pack


class DummyBot:
    """Collects outbound calls instead of hitting Telegram."""

    def __init__(self):
        self.copied = []
        self.sent = []

    async def copy_message(self, chat_id, from_chat_id, message_id, **kwargs):
        self.copied.append((chat_id, from_chat_id, message_id))
        return SimpleNamespace(message_id=900 + len(self.copied))

    async def send_message(self, chat_id, text, **kwargs):
        self.sent.append((chat_id, text, kwargs.get("reply_markup")))


def _user(user_id, name="Ann"):
    return SimpleNamespace(id=user_id, first_name=name, username=name.lower())


def _message_update(user, chat_type="private", caption=None, text=None):
    message = SimpleNamespace(
        caption=caption,
        text=text,
        chat_id=user.id,
        message_id=77,
        reply_text=AsyncMock(),
    )
    chat = SimpleNamespace(id=user.id, type=chat_type)
    return SimpleNamespace(message=message, effective_user=user, effective_chat=chat)


def _vote_update(user_id, data):
    query = SimpleNamespace(data=data, from_user=_user(user_id), answer=AsyncMock())
    return SimpleNamespace(callback_query=query)


async def _open_proof(creator_id=42, group_id=-100, with_pack=True):
    if with_pack:
        await add_pack("party", [("dare", "Light", "Sing for {right}")])
    room = await party_manager.create_room(created_by=creator_id, group_id=group_id)
    await party_manager.add_player(room.id, "Ann", "f", user_id=1)
    await party_manager.add_player(room.id, "Bob", "m", user_id=2)
    turn = await party_manager.draw_turn(room.id, "dare", "party")
    proof = await party_manager.open_proof_for_latest_round(room.id, 1)
    return room, turn, proof


@pytest.mark.parametrize("text, expected", [
    ("#proof abc123", "abc123"),
    ("look! #proof <abc123> done", "abc123"),
    ("proof_id: XY-z_99", "XY-z_99"),
    ("PROOF-ID abcdef", "abcdef"),
    ("#proof abc", None),
    ("no code here", None),
    (None, None),
])
def test_extract_proof_id(text, expected):
    assert extract_proof_id(text) == expected


def test_parse_vote_callback():
    assert parse_vote_callback("vote:abc123:yes") == ("abc123", "yes")
    assert parse_vote_callback("vote::yes") is None
    assert parse_vote_callback("join_abc") is None


def test_vote_keyboard_adds_mini_app_only_for_public_https():
    rows = build_vote_keyboard("abc123", "https://play.example.com").inline_keyboard
    assert [b.callback_data for b in rows[0]] == ["vote:abc123:yes", "vote:abc123:no"]
    assert rows[1][0].url == "https://play.example.com"

    assert len(build_vote_keyboard("abc123", "https://localhost:5173").inline_keyboard) == 1
    assert len(build_vote_keyboard("abc123", "http://play.example.com").inline_keyboard) == 1
    assert len(build_vote_keyboard("abc123", None).inline_keyboard) == 1


@pytest.mark.asyncio
async def test_media_with_code_is_relayed_to_the_room_group(db):
    room, _, proof = await _open_proof()
    bot = DummyBot()
    update = _message_update(_user(1), caption=f"done! #proof {proof.id}")

    await handle_proof_media(update, SimpleNamespace(bot=bot, chat_data={}))

    assert bot.copied == [("-100", 1, 77)]
    group_id, _, markup = bot.sent[0]
    assert group_id == "-100"
    assert markup.inline_keyboard[0][0].callback_data == f"vote:{proof.id}:yes"

    stored = await party_manager.proof_engine.get_proof(proof.id)
    assert (stored.chat_id, stored.message_id) == ("-100", "901")
    assert stored.status == ProofStatus.PENDING
    update.message.reply_text.assert_awaited_once()


@pytest.mark.asyncio
async def test_media_for_room_without_group_is_not_relayed(db):
    _, _, proof = await _open_proof(group_id=None)
    bot = DummyBot()
    update = _message_update(_user(1), caption=f"#proof {proof.id}")

    await handle_proof_media(update, SimpleNamespace(bot=bot, chat_data={}))

    assert bot.copied == []
    assert "not linked" in update.message.reply_text.await_args.args[0]


@pytest.mark.asyncio
async def test_media_without_code_is_ignored_in_groups(db):
    bot = DummyBot()
    group_update = _message_update(_user(1), chat_type="group", caption="holiday pics")
    private_update = _message_update(_user(1), caption="holiday pics")

    await handle_proof_media(group_update, SimpleNamespace(bot=bot, chat_data={}))
    await handle_proof_media(private_update, SimpleNamespace(bot=bot, chat_data={}))

    group_update.message.reply_text.assert_not_awaited()
    private_update.message.reply_text.assert_awaited_once()
    assert bot.copied == []


@pytest.mark.asyncio
async def test_text_with_code_asks_for_media():
    update = _message_update(_user(1), text="#proof abc123")

    assert await handle_proof_code_text(update, SimpleNamespace()) is True
    assert "abc123" in update.message.reply_text.await_args.args[0]

    plain = _message_update(_user(1), text="hello")
    assert await handle_proof_code_text(plain, SimpleNamespace()) is False
    plain.message.reply_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_vote_callback_counts_votes(db):
    _, turn, proof = await _open_proof()

    update = _vote_update(1, f"vote:{proof.id}:yes")
    await handle_vote_callback(update, SimpleNamespace())

    assert "1:0" in update.callback_query.answer.await_args.args[0]
    stored = await party_manager.proof_engine.get_proof(proof.id)
    assert stored.status == ProofStatus.APPROVED


@pytest.mark.asyncio
async def test_only_the_room_creator_breaks_ties(db):
    _, _, plain_proof = await _open_proof(creator_id=42)
    await handle_vote_callback(_vote_update(1, f"vote:{plain_proof.id}:yes"), SimpleNamespace())
    await handle_vote_callback(_vote_update(2, f"vote:{plain_proof.id}:no"), SimpleNamespace())

    # 1:1 without the creator keeps the verdict
    assert (await party_manager.proof_engine.get_proof(plain_proof.id)).status == ProofStatus.APPROVED

    _, _, creator_proof = await _open_proof(creator_id=42, group_id=-200, with_pack=False)
    await handle_vote_callback(_vote_update(1, f"vote:{creator_proof.id}:yes"), SimpleNamespace())
    await handle_vote_callback(_vote_update(42, f"vote:{creator_proof.id}:no"), SimpleNamespace())

    # 1:1 with the creator's no decides it
    assert (await party_manager.proof_engine.get_proof(creator_proof.id)).status == ProofStatus.REJECTED


@pytest.mark.asyncio
async def test_vote_on_unknown_proof_alerts(db):
    update = _vote_update(1, "vote:missing1:yes")

    await handle_vote_callback(update, SimpleNamespace())

    assert update.callback_query.answer.await_args.kwargs == {"show_alert": True}
