import re

import pytest

from dare_bot.database.models import CardType
from dare_bot.database.seed_data import INITIAL_CARDS, INITIAL_PACKS, seed_packs
from dare_bot.game.card_selector import CardSelector
from dare_bot.game.party_manager import PartyManager

PLACEHOLDER = re.compile(r"\{(\w+)\}")


def test_seed_cards_only_use_known_placeholders_and_levels():
    levels = {pack["id"]: set(pack["levels"]) for pack in INITIAL_PACKS}
    for card in INITIAL_CARDS:
        assert set(PLACEHOLDER.findall(card["text"])) <= {"player", "left", "right", "opposite"}
        assert card["level"] in levels[card["pack"]]


@pytest.mark.asyncio
async def test_seeding_is_skipped_when_packs_exist(db):
    await seed_packs()
    await seed_packs()

    packs = await PartyManager().list_packs()
    assert [p.id for p in packs] == ["base", "dating"]


@pytest.mark.asyncio
async def test_every_seed_pack_has_truths_and_dares(seeded_db):
    selector = CardSelector()
    for pack in INITIAL_PACKS:
        for card_type in CardType:
            card = await selector.select_card(card_type, pack["id"])
            assert card.pack_id == pack["id"]
