import random

import pytest

from dare_bot.database.models import CardType
from dare_bot.game.card_selector import CardSelector, choose_card
from dare_bot.game.errors import NoCardsAvailable, PackNotFound
from tests.factories import add_pack


def test_choose_card_prefers_strict_pool():
    rng = random.Random(1)
    for _ in range(50):
        assert choose_card(["a", "b"], ["x", "y", "z"], rng) in {"a", "b"}


def test_choose_card_uses_relaxed_pool_when_strict_is_empty():
    rng = random.Random(1)
    assert {choose_card([], ["x", "y"], rng) for _ in range(50)} == {"x", "y"}


def test_choose_card_returns_none_when_both_pools_are_empty():
    assert choose_card([], [], random.Random()) is None


@pytest.mark.asyncio
async def test_strict_match_never_leaves_the_requested_level(db):
    await add_pack("party", [
        ("dare", "Light", "light dare 1"),
        ("dare", "Light", "light dare 2"),
        ("dare", "Bold", "bold dare"),
        ("truth", "Light", "light truth"),
    ])
    selector = CardSelector(rng=random.Random(42))

    for _ in range(30):
        card = await selector.select_card(CardType.DARE, "party", "Light")
        assert card.type == CardType.DARE
        assert card.level == "Light"
        assert card.pack_id == "party"


@pytest.mark.asyncio
async def test_missing_level_relaxes_to_any_level_of_the_type(db):
    await add_pack("party", [
        ("dare", "Light", "light dare"),
        ("truth", "Extreme", "extreme truth"),
    ])
    selector = CardSelector(rng=random.Random(0))

    card = await selector.select_card("dare", "party", "Extreme")
    assert card.id == "party_0"
    assert card.type == CardType.DARE


@pytest.mark.asyncio
async def test_no_level_draws_from_all_cards_of_the_type(db):
    await add_pack("party", [
        ("truth", "Light", "t1"),
        ("truth", "Bold", "t2"),
        ("dare", "Light", "d1"),
    ])
    selector = CardSelector(rng=random.Random(5))

    drawn = {(await selector.select_card("truth", "party")).id for _ in range(40)}
    assert drawn == {"party_0", "party_1"}


@pytest.mark.asyncio
async def test_no_cards_of_the_type_fails(db):
    await add_pack("party", [("truth", "Light", "only a truth")])

    with pytest.raises(NoCardsAvailable) as excinfo:
        await CardSelector().select_card("dare", "party", "Light")
    assert excinfo.value.pack_id == "party"
    assert excinfo.value.card_type == "dare"


@pytest.mark.asyncio
async def test_cards_from_other_packs_are_never_drawn(db):
    await add_pack("party", [("truth", "Light", "party truth")])
    await add_pack("other", [("dare", "Light", "other dare")])

    with pytest.raises(NoCardsAvailable):
        await CardSelector().select_card("dare", "party")


@pytest.mark.asyncio
async def test_unknown_pack_fails(db):
    with pytest.raises(PackNotFound):
        await CardSelector().select_card("truth", "nope")


@pytest.mark.asyncio
async def test_seeded_generator_makes_draws_reproducible(db):
    await add_pack("party", [("dare", "Light", f"dare {i}") for i in range(10)])

    async def draw_five(seed):
        selector = CardSelector(rng=random.Random(seed))
        return [(await selector.select_card("dare", "party")).id for _ in range(5)]

    assert await draw_five(99) == await draw_five(99)
