"""
Database Seeding

This module provides functions to seed the database with the built-in
card packs so a fresh install can be played without any pack files.
"""

import asyncio
from typing import Any, Dict, List

from sqlalchemy import select

from .database import DatabaseSession
from .models import LEVELS, Card, CardType, Pack, PackMode, TargetGender
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


INITIAL_PACKS: List[Dict[str, Any]] = [
    {
        "id": "base",
        "title": "Base set",
        "paid": False,
        "price": "Free",
        "levels": LEVELS[:2],
    },
    {
        "id": "dating",
        "title": "Getting to know you",
        "paid": True,
        "price": "50 ⭐",
        "levels": LEVELS[:3],
    },
]

INITIAL_CARDS: List[Dict[str, Any]] = [
    # base
    {"id": "b_t1", "type": "truth", "text": "What is something you still feel embarrassed about?", "level": "Light", "pack": "base"},
    {"id": "b_t2", "type": "truth", "text": "What would you like to change about yourself?", "level": "Medium", "pack": "base"},
    {"id": "b_t3", "type": "truth", "text": "When were you last truly proud of yourself?", "level": "Light", "pack": "base"},
    {"id": "b_t4", "type": "truth", "text": "What are you most afraid of?", "level": "Medium", "pack": "base"},
    {"id": "b_t5", "type": "truth", "text": "What do you value most about the people in this room?", "level": "Light", "pack": "base"},
    {"id": "b_d1", "type": "dare", "text": "Give a compliment to the player on your left, {left}.", "level": "Light", "pack": "base", "requires_target": True, "target_gender": "any"},
    {"id": "b_d2", "type": "dare", "text": "Tell everyone 3 facts about yourself that nobody knows.", "level": "Medium", "pack": "base"},
    {"id": "b_d3", "type": "dare", "text": "Wish something kind to the player on your right, {right}.", "level": "Light", "pack": "base", "requires_target": True, "target_gender": "any"},
    {"id": "b_d4", "type": "dare", "text": "Shake hands with {opposite} and thank them.", "level": "Light", "pack": "base", "requires_target": True, "target_gender": "any"},
    {"id": "b_d5", "type": "dare", "text": "Hug {player}, if you are both comfortable with it.", "level": "Medium", "pack": "base", "requires_target": True, "target_gender": "any"},
    # dating
    {"id": "dt_t1", "type": "truth", "text": "What was your strangest date ever?", "level": "Medium", "pack": "dating"},
    {"id": "dt_t2", "type": "truth", "text": "What is an instant red flag on a first date?", "level": "Bold", "pack": "dating"},
    {"id": "dt_t3", "type": "truth", "text": "Describe your ideal flirt in two sentences.", "level": "Light", "pack": "dating"},
    {"id": "dt_t4", "type": "truth", "text": "What catches your attention in someone in the first five minutes?", "level": "Medium", "pack": "dating"},
    {"id": "dt_d1", "type": "dare", "text": "Tell {right} your best opening line.", "level": "Light", "pack": "dating", "requires_target": True, "target_gender": "any"},
    {"id": "dt_d2", "type": "dare", "text": "Give {left} a light compliment on their looks.", "level": "Medium", "pack": "dating", "requires_target": True, "target_gender": "any"},
    {"id": "dt_d3", "type": "dare", "text": "Try an opening line on {opposite}.", "level": "Light", "pack": "dating", "requires_target": True, "target_gender": "any"},
    {"id": "dt_d4", "type": "dare", "text": "Tell {player} what draws you to them.", "level": "Bold", "pack": "dating", "requires_target": True, "target_gender": "any"},
]


async def seed_packs() -> None:
    """
    Seed the database with the built-in packs and cards.

    Seeding only happens when the packs table is empty, so packs loaded
    from files are never overwritten.
    """
    try:
        async with DatabaseSession() as session:
            # Check if packs already exist
            result = await session.execute(select(Pack).limit(1))
            if result.scalar_one_or_none():
                logger.info("Packs already exist in database, skipping seeding")
                return

            logger.info("Seeding database with built-in packs...")

            for pack_data in INITIAL_PACKS:
                session.add(Pack(
                    id=pack_data["id"],
                    title=pack_data["title"],
                    paid=pack_data["paid"],
                    price=pack_data["price"],
                    levels=list(pack_data["levels"]),
                    mode=PackMode.OFFLINE,
                ))

            for card_data in INITIAL_CARDS:
                target_gender = card_data.get("target_gender")
                session.add(Card(
                    id=card_data["id"],
                    type=CardType(card_data["type"]),
                    text=card_data["text"],
                    level=card_data["level"],
                    pack_id=card_data["pack"],
                    requires_target=card_data.get("requires_target", False),
                    target_gender=TargetGender(target_gender) if target_gender else None,
                ))

        logger.info(f"Successfully seeded {len(INITIAL_PACKS)} packs with {len(INITIAL_CARDS)} cards")

    except Exception as e:
        logger.error(f"Failed to seed packs: {e}")
        raise


async def seed_all_data() -> None:
    """
    Seed all initial data.

    This function should be called after database initialization
    and before pack files are synced.
    """
    logger.info("Starting database seeding...")

    try:
        await seed_packs()
        logger.info("Database seeding completed successfully!")

    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


if __name__ == "__main__":
    # Allow running this file directly for testing
    from .database import init_database, close_database

    async def _run() -> None:
        await init_database()
        await seed_all_data()
        await close_database()

    asyncio.run(_run())
