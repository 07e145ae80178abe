import pytest_asyncio

from dare_bot.database.database import init_database, close_database
from dare_bot.database.seed_data import seed_packs


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh SQLite file database for one test."""
    await init_database(f"sqlite:///{tmp_path / 'test.db'}")
    yield
    await close_database()


@pytest_asyncio.fixture
async def seeded_db(db):
    await seed_packs()
    yield
