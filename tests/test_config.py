import pytest

from dare_bot.utils.config import Settings, is_valid_mini_app_url
from dare_bot.database.database import to_async_url


def test_defaults(monkeypatch):
    for key in ("DATABASE_URL", "PACKS_DIR", "DEFAULT_PACK_ID", "MAX_PLAYERS_PER_ROOM", "ADMIN_USER_IDS"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings()

    assert settings.database_url == "sqlite:///dare_bot.db"
    assert settings.packs_dir == "packs"
    assert settings.default_pack_id == "base"
    assert settings.max_players_per_room == 20
    assert settings.admin_user_ids == []


def test_admin_ids_and_player_limit_are_parsed(monkeypatch):
    monkeypatch.setenv("ADMIN_USER_IDS", "1, 2,3")
    monkeypatch.setenv("MAX_PLAYERS_PER_ROOM", "8  # small tables")

    settings = Settings()

    assert settings.admin_user_ids == [1, 2, 3]
    assert settings.max_players_per_room == 8


def test_invalid_player_limit_is_reported(monkeypatch):
    monkeypatch.setenv("MAX_PLAYERS_PER_ROOM", "lots")

    with pytest.raises(ValueError, match="MAX_PLAYERS_PER_ROOM"):
        Settings()


@pytest.mark.parametrize("url, expected", [
    ("https://play.example.com", True),
    ("http://play.example.com", False),
    ("https://localhost:5173", False),
    ("https://127.0.0.1", False),
    ("", False),
    (None, False),
])
def test_mini_app_url_check(url, expected):
    assert is_valid_mini_app_url(url) is expected


def test_database_urls_get_async_drivers():
    assert to_async_url("sqlite:///dare_bot.db") == "sqlite+aiosqlite:///dare_bot.db"
    assert to_async_url("postgresql://u:p@db/dare") == "postgresql+asyncpg://u:p@db/dare"
    assert to_async_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"


def test_game_errors_reach_the_user_verbatim():
    from dare_bot.game.errors import NoPlayersInRoom
    from dare_bot.handlers.error_handlers import build_error_text

    assert build_error_text(NoPlayersInRoom("r1")) == f"❌ {NoPlayersInRoom.user_message}"


def test_unexpected_errors_show_details_only_in_development(monkeypatch):
    from dare_bot.handlers import error_handlers

    monkeypatch.setattr(error_handlers, "is_development", lambda: True)
    assert "`boom`" in error_handlers.build_error_text(RuntimeError("boom"))

    monkeypatch.setattr(error_handlers, "is_development", lambda: False)
    text = error_handlers.build_error_text(RuntimeError("boom"))
    assert "boom" not in text
    assert "Something went wrong" in text
