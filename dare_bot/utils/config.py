"""
Configuration Management

This module handles all application configuration using environment variables.
Values are read once per process and cached by get_settings().
"""

import os
from functools import lru_cache
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    """

    def __init__(self):
        # Telegram Bot Configuration
        self.telegram_bot_token: str = os.getenv('TELEGRAM_BOT_TOKEN', '')
        self.mini_app_url: Optional[str] = os.getenv('MINI_APP_URL')

        # Database Configuration
        self.database_url: str = os.getenv('DATABASE_URL', 'sqlite:///dare_bot.db')

        # Application Settings
        self.debug: bool = os.getenv('DEBUG', 'false').lower() == 'true'
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')
        self.environment: str = os.getenv('ENVIRONMENT', 'development')

        # Content Configuration
        self.packs_dir: str = os.getenv('PACKS_DIR', 'packs')
        self.default_pack_id: str = os.getenv('DEFAULT_PACK_ID', 'base')

        try:
            # Clean the value - remove any comments or extra characters
            max_players_str = os.getenv('MAX_PLAYERS_PER_ROOM', '20').split('#')[0].strip()
            self.max_players_per_room: int = int(max_players_str)
        except ValueError as e:
            raise ValueError(f"Invalid MAX_PLAYERS_PER_ROOM value: '{os.getenv('MAX_PLAYERS_PER_ROOM')}'. Must be a number without comments.") from e

        # Security Settings
        admin_ids_str = os.getenv('ADMIN_USER_IDS', '')
        self.admin_user_ids: List[int] = []
        if admin_ids_str:
            try:
                self.admin_user_ids = [int(x.strip()) for x in admin_ids_str.split(',') if x.strip()]
            except ValueError:
                self.admin_user_ids = []


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings with caching.

    Uses LRU cache to avoid reloading settings on every call.
    Cache is cleared when the process restarts.

    Returns:
        Settings: Application configuration settings
    """
    return Settings()


def is_admin_user(user_id: int) -> bool:
    """
    Check if a user ID is in the admin list.

    Args:
        user_id: Telegram user ID to check

    Returns:
        bool: True if user is admin, False otherwise
    """
    settings = get_settings()
    return user_id in settings.admin_user_ids


def is_development() -> bool:
    """Check if running in development environment."""
    settings = get_settings()
    return settings.environment.lower() in ["development", "dev", "local"]


def is_valid_mini_app_url(url: Optional[str]) -> bool:
    """
    Check whether a URL can be attached to an inline button.

    Telegram rejects plain http links and local addresses.
    """
    if not url:
        return False
    return url.startswith("https://") and "localhost" not in url and "127.0.0.1" not in url
