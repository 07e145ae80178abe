"""
Truth or Dare Party Bot Package

This package contains the bot application including:
- Command and proof handlers for Telegram chats
- Game services: card selection, seat templating, rounds and proof votes
- Database models, seed data and pack file loading
- Configuration and logging helpers
"""

__version__ = "1.0.0"

# Package imports for easier access
from .main import main
from .utils.config import get_settings

__all__ = ["main", "get_settings"]
