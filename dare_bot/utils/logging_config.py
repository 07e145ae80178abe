"""
Logging Configuration

This module sets up standard library logging for the application.
"""

import logging
import sys

from .config import get_settings


def setup_logging() -> None:
    """
    Set up basic logging configuration.

    This function configures standard logging for the application.
    """
    settings = get_settings()

    # Configure standard logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Set specific logger levels
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
    if not settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    # Create application logger
    logger = logging.getLogger(__name__)
    logger.info("Logging configuration initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


def log_user_action(user_id: int, action: str, **kwargs) -> None:
    """
    Log user actions for audit and analytics.

    Args:
        user_id: Telegram user ID
        action: Action description
        **kwargs: Additional context data
    """
    logger = get_logger("user_actions")
    extra_info = " ".join([f"{k}={v}" for k, v in kwargs.items()])
    logger.debug(f"User action: user_id={user_id} action={action} {extra_info}")


def log_room_event(room_id: str, event_type: str, **kwargs) -> None:
    """
    Log room-related events (turns, proofs, verdicts) for debugging.

    Args:
        room_id: Room identifier
        event_type: Type of room event
        **kwargs: Additional event data
    """
    logger = get_logger("room_events")
    extra_info = " ".join([f"{k}={v}" for k, v in kwargs.items()])
    logger.info(f"Room event: room_id={room_id} event_type={event_type} {extra_info}")
