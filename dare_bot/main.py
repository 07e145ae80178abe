"""
Dare Bot Main Application

This is the main entry point for the Truth or Dare Telegram bot.
It initializes the database, loads the card packs, sets up handlers,
and starts the bot.
"""

import asyncio
import sys
from typing import Optional

from telegram import Update, BotCommand
from telegram.ext import Application, CommandHandler, MessageHandler, CallbackQueryHandler, filters
from telegram.constants import ParseMode
from telegram.ext import Defaults  # For setting default parse mode globally

from .handlers.command_handlers import (
    start_command, help_command, newroom_command, join_command, leave_command,
    players_command, packs_command, truth_command, dare_command, done_command,
    skip_command, reloadpacks_command
)
from .handlers.proof_handlers import proof_command, handle_vote_callback
from .handlers.message_handlers import handle_text_message, handle_media_message
from .handlers.error_handlers import error_handler

from .database.database import init_database, close_database
from .database.pack_files import sync_packs_from_files
from .database.seed_data import seed_all_data
from .utils.config import get_settings
from .utils.logging_config import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)

BOT_COMMANDS = [
    BotCommand("start", "Welcome message, or link a group to a room"),
    BotCommand("help", "How to play"),
    BotCommand("newroom", "Open a new room"),
    BotCommand("join", "Take a seat: /join m or /join f"),
    BotCommand("leave", "Leave the table"),
    BotCommand("players", "Seating order and whose turn it is"),
    BotCommand("packs", "Available card packs"),
    BotCommand("truth", "Draw a truth"),
    BotCommand("dare", "Draw a dare"),
    BotCommand("proof", "Get a proof code for your dare"),
    BotCommand("done", "Mark the last round as completed"),
    BotCommand("skip", "Mark the last round as skipped"),
]


class DareBot:
    """
    Main bot application class.

    This handles the complete lifecycle of the bot including:
    - Database initialization, seeding and pack file loading
    - Handler registration
    - Application startup and shutdown
    """

    def __init__(self):
        """Initialize the bot application."""
        self.settings = get_settings()
        self.application: Optional[Application] = None

    async def initialize_database(self) -> None:
        """
        Initialize the database and fill the card catalog.

        Built-in packs are seeded into an empty database; pack files from
        PACKS_DIR are then synced on top.
        """
        try:
            logger.info("Initializing database...")

            await init_database()
            await seed_all_data()
            await sync_packs_from_files(self.settings.packs_dir)

            logger.info("Database initialization completed successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    async def setup_bot_commands(self) -> None:
        """
        Set up the bot command menu that appears when users type '/'.
        """
        if not self.application:
            raise RuntimeError("Application not initialized")

        try:
            logger.info("Setting up bot command menu...")

            await self.application.bot.set_my_commands(BOT_COMMANDS)

            bot_info = await self.application.bot.get_me()
            logger.info(f"Bot username: @{bot_info.username}")
            logger.info(f"Bot commands menu configured with {len(BOT_COMMANDS)} commands")

        except Exception as e:
            logger.error(f"Failed to set bot commands: {e}")
            # Don't raise - this is not critical for bot operation

    def setup_handlers(self) -> None:
        """
        Register all bot command and message handlers.
        """
        if not self.application:
            raise RuntimeError("Application not initialized")

        logger.info("Setting up bot handlers...")

        # Command handlers - these automatically handle both /command and /command@botusername
        command_handlers = [
            CommandHandler("start", start_command),
            CommandHandler("help", help_command),
            CommandHandler("newroom", newroom_command),
            CommandHandler("join", join_command),
            CommandHandler("leave", leave_command),
            CommandHandler("players", players_command),
            CommandHandler("packs", packs_command),
            CommandHandler("truth", truth_command),
            CommandHandler("dare", dare_command),
            CommandHandler("proof", proof_command),
            CommandHandler("done", done_command),
            CommandHandler("skip", skip_command),
            CommandHandler("reloadpacks", reloadpacks_command),
        ]

        for handler in command_handlers:
            self.application.add_handler(handler)

        # Vote buttons under relayed proofs
        self.application.add_handler(
            CallbackQueryHandler(handle_vote_callback, pattern=r"^vote:")
        )

        # Proof media and proof codes sent as text
        self.application.add_handler(
            MessageHandler(filters.PHOTO | filters.VIDEO, handle_media_message)
        )
        self.application.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text_message)
        )

        # Error handler for comprehensive error tracking
        self.application.add_error_handler(error_handler)

        logger.info("All handlers registered successfully")


async def main() -> None:
    """
    Main entry point for the bot.

    This function creates and starts the bot application,
    handling any startup errors gracefully.
    """
    bot = DareBot()

    try:
        logger.info("Starting Dare Bot")

        # Create application with global Markdown parse mode so **text** renders bold
        defaults = Defaults(parse_mode=ParseMode.MARKDOWN)
        bot.application = (
            Application.builder()
            .token(bot.settings.telegram_bot_token)
            .defaults(defaults)
            .build()
        )

        # Initialize database, seed data and pack files
        await bot.initialize_database()

        # Setup all handlers
        bot.setup_handlers()

        # Start polling (using async version)
        logger.info("Bot initialization complete, starting polling...")
        async with bot.application:
            await bot.setup_bot_commands()
            await bot.application.start()
            await bot.application.updater.start_polling(
                allowed_updates=Update.ALL_TYPES,
                drop_pending_updates=True
            )

            # Keep running until interrupted
            try:
                await asyncio.Event().wait()
            except (KeyboardInterrupt, SystemExit):
                logger.info("Received shutdown signal")
            finally:
                await bot.application.updater.stop()
                await bot.application.stop()

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    except Exception as e:
        logger.error(f"Unexpected error in main: {e}")
        sys.exit(1)
    finally:
        await close_database()


if __name__ == "__main__":
    # Run the bot
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot stopped by user")
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)
