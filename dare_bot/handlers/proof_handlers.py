"""
Proof Handlers

This module relays dare proofs into the room's group chat and collects
the votes on them.

Flow:
1. /proof gives the player a proof code
2. The player sends a photo or video with "#proof <code>" in the caption
3. The bot copies the media into the room's group and posts vote buttons
4. Each button press is one vote; re-pressing changes that vote
"""

import re
from typing import List, Optional

from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from ..database.models import ProofStatus, VoteValue
from ..game.errors import PartyGameError
from ..utils.config import get_settings, is_valid_mini_app_url
from ..utils.logging_config import get_logger, log_user_action
from .command_handlers import party_manager, resolve_room_id

# Logger setup
logger = get_logger(__name__)

# "#proof abc123", "proof_id: abc123", "proof-id <abc123>"
PROOF_REGEX = re.compile(r"(proof[_-]?id[:\s]*|#proof\s*)(?:<)?([A-Za-z0-9_-]{6,})(?:>)?", re.IGNORECASE)

VOTE_CALLBACK_PREFIX = "vote:"

STATUS_LABELS = {
    ProofStatus.PENDING: "⏳ pending",
    ProofStatus.APPROVED: "✅ approved",
    ProofStatus.REJECTED: "❌ rejected",
}


def extract_proof_id(text: Optional[str]) -> Optional[str]:
    """Find a proof code in a message text or caption."""
    if not text:
        return None
    match = PROOF_REGEX.search(text)
    return match.group(2) if match else None


def build_vote_keyboard(proof_id: str, mini_app_url: Optional[str] = None) -> InlineKeyboardMarkup:
    """Yes/no buttons for a proof, plus a mini app link when it is usable."""
    rows: List[List[InlineKeyboardButton]] = [
        [
            InlineKeyboardButton("✅ Counts", callback_data=f"{VOTE_CALLBACK_PREFIX}{proof_id}:{VoteValue.YES.value}"),
            InlineKeyboardButton("❌ Doesn't count", callback_data=f"{VOTE_CALLBACK_PREFIX}{proof_id}:{VoteValue.NO.value}"),
        ]
    ]
    if is_valid_mini_app_url(mini_app_url):
        rows.append([InlineKeyboardButton("📱 Open mini app", url=mini_app_url)])
    return InlineKeyboardMarkup(rows)


def parse_vote_callback(data: Optional[str]):
    """
    Split "vote:<proof_id>:<yes|no>" callback data.

    Returns:
        tuple: (proof_id, value) or None if this is not a vote callback
    """
    if not data or not data.startswith(VOTE_CALLBACK_PREFIX):
        return None
    parts = data.split(":")
    if len(parts) != 3 or not parts[1]:
        return None
    return parts[1], parts[2]


async def proof_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /proof: open a proof for the latest round of the chat's room.

    The reply contains the code to put in the caption of the media.
    """
    if not update.message:
        logger.warning("proof_command called without a message object")
        return

    user = update.effective_user
    room_id = await resolve_room_id(update, context)
    if not room_id:
        await update.message.reply_text("❌ No room in this chat. Use /newroom first.")
        return

    log_user_action(user.id, "proof_command", room_id=room_id)

    try:
        proof = await party_manager.open_proof_for_latest_round(room_id, user.id)
    except PartyGameError as e:
        await update.message.reply_text(f"❌ {e.user_message}")
        return

    await update.message.reply_text(
        "📸 **Proof opened**\n\n"
        "Send me a photo or video with this caption:\n"
        f"`#proof {proof.id}`\n\n"
        "It will be posted in the room's group for a vote.",
        parse_mode='Markdown'
    )


async def handle_proof_media(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle a photo or video that carries a proof code.

    The media is copied to the room's group chat, the copy is attached
    to the proof and vote buttons are posted under it.
    """
    message = update.message
    if not message:
        return

    user = update.effective_user
    content = f"{message.caption or ''} {message.text or ''}".strip()
    proof_id = extract_proof_id(content)

    if not proof_id:
        # Groups share plenty of media that has nothing to do with the game
        if update.effective_chat.type == 'private':
            await message.reply_text("🔎 I don't see a proof code. Add `#proof <ID>` to the caption.",
                                     parse_mode='Markdown')
        return

    log_user_action(user.id, "proof_media", proof_id=proof_id)

    try:
        proof = await party_manager.proof_engine.get_proof(proof_id)
        room = await party_manager.get_room(proof.room_id)
    except PartyGameError as e:
        await message.reply_text(f"❌ {e.user_message}")
        return

    if not room.group_id:
        await message.reply_text(
            "⚠️ This room is not linked to a group yet. "
            "Ask the room creator to run /newroom or /start in the group."
        )
        return

    try:
        copied = await context.bot.copy_message(
            chat_id=room.group_id,
            from_chat_id=message.chat_id,
            message_id=message.message_id,
        )
        await party_manager.proof_engine.attach_external_reference(
            proof_id, room.group_id, str(copied.message_id), room_id=room.id
        )

        await context.bot.send_message(
            chat_id=room.group_id,
            text=f"🗳️ Proof from {escape_markdown(user.first_name or 'a player', version=1)}. Does it count?",
            reply_markup=build_vote_keyboard(proof_id, get_settings().mini_app_url),
        )

        await message.reply_text("✅ Done! The proof was sent to the room's group.")
        logger.info(f"Proof relayed - proof_id: {proof_id}, room_id: {room.id}, group_id: {room.group_id}")

    except Exception as e:
        logger.error(f"Failed to relay proof - proof_id: {proof_id}, room_id: {room.id}, error: {str(e)}")
        await message.reply_text("❌ Could not post the vote buttons. Check the bot's rights in the group.")


async def handle_proof_code_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    """
    Answer a text message that carries a proof code but no media.

    Returns:
        bool: True if the message contained a proof code
    """
    message = update.message
    proof_id = extract_proof_id(message.text if message else None)
    if not proof_id:
        return False

    await message.reply_text(
        f"👍 Code `{proof_id}` noted. Now send a photo or video with `#proof {proof_id}` in the caption.",
        parse_mode='Markdown'
    )
    return True


async def handle_vote_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle a yes/no vote button press.

    The room creator's vote also breaks ties.
    """
    query = update.callback_query
    parsed = parse_vote_callback(query.data)
    if parsed is None:
        await query.answer("❌ Unknown action", show_alert=True)
        return

    proof_id, value = parsed
    voter_id = str(query.from_user.id)
    log_user_action(query.from_user.id, "proof_vote", proof_id=proof_id, value=value)

    try:
        proof = await party_manager.proof_engine.get_proof(proof_id)
        room = await party_manager.get_room(proof.room_id)
        outcome = await party_manager.proof_engine.cast_vote(
            proof_id,
            voter_id,
            value,
            is_tie_breaker=room.created_by == voter_id,
            room_id=room.id,
        )
    except PartyGameError as e:
        await query.answer(f"❌ {e.user_message}", show_alert=True)
        return

    await query.answer(
        f"Vote counted. Now {outcome.yes_count}:{outcome.no_count} ({STATUS_LABELS[outcome.status]})"
    )
