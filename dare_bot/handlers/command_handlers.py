"""
Bot Command Handlers

This module contains handlers for all bot commands.
Each handler processes a specific command and provides appropriate responses.

The current room of a chat is kept in ``context.chat_data['current_room_id']``
and, for group chats, recovered from the room bound to the group after a
restart.
"""

from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from ..database.models import CardType, RoundStatus
from ..game.errors import PartyGameError
from ..game.party_manager import PartyManager
from ..utils.config import get_settings, is_admin_user
from ..utils.logging_config import log_user_action, get_logger

# Setup logger and manager
logger = get_logger(__name__)
party_manager = PartyManager()

GROUP_CHAT_TYPES = ('group', 'supergroup')


def _is_group(update: Update) -> bool:
    return update.effective_chat is not None and update.effective_chat.type in GROUP_CHAT_TYPES


def _md(text: str) -> str:
    return escape_markdown(text or "", version=1)


async def resolve_room_id(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Optional[str]:
    """
    Find the room the chat is playing in.

    Returns:
        str: Room ID, or None if the chat has no room
    """
    room_id = context.chat_data.get('current_room_id')
    if room_id:
        return room_id

    if _is_group(update):
        room = await party_manager.find_room_for_group(update.effective_chat.id)
        if room is not None:
            context.chat_data['current_room_id'] = room.id
            return room.id
    return None


async def _require_room(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Optional[str]:
    room_id = await resolve_room_id(update, context)
    if not room_id:
        await update.message.reply_text(
            "❌ No room in this chat.\n"
            "Use /newroom to start one."
        )
    return room_id


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle the /start command.

    In a group, ``/start <room_id>`` links the group to the room so that
    proofs are posted here. Everywhere else it shows a welcome message.

    Args:
        update: Telegram update object
        context: Bot context
    """
    if not update.message:
        return

    user = update.effective_user
    chat_id = update.effective_chat.id
    payload = context.args[0].strip() if context.args else ""

    # Log user action
    log_user_action(user.id, "start_command", username=user.username, payload=payload)

    if _is_group(update) and payload:
        try:
            await party_manager.bind_group(payload, chat_id)
        except PartyGameError as e:
            await update.message.reply_text(f"❌ {e.user_message}")
            return

        context.chat_data['current_room_id'] = payload
        await update.message.reply_text(
            f"🔗 This group is now linked to room `{payload}`.\n"
            "Proofs and votes will appear here.",
            parse_mode='Markdown'
        )
        logger.info(f"Group bound via /start - room_id: {payload}, chat_id: {chat_id}")
        return

    welcome_text = f"""
🎲 **Welcome to Truth or Dare, {_md(user.first_name)}!**

🚀 **QUICK START:**
1️⃣ Add me to a **group chat**
2️⃣ Type `/newroom` to open a room
3️⃣ Everyone types `/join m` or `/join f`
4️⃣ Take turns with `/truth` or `/dare`

📸 Finished a dare? Use `/proof` and send me a photo or video.
The group votes whether it counts.

❓ `/help` - all commands
    """

    await update.message.reply_text(welcome_text, parse_mode='Markdown')
    logger.info(f"Start command processed - user_id={user.id}, chat_id={chat_id}")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle the /help command.

    Args:
        update: Telegram update object
        context: Bot context
    """
    if not update.message:
        return

    log_user_action(update.effective_user.id, "help_command")

    help_text = """
📖 **Truth or Dare – Quick Guide**

🏠 **Room**
`/newroom` – open a room (you break vote ties)
`/join m|f` – take a seat
`/leave` – leave the table
`/players` – seating order

🎲 **Turns**
`/truth [pack] [level]` – draw a truth
`/dare [pack] [level]` – draw a dare
`/packs` – available packs and levels

✅ **Results**
`/proof` – get a proof code for your dare
`/done` – mark the last round as completed
`/skip` – mark the last round as skipped

💡 Cards may mention your neighbours: the player on your left, on your right or across the table.
    """

    await update.message.reply_text(help_text, parse_mode='Markdown')


async def newroom_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /newroom: create a room for this chat.

    The creator's vote breaks ties when proofs are voted on. In a group
    the room is linked to the group right away.
    """
    if not update.message:
        logger.warning("newroom_command called without a message object")
        return

    user = update.effective_user
    chat_id = update.effective_chat.id
    is_group = _is_group(update)

    try:
        room = await party_manager.create_room(user.id, group_id=chat_id if is_group else None)
    except Exception as e:
        logger.error(f"Failed to create room - chat_id: {chat_id}, user_id: {user.id}, error: {str(e)}")
        await update.message.reply_text(
            "❌ **Failed to create room**\n\n"
            "Something went wrong. Please try again in a moment.",
            parse_mode='Markdown'
        )
        return

    context.chat_data['current_room_id'] = room.id
    log_user_action(user.id, "newroom_command", room_id=room.id)

    text = (
        "🎲 **Room created!**\n\n"
        f"🆔 **Room ID:** `{room.id}`\n"
        f"👑 **Tie-breaker:** {_md(user.first_name)}\n\n"
        "Everyone joins with `/join m` or `/join f`."
    )
    if not is_group:
        text += f"\n\n🔗 To receive proofs in a group, send `/start {room.id}` there."

    await update.message.reply_text(text, parse_mode='Markdown')


async def join_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /join <m|f>: take a seat in the chat's room.
    """
    if not update.message:
        return

    if not context.args:
        await update.message.reply_text(
            "🪑 **How to join:** `/join m` or `/join f`",
            parse_mode='Markdown'
        )
        return

    room_id = await _require_room(update, context)
    if not room_id:
        return

    user = update.effective_user
    try:
        player = await party_manager.add_player(
            room_id, user.first_name or user.username or "Player", context.args[0], user_id=user.id
        )
    except PartyGameError as e:
        await update.message.reply_text(f"❌ {e.user_message}")
        return

    log_user_action(user.id, "join_command", room_id=room_id, seat=player.seat)
    await update.message.reply_text(f"✅ {_md(player.name)} is seated (seat {player.seat + 1}).",
                                    parse_mode='Markdown')


async def leave_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /leave: give up your seat. Past rounds stay recorded."""
    if not update.message:
        return

    room_id = await _require_room(update, context)
    if not room_id:
        return

    user = update.effective_user
    player = await party_manager.find_player_by_user(room_id, user.id)
    if player is None or not await party_manager.remove_player(room_id, player.id):
        await update.message.reply_text("ℹ️ You are not seated in this room.")
        return

    log_user_action(user.id, "leave_command", room_id=room_id)
    await update.message.reply_text(f"👋 {_md(player.name)} left the table.", parse_mode='Markdown')


async def players_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /players: show the seating order and whose turn it is."""
    if not update.message:
        return

    room_id = await _require_room(update, context)
    if not room_id:
        return

    players = await party_manager.list_players(room_id)
    if not players:
        await update.message.reply_text("🪑 Nobody is seated yet. Use `/join m` or `/join f`.",
                                        parse_mode='Markdown')
        return

    current = await party_manager.current_player_index(room_id)
    lines = ["👥 **Players**\n"]
    for index, player in enumerate(players):
        marker = "👉" if index == current else "•"
        lines.append(f"{marker} {_md(player.name)} ({player.gender.value})")

    await update.message.reply_text("\n".join(lines), parse_mode='Markdown')


async def packs_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /packs: list the card packs."""
    if not update.message:
        return

    packs = await party_manager.list_packs()
    if not packs:
        await update.message.reply_text("📦 No packs are loaded.")
        return

    lines = ["📦 **Packs**\n"]
    for pack in packs:
        price = "free" if not pack.paid else _md(pack.price)
        levels = ", ".join(pack.levels or [])
        lines.append(f"• `{pack.id}` – {_md(pack.title)} ({price}, {pack.mode.value})\n  levels: {_md(levels)}")

    await update.message.reply_text("\n".join(lines), parse_mode='Markdown')


async def _draw(update: Update, context: ContextTypes.DEFAULT_TYPE, card_type: CardType) -> None:
    if not update.message:
        return

    room_id = await _require_room(update, context)
    if not room_id:
        return

    args = context.args or []
    pack_id = args[0] if args else None
    level = " ".join(args[1:]) or None

    try:
        turn = await party_manager.draw_turn(room_id, card_type, pack_id, level)
    except PartyGameError as e:
        await update.message.reply_text(f"❌ {e.user_message}")
        return

    log_user_action(update.effective_user.id, f"{card_type.value}_command", room_id=room_id,
                    round_id=turn.round.id)

    heading = "🤔 **TRUTH**" if card_type == CardType.TRUTH else "🔥 **DARE**"
    text = (
        f"{heading} for {_md(turn.player.name)}\n"
        f"_{_md(turn.card.pack_id)} · {_md(turn.card.level)}_\n\n"
        f"{_md(turn.text)}"
    )
    if card_type == CardType.DARE:
        text += "\n\n📸 Done? `/proof` for a vote, or `/done` / `/skip`."

    await update.message.reply_text(text, parse_mode='Markdown')


async def truth_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /truth [pack] [level]."""
    await _draw(update, context, CardType.TRUTH)


async def dare_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /dare [pack] [level]."""
    await _draw(update, context, CardType.DARE)


async def _set_latest_status(update: Update, context: ContextTypes.DEFAULT_TYPE, status: RoundStatus) -> None:
    if not update.message:
        return

    room_id = await _require_room(update, context)
    if not room_id:
        return

    latest = await party_manager.round_tracker.get_latest_round(room_id)
    if latest is None:
        await update.message.reply_text("❌ No round yet. Draw a card with /truth or /dare.")
        return

    try:
        await party_manager.round_tracker.set_round_status(latest.id, room_id, status)
    except PartyGameError as e:
        await update.message.reply_text(f"❌ {e.user_message}")
        return

    log_user_action(update.effective_user.id, "round_override", room_id=room_id,
                    round_id=latest.id, status=status.value)
    label = "✅ completed" if status == RoundStatus.COMPLETED else "⏭️ skipped"
    await update.message.reply_text(f"Round {latest.number} marked as {label}.")


async def done_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done: mark the latest round as completed."""
    await _set_latest_status(update, context, RoundStatus.COMPLETED)


async def skip_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /skip: mark the latest round as skipped."""
    await _set_latest_status(update, context, RoundStatus.SKIPPED)


async def reloadpacks_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /reloadpacks: re-read the pack files (admins only).
    """
    if not update.message:
        return

    user = update.effective_user
    if not is_admin_user(user.id):
        await update.message.reply_text("⛔ Only bot admins can reload packs.")
        return

    loaded = await party_manager.reload_packs()
    log_user_action(user.id, "reloadpacks_command", loaded=len(loaded))

    if not loaded:
        await update.message.reply_text(
            f"ℹ️ No valid pack files in `{get_settings().packs_dir}`. The catalog is unchanged.",
            parse_mode='Markdown'
        )
        return

    await update.message.reply_text(
        f"🔄 Reloaded {len(loaded)} pack(s): {_md(', '.join(loaded))}",
        parse_mode='Markdown'
    )
