"""
Command Handlers
Basic bot commands (start, help, menu, chatid, downloads) and menu callbacks.
"""

from typing import List

from telegram import Update
from telegram.ext import ContextTypes
from telegram.error import BadRequest

from harvest.config import logger
from harvest.models import FetchRequest, Phase, RequestState
from harvest.utils import (
    escape_markdown_v2,
    format_progress,
    get_back_keyboard,
    get_main_menu_keyboard,
    is_authorized,
)

# Most recent requests shown by /downloads
MAX_LISTED_DOWNLOADS = 10

STATE_LABELS = {
    RequestState.ASKING_USER: "⏳ Waiting for your pick",
    RequestState.SELECTED: "🤔 Starting",
    RequestState.DOWNLOADING: "⬇️ Downloading",
    RequestState.SEEDING: "🌱 Done",
}


def welcome_text(user_name: str, is_auth: bool) -> str:
    auth_emoji = "✅" if is_auth else "⚠️"
    return (
        f"━━━━━━━━━━━━━━━━━━━━━━\n"
        f"🌾 *HARVEST*\n"
        f"━━━━━━━━━━━━━━━━━━━━━━\n\n"
        f"👋 Welcome *{escape_markdown_v2(user_name)}*\\!\n\n"
        f"I search for torrents and download\n"
        f"them onto the server for you\\. 🚀\n\n"
        f"┏━━━━━━━━━━━━━━━━━━━━┓\n"
        f"  {auth_emoji} *Authorization Status*\n"
        f"     {'`AUTHORIZED`' if is_auth else '`NOT AUTHORIZED`'}\n"
        f"┗━━━━━━━━━━━━━━━━━━━━┛\n\n"
        f"💡 Use `/fetch <query>` to get started\\!"
    )


HELP_TEXT = (
    "━━━━━━━━━━━━━━━━━━━━━━\n"
    "📖 *HELP GUIDE*\n"
    "━━━━━━━━━━━━━━━━━━━━━━\n\n"
    "*Available Commands:*\n\n"
    "🏠 `/start` \\- Main menu \\& welcome\n"
    "❓ `/help` \\- Show this help guide\n"
    "🔍 `/menu` \\- Show interactive menu\n"
    "🔎 `/fetch <query>` \\- Search and download\n"
    "📥 `/downloads` \\- Your downloads\n"
    "🔑 `/chatid` \\- Show your chat ID\n\n"
    "━━━━━━━━━━━━━━━━━━━━\n\n"
    "*How it works:*\n\n"
    "1️⃣ Search with `/fetch`\n"
    "2️⃣ Pick one of the results\n"
    "3️⃣ Watch the status message update\n"
    "4️⃣ Get pinged when it is done\\!"
)

MENU_TEXT = (
    "━━━━━━━━━━━━━━━━━━━━━━\n"
    "🎯 *MAIN MENU*\n"
    "━━━━━━━━━━━━━━━━━━━━━━\n\n"
    "Select an option below:"
)


def chat_id_text(user_name: str, chat_id: int) -> str:
    return (
        f"━━━━━━━━━━━━━━━━━━━━━━\n"
        f"🔑 *YOUR CHAT ID*\n"
        f"━━━━━━━━━━━━━━━━━━━━━━\n\n"
        f"👤 *User:* {escape_markdown_v2(user_name)}\n"
        f"🆔 *Chat ID:* `{escape_markdown_v2(str(chat_id))}`\n\n"
        f"━━━━━━━━━━━━━━━━━━━━\n\n"
        f"💡 *Usage:*\n\n"
        f"Add this ID to the\n"
        f"`HARVEST\\_ALLOWED\\_CHAT\\_IDS` variable\\.\n\n"
        f"⚠️ Keep this ID private\\!"
    )


def downloads_text(requests: List[FetchRequest]) -> str:
    """Summarize a user's requests, newest first."""
    lines = [
        "━━━━━━━━━━━━━━━━━━━━━━",
        "📥 *YOUR DOWNLOADS*",
        "━━━━━━━━━━━━━━━━━━━━━━",
        "",
    ]
    if not requests:
        lines.append("📭 Nothing yet\\. Use `/fetch <query>` to start\\!")
        return "\n".join(lines)

    ordered = sorted(requests, key=lambda r: r.created_at, reverse=True)[:MAX_LISTED_DOWNLOADS]
    for request in ordered:
        name = request.choice.name if request.choice else f"🔎 {request.query}"
        label = STATE_LABELS[request.state]
        if request.torrent and request.torrent.status.phase is Phase.DOWNLOADING:
            label = f"{label} {format_progress(request.torrent.status.progress)}"
        lines.append(f"• _{escape_markdown_v2(name)}_\n   {escape_markdown_v2(label)}")
    return "\n".join(lines)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    chat_id = update.effective_chat.id
    user_name = update.effective_user.first_name or "User"
    settings = context.bot_data["settings"]

    logger.info(f"Start command received from chat ID: {chat_id}")

    await update.message.reply_text(
        welcome_text(user_name, is_authorized(chat_id, settings.allowed_chat_ids)),
        parse_mode="MarkdownV2",
        reply_markup=get_main_menu_keyboard()
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    await update.message.reply_text(
        HELP_TEXT, parse_mode="MarkdownV2", reply_markup=get_back_keyboard()
    )


async def menu_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /menu command."""
    await update.message.reply_text(
        MENU_TEXT, parse_mode="MarkdownV2", reply_markup=get_main_menu_keyboard()
    )


async def chatid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /chatid command."""
    chat_id = update.effective_chat.id
    user_name = update.effective_user.first_name or "User"

    await update.message.reply_text(
        chat_id_text(user_name, chat_id), parse_mode="MarkdownV2", reply_markup=get_back_keyboard()
    )


async def downloads_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /downloads command."""
    chat_id = update.effective_chat.id
    settings = context.bot_data["settings"]

    if not is_authorized(chat_id, settings.allowed_chat_ids):
        await update.message.reply_text(
            "⛔ You are not authorized to use this bot\\.",
            parse_mode="MarkdownV2"
        )
        return

    requests = context.bot_data["store"].find_by_requester(update.effective_user.id)
    await update.message.reply_text(
        downloads_text(requests), parse_mode="MarkdownV2", reply_markup=get_back_keyboard()
    )


async def button_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle menu button presses."""
    query = update.callback_query
    chat_id = query.message.chat.id if query.message else query.from_user.id
    user_name = query.from_user.first_name or "User"
    settings = context.bot_data["settings"]

    await query.answer()

    if query.data == "menu":
        text, keyboard = MENU_TEXT, get_main_menu_keyboard()
    elif query.data == "help":
        text, keyboard = HELP_TEXT, get_back_keyboard()
    elif query.data == "chatid":
        text, keyboard = chat_id_text(user_name, chat_id), get_back_keyboard()
    elif query.data == "downloads":
        if not is_authorized(chat_id, settings.allowed_chat_ids):
            return
        requests = context.bot_data["store"].find_by_requester(query.from_user.id)
        text, keyboard = downloads_text(requests), get_back_keyboard()
    else:
        logger.warning(f"Unknown callback data: {query.data}")
        return

    try:
        await query.edit_message_text(text, parse_mode="MarkdownV2", reply_markup=keyboard)
    except BadRequest as e:
        if "message is not modified" not in str(e).lower():
            raise
