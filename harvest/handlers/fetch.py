"""
Fetch Handlers
Search command and result selection callbacks.
"""

from typing import List

from telegram import Update
from telegram.ext import ContextTypes
from telegram.error import TelegramError

from harvest.config import logger
from harvest.exceptions import (
    ChoiceAlreadyMade,
    DaemonError,
    InvalidChoice,
    NotRequester,
    SearchError,
    SelectionError,
)
from harvest.models import FetchRequest, MessageRefs, Requester, SearchResult
from harvest.services import RequestStore, ResourceFetcher, TelegramNotifier
from harvest.utils import escape_markdown_v2, format_size, get_back_keyboard, get_results_keyboard, is_authorized
from harvest.utils.keyboards import parse_pick_callback_data


# ==================== Request Lifecycle ====================

def on_search_submitted(
    store: RequestStore,
    requester: Requester,
    query: str,
    results: List[SearchResult],
    request_message_id: int,
    list_message_id: int,
) -> FetchRequest:
    """Record a new request that is waiting for the user to pick a result."""
    request = FetchRequest(
        requester=requester,
        messages=MessageRefs(request_message_id=request_message_id, list_message_id=list_message_id),
        results=results,
        query=query,
    )
    store.insert(request)
    return request


async def on_user_selected_choice(
    store: RequestStore,
    fetcher: ResourceFetcher,
    notifier: TelegramNotifier,
    request_id: str,
    choice_index: int,
    user_id: int,
) -> FetchRequest:
    """
    Apply a user's pick to a request and start the download.

    Sends the status message, records the choice together with the status
    message ID, then runs the fetcher once. The choice is never overwritten,
    and concurrent picks for one request send a single status message.

    Raises:
        KeyError: The request does not exist.
        NotRequester: user_id is not the user who searched.
        ChoiceAlreadyMade: A choice was already recorded.
        InvalidChoice: choice_index is not a valid result index.
    """
    async with fetcher.locked(request_id):
        request = store.find_by_id(request_id)
        if request is None:
            raise KeyError(request_id)
        if request.requester.author_id != user_id:
            raise NotRequester(f"User {user_id} did not create request {request_id}")
        if request.choice is not None:
            raise ChoiceAlreadyMade(f"Request {request_id} already has a choice")
        if not 0 <= choice_index < len(request.results):
            raise InvalidChoice(f"Choice {choice_index} is not one of {len(request.results)} results")

        choice = request.results[choice_index]
        status_message_id = await notifier.send_status(
            request.requester.channel_id,
            request.messages.list_message_id,
            choice.name,
        )
        store.set_choice(request_id, choice, status_message_id)

    try:
        await fetcher.download(request_id)
    except DaemonError as e:
        # The poller picks the request up again on its next tick
        logger.error(f"Error starting download for request {request_id}: {e}")

    return store.find_by_id(request_id)


# ==================== Fetch Command ====================

def format_results(query: str, results: List[SearchResult]) -> str:
    lines = [
        "━━━━━━━━━━━━━━━━━━━━━━",
        f"🔎 *{escape_markdown_v2(query)}*",
        "━━━━━━━━━━━━━━━━━━━━━━",
        "",
        "👇 Select option to download:",
        "",
    ]
    for idx, result in enumerate(results):
        lines.append(
            f"*\\#{idx}* \\(🌱{result.seeders}, {escape_markdown_v2(format_size(result.size))}\\)\n"
            f"_{escape_markdown_v2(result.name)}_\n"
        )
    return "\n".join(lines)


async def fetch_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /fetch <query> command."""
    chat_id = update.effective_chat.id
    user_id = update.effective_user.id
    settings = context.bot_data["settings"]

    if not is_authorized(chat_id, settings.allowed_chat_ids):
        logger.warning(f"Unauthorized fetch attempt from chat ID: {chat_id}")
        await update.message.reply_text(
            "⛔ You are not authorized to use this bot\\.",
            parse_mode="MarkdownV2"
        )
        return

    if not context.args:
        await update.message.reply_text(
            "━━━━━━━━━━━━━━━━━━━━━━\n"
            "🔎 *FETCH*\n"
            "━━━━━━━━━━━━━━━━━━━━━━\n\n"
            "⚠️ Please tell me what to search for\\!\n\n"
            "*Usage:*\n"
            "`/fetch <query>`",
            parse_mode="MarkdownV2",
            reply_markup=get_back_keyboard()
        )
        return

    query = " ".join(context.args)
    loading_msg = await update.message.reply_text(
        f"🔎 Searching for *{escape_markdown_v2(query)}*\\.\\.\\.",
        parse_mode="MarkdownV2"
    )

    try:
        results = await context.bot_data["search"].search(query)
    except SearchError as e:
        logger.error(f"Error searching for '{query}': {e}")
        await loading_msg.edit_text(
            "❌ Search failed\\!\n\n"
            "Please try again later\\.",
            parse_mode="MarkdownV2"
        )
        return

    if not results:
        await loading_msg.edit_text(
            f"🔎 *{escape_markdown_v2(query)}*\n\n"
            "No results\\.",
            parse_mode="MarkdownV2"
        )
        return

    request = on_search_submitted(
        context.bot_data["store"],
        Requester(author_id=user_id, channel_id=chat_id),
        query,
        results,
        request_message_id=update.message.message_id,
        list_message_id=loading_msg.message_id,
    )

    await loading_msg.edit_text(
        format_results(query, request.results),
        parse_mode="MarkdownV2",
        reply_markup=get_results_keyboard(request.id, request.results)
    )


# ==================== Fetch Callbacks ====================

async def handle_fetch_pick(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a result button being pressed."""
    query = update.callback_query

    try:
        request_id, choice_index = parse_pick_callback_data(query.data)
    except ValueError:
        await query.answer("❌ Unknown option")
        return

    try:
        request = await on_user_selected_choice(
            context.bot_data["store"],
            context.bot_data["fetcher"],
            context.bot_data["notifier"],
            request_id,
            choice_index,
            query.from_user.id,
        )
    except KeyError:
        logger.info(f"Ignoring pick for unknown request {request_id}")
        await query.answer("⚠️ This search has expired")
        return
    except NotRequester:
        await query.answer("⛔ Only the person who searched can pick")
        return
    except ChoiceAlreadyMade:
        await query.answer("⚠️ A choice was already made")
        return
    except InvalidChoice:
        await query.answer("❌ Invalid option")
        return
    except (SelectionError, TelegramError) as e:
        logger.error(f"Error applying pick to request {request_id}: {e}")
        await query.answer("❌ Could not apply your choice")
        return

    chosen = request.choice.name if request and request.choice else "your choice"
    await query.answer(f"✅ Fetching {chosen}")

    try:
        await query.edit_message_reply_markup(reply_markup=None)
    except TelegramError as e:
        logger.debug(f"Could not remove result keyboard for request {request_id}: {e}")
