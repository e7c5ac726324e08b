#!/usr/bin/env python3
"""
Harvest Bot
Searches for torrents from Telegram, downloads the chosen one with Transmission
and keeps a status message up to date until it is done.
"""

from telegram import Update, BotCommand
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
)

from harvest.config import logger, load_settings, apply_log_level, Settings
from harvest.handlers import (
    start_command,
    help_command,
    menu_command,
    chatid_command,
    downloads_command,
    button_callback,
    fetch_command,
    handle_fetch_pick,
)
from harvest.services import (
    RequestStore,
    ResourceFetcher,
    StatusPoller,
    TelegramNotifier,
    TorrentSearch,
    TransmissionClient,
)
from harvest.utils.keyboards import PICK_PREFIX


async def setup_bot_commands(application: Application) -> None:
    """Set up bot commands and start polling download statuses."""
    commands = [
        BotCommand("start", "🏠 Start the bot and show main menu"),
        BotCommand("menu", "🎯 Show interactive menu"),
        BotCommand("help", "📖 Show help and usage guide"),
        BotCommand("fetch", "🔎 Search for something to download"),
        BotCommand("downloads", "📥 Show your downloads"),
        BotCommand("chatid", "🔑 Show your chat ID"),
    ]
    await application.bot.set_my_commands(commands)

    # Resumes every request left in progress by a previous run
    application.bot_data["poller"].start()


async def stop_poller(application: Application) -> None:
    """Stop polling, letting an in-flight update finish while the bot can still send."""
    await application.bot_data["poller"].stop()


async def close_clients(application: Application) -> None:
    await application.bot_data["daemon"].close()
    await application.bot_data["search"].close()


def build_application(settings: Settings) -> Application:
    """Create the Telegram application with services and handlers registered."""
    application = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .post_init(setup_bot_commands)
        .post_stop(stop_poller)
        .post_shutdown(close_clients)
        .build()
    )

    store = RequestStore(settings.storage_file)
    daemon = TransmissionClient(settings.transmission)
    notifier = TelegramNotifier(application.bot)
    fetcher = ResourceFetcher(store=store, daemon=daemon, notifier=notifier)

    application.bot_data.update({
        "settings": settings,
        "store": store,
        "daemon": daemon,
        "notifier": notifier,
        "fetcher": fetcher,
        "search": TorrentSearch(settings.search_url),
        "poller": StatusPoller(fetcher, settings.poll_interval),
    })

    # Add handlers
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("menu", menu_command))
    application.add_handler(CommandHandler("chatid", chatid_command))
    application.add_handler(CommandHandler("fetch", fetch_command))
    application.add_handler(CommandHandler("downloads", downloads_command))
    application.add_handler(CallbackQueryHandler(handle_fetch_pick, pattern=f"^{PICK_PREFIX}"))
    application.add_handler(CallbackQueryHandler(button_callback))

    return application


def main() -> None:
    """Start the bot."""
    logger.info("Starting Harvest bot...")

    settings = load_settings()
    apply_log_level(settings)

    logger.info(f"Bot configured with {len(settings.allowed_chat_ids)} allowed chat ID(s)")
    logger.info(f"Transmission RPC: {settings.transmission.endpoint}")
    logger.info(f"Request store: {settings.storage_file}")

    application = build_application(settings)

    # Start the bot
    logger.info("Bot is running...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
