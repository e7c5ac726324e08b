"""
Telegram Bot Handlers
Command handlers, callback handlers, and request lifecycle entry points.
"""

from harvest.handlers.commands import (
    start_command,
    help_command,
    menu_command,
    chatid_command,
    downloads_command,
    button_callback,
)
from harvest.handlers.fetch import (
    fetch_command,
    handle_fetch_pick,
    on_search_submitted,
    on_user_selected_choice,
)

__all__ = [
    'start_command',
    'help_command',
    'menu_command',
    'chatid_command',
    'downloads_command',
    'button_callback',
    'fetch_command',
    'handle_fetch_pick',
    'on_search_submitted',
    'on_user_selected_choice',
]
