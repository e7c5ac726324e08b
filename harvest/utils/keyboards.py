"""
Keyboard Utilities
Helper functions for creating inline keyboards.
"""

from typing import List
from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from harvest.models import SearchResult
from harvest.utils.formatting import truncate

PICK_PREFIX = "fetch_pick_"


def pick_callback_data(request_id: str, index: int) -> str:
    return f"{PICK_PREFIX}{request_id}_{index}"


def parse_pick_callback_data(data: str):
    """Split pick callback data into (request_id, index). Raises ValueError if malformed."""
    if not data.startswith(PICK_PREFIX):
        raise ValueError(f"Not a pick callback: {data}")
    request_id, _, index = data[len(PICK_PREFIX):].rpartition("_")
    if not request_id:
        raise ValueError(f"Malformed pick callback: {data}")
    return request_id, int(index)


def get_main_menu_keyboard() -> InlineKeyboardMarkup:
    """Create the main menu keyboard with inline buttons."""
    keyboard = [
        [
            InlineKeyboardButton("ℹ️ Help", callback_data="help"),
            InlineKeyboardButton("📥 Downloads", callback_data="downloads"),
        ],
        [
            InlineKeyboardButton("🔑 My Chat ID", callback_data="chatid"),
        ],
    ]
    return InlineKeyboardMarkup(keyboard)


def get_back_keyboard() -> InlineKeyboardMarkup:
    """Create a keyboard with a back button."""
    keyboard = [[InlineKeyboardButton("🔙 Back to Menu", callback_data="menu")]]
    return InlineKeyboardMarkup(keyboard)


def get_results_keyboard(request_id: str, results: List[SearchResult]) -> InlineKeyboardMarkup:
    """One button per search result, numbered like the result list."""
    keyboard = [
        [InlineKeyboardButton(f"#{idx} 🌱{result.seeders} {truncate(result.name, 45)}",
                              callback_data=pick_callback_data(request_id, idx))]
        for idx, result in enumerate(results)
    ]
    return InlineKeyboardMarkup(keyboard)
