"""
Bot Utilities
Helper functions and utilities.
"""

from harvest.utils.formatting import escape_markdown_v2, format_eta, format_progress, format_rate, format_size
from harvest.utils.auth import is_authorized
from harvest.utils.keyboards import get_main_menu_keyboard, get_back_keyboard, get_results_keyboard

__all__ = [
    'escape_markdown_v2',
    'format_eta',
    'format_progress',
    'format_rate',
    'format_size',
    'is_authorized',
    'get_main_menu_keyboard',
    'get_back_keyboard',
    'get_results_keyboard',
]
