"""
Authorization Utilities
Helper functions for user authorization.
"""

from typing import Iterable


def is_authorized(chat_id: int, allowed_chat_ids: Iterable[int]) -> bool:
    """Check if the chat ID is authorized to use the bot."""
    return chat_id in allowed_chat_ids
