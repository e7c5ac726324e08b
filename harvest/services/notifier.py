"""
Notifier Service
Posts and edits the status messages users see in Telegram.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from telegram import Bot, ReplyParameters
from telegram.error import BadRequest, TelegramError

from harvest.config import logger
from harvest.utils.formatting import escape_markdown_v2

PHASE_EMOJI = {
    "Verifying": "🤔",
    "Queued": "⏳",
    "Downloading": "⬇️",
    "Seeding": "🌱",
}


@dataclass(frozen=True)
class StatusPayload:
    """What a status message shows: a title and ordered (name, value) fields."""
    title: str
    fields: List[Tuple[str, str]] = field(default_factory=list)


def render_markdown(payload: StatusPayload) -> str:
    """Render a status payload as a MarkdownV2 message."""
    lines = [
        "━━━━━━━━━━━━━━━━━━━━━━",
        f"🌾 *{escape_markdown_v2(payload.title)}*",
        "━━━━━━━━━━━━━━━━━━━━━━",
        "",
    ]
    for name, value in payload.fields:
        emoji = PHASE_EMOJI.get(value, "•") if name == "Status" else "•"
        lines.append(f"{emoji} *{escape_markdown_v2(name)}:* `{escape_markdown_v2(value)}`")
    return "\n".join(lines)


class TelegramNotifier:
    """
    Best-effort notification sink backed by a telegram Bot.
    Edits and mentions log failures instead of raising, state is always
    persisted before they are attempted.
    """

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_status(self, chat_id: int, reply_to_message_id: int, title: str) -> int:
        """Send the initial status message for a choice. Returns its message ID."""
        message = await self.bot.send_message(
            chat_id=chat_id,
            text=render_markdown(StatusPayload(title=title, fields=[("Status", "Verifying")])),
            parse_mode="MarkdownV2",
            reply_parameters=ReplyParameters(message_id=reply_to_message_id, allow_sending_without_reply=True),
        )
        return message.message_id

    async def edit_status(self, chat_id: int, message_id: int, payload: StatusPayload) -> bool:
        """Edit a status message in place. Returns True if Telegram accepted the edit."""
        try:
            await self.bot.edit_message_text(
                text=render_markdown(payload),
                chat_id=chat_id,
                message_id=message_id,
                parse_mode="MarkdownV2",
            )
            return True
        except BadRequest as e:
            if "message is not modified" in str(e).lower():
                # Same status as last tick
                return True
            logger.error(f"Error editing status message {message_id} in chat {chat_id}: {e}")
            return False
        except TelegramError as e:
            logger.error(f"Error editing status message {message_id} in chat {chat_id}: {e}")
            return False

    async def send_mention(self, chat_id: int, user_id: int, text: str) -> bool:
        """Send a message that mentions a user. Returns True if it was sent."""
        mention = f"[{escape_markdown_v2('🔔')}](tg://user?id={user_id})"
        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=f"{mention} {escape_markdown_v2(text)}",
                parse_mode="MarkdownV2",
            )
            return True
        except TelegramError as e:
            logger.error(f"Error sending mention to user {user_id} in chat {chat_id}: {e}")
            return False
