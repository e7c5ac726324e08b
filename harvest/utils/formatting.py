"""
Formatting Utilities
Helpers for MarkdownV2 text and download statistics.
"""

# Download rates are shown after dividing bytes/sec by this constant
RATE_DIVISOR = 10000

SPECIAL_CHARS = ['_', '*', '[', ']', '(', ')', '~', '`', '>', '#', '+', '-', '=', '|', '{', '}', '.', '!', '\\']


def escape_markdown_v2(text: str) -> str:
    """Escape special characters for MarkdownV2."""
    return "".join(f"\\{char}" if char in SPECIAL_CHARS else char for char in str(text))


def format_progress(fraction: float) -> str:
    """Format a completion fraction as a percentage with 2 decimals."""
    return f"{round(fraction * 100, 2):.2f}%"


def format_rate(bytes_per_sec: int) -> str:
    """Format a download rate as MB/s with 2 decimals."""
    return f"{round(bytes_per_sec / RATE_DIVISOR, 2):.2f} MB/s"


def format_eta(seconds: int) -> str:
    """Format seconds as HH:MM:SS. Negative values mean unknown."""
    if seconds is None or seconds < 0:
        return "--:--:--"
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_size(size: int) -> str:
    """Format a size in bytes for humans."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} TB"


def truncate(text: str, max_length: int = 55) -> str:
    if len(text) > max_length:
        return text[:max_length - 3] + "..."
    return text
