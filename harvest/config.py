"""
Bot Configuration
Environment variables and logging setup.
"""

import os
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

from harvest.exceptions import ConfigurationError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO
)
logger = logging.getLogger("harvest")

# Reduce httpx logging verbosity (suppress polling requests)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("transmission_rpc").setLevel(logging.WARNING)

ENV_PREFIX = "HARVEST_"


@dataclass(frozen=True)
class TransmissionSettings:
    """Connection details for the Transmission RPC endpoint."""
    host: str = "127.0.0.1"
    port: int = 9091
    username: str = ""
    password: str = ""
    ssl: bool = False
    url: str = "/transmission/rpc"
    download_dir: Optional[str] = None

    @property
    def endpoint(self) -> str:
        scheme = "https" if self.ssl else "http"
        return f"{scheme}://{self.host}:{self.port}{self.url}"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from the environment."""
    telegram_bot_token: str
    allowed_chat_ids: List[int]
    search_url: str
    transmission: TransmissionSettings
    storage_file: str = "harvest_requests.json"
    poll_interval: float = 1.0
    log_level: str = "INFO"


class _EnvReader:
    """Reads prefixed environment variables and records the ones that are missing."""

    def __init__(self, env: Mapping[str, str]):
        self.env = env
        self.missing: List[str] = []

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        key = ENV_PREFIX + name
        value = self.env.get(key)
        if value is None or value.strip() == "":
            if default is None:
                self.missing.append(key)
            return default
        return value.strip()

    def get_int(self, name: str, default: str) -> int:
        value = self.get(name, default)
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")

    def get_float(self, name: str, default: str) -> float:
        value = self.get(name, default)
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {value!r}")

    def get_bool(self, name: str, default: str) -> bool:
        value = self.get(name, default).lower()
        if value not in ("true", "false"):
            raise ConfigurationError(f'{ENV_PREFIX}{name} must be "true" or "false", got {value!r}')
        return value == "true"


def parse_chat_ids(raw: str) -> List[int]:
    """Convert a comma separated list of chat IDs to integers, skipping empty items."""
    try:
        return [int(chat_id.strip()) for chat_id in raw.split(",") if chat_id.strip()]
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}ALLOWED_CHAT_IDS must be a comma separated list of integers")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.
    Raises ConfigurationError listing every required variable that is missing.
    """
    reader = _EnvReader(os.environ if env is None else env)

    token = reader.get("TELEGRAM_BOT_TOKEN")
    raw_chat_ids = reader.get("ALLOWED_CHAT_IDS")
    search_url = reader.get("SEARCH_URL")

    transmission = TransmissionSettings(
        host=reader.get("TRANSMISSION_HOST", "127.0.0.1"),
        port=reader.get_int("TRANSMISSION_PORT", "9091"),
        username=reader.get("TRANSMISSION_USERNAME", ""),
        password=reader.get("TRANSMISSION_PASSWORD", ""),
        ssl=reader.get_bool("TRANSMISSION_SSL", "false"),
        url=reader.get("TRANSMISSION_URL", "/transmission/rpc"),
        download_dir=reader.get("DOWNLOAD_DIR_PATH", "") or None,
    )

    storage_file = reader.get("STORAGE_FILE", "harvest_requests.json")
    poll_interval = reader.get_float("POLL_INTERVAL", "1.0")
    log_level = reader.get("LOG_LEVEL", "INFO").upper()

    if reader.missing:
        raise ConfigurationError(f"Missing environment variable(s): {', '.join(reader.missing)}")

    allowed_chat_ids = parse_chat_ids(raw_chat_ids)
    if not allowed_chat_ids:
        raise ConfigurationError(f"{ENV_PREFIX}ALLOWED_CHAT_IDS environment variable is required")

    if "{query}" not in search_url:
        raise ConfigurationError(f"{ENV_PREFIX}SEARCH_URL must contain a {{query}} placeholder")

    if poll_interval <= 0:
        raise ConfigurationError(f"{ENV_PREFIX}POLL_INTERVAL must be positive")

    return Settings(
        telegram_bot_token=token,
        allowed_chat_ids=allowed_chat_ids,
        search_url=search_url,
        transmission=transmission,
        storage_file=storage_file,
        poll_interval=poll_interval,
        log_level=log_level,
    )


def apply_log_level(settings: Settings) -> None:
    """Set the package log level from settings."""
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {settings.log_level!r}, keeping INFO")
        return
    logger.setLevel(level)
