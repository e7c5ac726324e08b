"""
Transmission Service
Async adapter over the transmission-rpc client library.
"""

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

import transmission_rpc
from transmission_rpc.error import TransmissionError

from harvest.config import logger, TransmissionSettings
from harvest.exceptions import DaemonError
from harvest.models import Phase

T = TypeVar("T")

# Fields requested from torrent-get
STATUS_FIELDS = [
    "id",
    "name",
    "hashString",
    "status",
    "percentDone",
    "rateDownload",
    "peersSendingToUs",
    "eta",
]

# Transmission status codes: 0 stopped, 1 check pending, 2 checking,
# 3 download pending, 4 downloading, 5 seed pending, 6 seeding
KNOWN_STATUS_CODES = frozenset(range(7))
STATUS_PHASES = {
    3: Phase.QUEUED,
    4: Phase.DOWNLOADING,
    6: Phase.SEEDING,
}


def phase_for_status(code: int) -> Optional[Phase]:
    """Map a daemon status code to a Phase. Returns None if the code is unknown."""
    if code not in KNOWN_STATUS_CODES:
        return None
    return STATUS_PHASES.get(code, Phase.VERIFYING)


@dataclass(frozen=True)
class DownloadHandle:
    """Torrent created (or found) by torrent-add."""
    id: int
    name: str
    hash: str


@dataclass(frozen=True)
class DaemonTorrent:
    """Status of one torrent as reported by torrent-get."""
    id: int
    name: str
    hash: str
    status_code: int
    percent_done: float
    rate_download: int
    peers_sending_to_us: int
    eta: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "DaemonTorrent":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            hash=data.get("hashString", ""),
            status_code=int(data.get("status", 0)),
            percent_done=float(data.get("percentDone", 0.0)),
            rate_download=int(data.get("rateDownload", 0)),
            peers_sending_to_us=int(data.get("peersSendingToUs", 0)),
            eta=int(data.get("eta", -1)),
        )


def connect(settings: TransmissionSettings) -> transmission_rpc.Client:
    """Open a transmission-rpc client. The library fetches a session on construction."""
    return transmission_rpc.Client(
        protocol="https" if settings.ssl else "http",
        host=settings.host,
        port=settings.port,
        path=settings.url,
        username=settings.username or None,
        password=settings.password or None,
    )


class TransmissionClient:
    """
    Talks to transmission-daemon through transmission-rpc.

    The library is blocking, so every call runs in a worker thread. Each call
    resolves to a single result or raises DaemonError. There is no retry here;
    callers poll again on their next tick.
    """

    def __init__(
        self,
        settings: TransmissionSettings,
        client: Optional[transmission_rpc.Client] = None,
        factory: Callable[[TransmissionSettings], transmission_rpc.Client] = connect,
    ):
        self.settings = settings
        self._client = client
        self._factory = factory
        self._client_lock = threading.Lock()

    def _get_client(self) -> transmission_rpc.Client:
        with self._client_lock:
            if self._client is None:
                self._client = self._factory(self.settings)
                logger.debug(f"Connected to Transmission at {self.settings.endpoint}")
            return self._client

    async def close(self) -> None:
        with self._client_lock:
            self._client = None

    async def _call(self, action: str, fn: Callable[[transmission_rpc.Client], T]) -> T:
        def run() -> T:
            return fn(self._get_client())

        try:
            return await asyncio.to_thread(run)
        except TransmissionError as e:
            raise DaemonError(f"{action} failed: {e}") from e

    async def add_uri(self, uri: str) -> DownloadHandle:
        """Add a magnet URI. Adding one the daemon already has returns the existing torrent."""
        kwargs: Dict[str, Any] = {}
        if self.settings.download_dir:
            kwargs["download_dir"] = self.settings.download_dir

        torrent = await self._call("torrent-add", lambda client: client.add_torrent(uri, **kwargs))
        fields = torrent.fields
        if "id" not in fields:
            raise DaemonError("torrent-add failed: daemon returned no torrent")

        return DownloadHandle(
            id=fields["id"],
            name=fields.get("name", ""),
            hash=fields.get("hashString", ""),
        )

    async def get_status(self, torrent_id: int) -> Optional[DaemonTorrent]:
        """Return the torrent's status, or None if the daemon no longer has it."""
        torrents = await self._call(
            "torrent-get",
            lambda client: client.get_torrents(ids=[torrent_id], arguments=STATUS_FIELDS),
        )
        if not torrents:
            return None
        return DaemonTorrent.from_rpc(torrents[0].fields)
