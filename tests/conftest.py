"""Shared fixtures and fakes for the Harvest tests."""

import asyncio
from typing import Dict, List, Optional, Set, Tuple

import pytest

from harvest.exceptions import DaemonError
from harvest.models import (
    FetchRequest,
    MessageRefs,
    Phase,
    Requester,
    SearchResult,
    TorrentInfo,
    TorrentStatus,
)
from harvest.services.request_store import RequestStore
from harvest.services.transmission import DaemonTorrent, DownloadHandle

CHAT_ID = 1001
AUTHOR_ID = 42


def make_results(count: int = 3) -> List[SearchResult]:
    return [
        SearchResult(
            name=f"Ubuntu 25.10 Desktop {i}",
            size=4_000_000_000 + i,
            seeders=10 + i,
            magnet_uri=f"magnet:?xt=urn:btih:{i:040x}",
        )
        for i in range(count)
    ]


def make_request(
    choice_index: Optional[int] = None,
    status_message_id: Optional[int] = None,
    torrent: Optional[TorrentInfo] = None,
    results: Optional[List[SearchResult]] = None,
) -> FetchRequest:
    results = results if results is not None else make_results()
    return FetchRequest(
        requester=Requester(author_id=AUTHOR_ID, channel_id=CHAT_ID),
        messages=MessageRefs(request_message_id=1, list_message_id=2, status_message_id=status_message_id),
        results=results,
        query="ubuntu",
        choice=results[choice_index] if choice_index is not None else None,
        torrent=torrent,
    )


def make_torrent(daemon_id: int = 7, phase: Phase = Phase.DOWNLOADING, in_progress: bool = True) -> TorrentInfo:
    return TorrentInfo(
        daemon_id=daemon_id,
        name="Ubuntu 25.10 Desktop 0",
        hash="abc123",
        status=TorrentStatus(in_progress=in_progress, phase=phase, progress=0.1),
    )


def daemon_torrent(
    torrent_id: int = 7,
    status_code: int = 4,
    percent_done: float = 0.4567,
    rate_download: int = 123456,
    peers: int = 3,
    eta: int = 3725,
) -> DaemonTorrent:
    return DaemonTorrent(
        id=torrent_id,
        name="Ubuntu 25.10 Desktop 0",
        hash="abc123",
        status_code=status_code,
        percent_done=percent_done,
        rate_download=rate_download,
        peers_sending_to_us=peers,
        eta=eta,
    )


class FakeDaemon:
    """In-memory stand-in for TransmissionClient."""

    def __init__(self):
        self.torrents: Dict[int, DaemonTorrent] = {}
        self.added: List[str] = []
        self.status_calls: List[int] = []
        self.failing_ids: Set[int] = set()
        self.fail_add = False
        self.next_id = 7

    async def add_uri(self, uri: str) -> DownloadHandle:
        if self.fail_add:
            raise DaemonError("torrent-add failed: connection refused")
        await asyncio.sleep(0)
        self.added.append(uri)
        torrent_id = self.next_id
        self.next_id += 1
        self.torrents.setdefault(torrent_id, daemon_torrent(torrent_id, status_code=2))
        return DownloadHandle(id=torrent_id, name="Ubuntu 25.10 Desktop 0", hash="abc123")

    async def get_status(self, torrent_id: int) -> Optional[DaemonTorrent]:
        self.status_calls.append(torrent_id)
        if torrent_id in self.failing_ids:
            raise DaemonError("torrent-get failed: timed out")
        return self.torrents.get(torrent_id)


class FakeNotifier:
    """Records what would have been sent to Telegram."""

    def __init__(self):
        self.edits: List[Tuple[int, int, object]] = []
        self.mentions: List[Tuple[int, int, str]] = []
        self.sent: List[Tuple[int, int, str]] = []
        self.fail_edits = False
        self.next_message_id = 500

    async def send_status(self, chat_id: int, reply_to_message_id: int, title: str) -> int:
        await asyncio.sleep(0)
        self.sent.append((chat_id, reply_to_message_id, title))
        self.next_message_id += 1
        return self.next_message_id

    async def edit_status(self, chat_id: int, message_id: int, payload) -> bool:
        if self.fail_edits:
            raise RuntimeError("edit failed")
        self.edits.append((chat_id, message_id, payload))
        return True

    async def send_mention(self, chat_id: int, user_id: int, text: str) -> bool:
        self.mentions.append((chat_id, user_id, text))
        return True

    @property
    def call_count(self) -> int:
        return len(self.edits) + len(self.mentions) + len(self.sent)


@pytest.fixture
def store(tmp_path) -> RequestStore:
    return RequestStore(str(tmp_path / "requests.json"))


@pytest.fixture
def daemon() -> FakeDaemon:
    return FakeDaemon()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
