"""
Bot Models
Data classes and type definitions for fetch requests.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# Maximum number of search results kept per request
MAX_RESULTS = 10


class Phase(Enum):
    """Sub-state of an active download as reported by the daemon."""
    VERIFYING = "Verifying"
    QUEUED = "Queued"
    DOWNLOADING = "Downloading"
    SEEDING = "Seeding"


class RequestState(Enum):
    """Where a request is in the fetch process, derived from which fields are set."""
    ASKING_USER = "asking_user"
    SELECTED = "selected"
    DOWNLOADING = "downloading"
    SEEDING = "seeding"


@dataclass(frozen=True)
class Requester:
    """Origin of a request."""
    author_id: int
    channel_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"authorId": self.author_id, "channelId": self.channel_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Requester":
        return cls(author_id=data["authorId"], channel_id=data["channelId"])


@dataclass
class MessageRefs:
    """Chat messages that belong to a request."""
    request_message_id: Optional[int] = None
    list_message_id: Optional[int] = None
    status_message_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestMessageId": self.request_message_id,
            "listMessageId": self.list_message_id,
            "statusMessageId": self.status_message_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageRefs":
        return cls(
            request_message_id=data.get("requestMessageId"),
            list_message_id=data.get("listMessageId"),
            status_message_id=data.get("statusMessageId"),
        )


@dataclass(frozen=True)
class SearchResult:
    """A candidate torrent returned by a search."""
    name: str
    size: int  # in bytes
    seeders: int
    magnet_uri: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "seeders": self.seeders,
            "magnetURI": self.magnet_uri,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResult":
        return cls(
            name=data["name"],
            size=int(data.get("size") or 0),
            seeders=int(data.get("seeders") or 0),
            magnet_uri=data["magnetURI"],
        )


@dataclass(frozen=True)
class TorrentStatus:
    """Snapshot of a download's progress."""
    in_progress: bool
    phase: Phase = Phase.VERIFYING
    progress: float = 0.0  # fraction in [0, 1]
    download_rate: int = 0  # bytes per second
    peer_count: int = 0
    eta: int = -1  # seconds, negative when the daemon does not know

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inProgress": self.in_progress,
            "phase": self.phase.value,
            "progress": self.progress,
            "downloadRate": self.download_rate,
            "peerCount": self.peer_count,
            "eta": self.eta,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TorrentStatus":
        return cls(
            in_progress=bool(data["inProgress"]),
            phase=Phase(data.get("phase", Phase.VERIFYING.value)),
            progress=float(data.get("progress", 0.0)),
            download_rate=int(data.get("downloadRate", 0)),
            peer_count=int(data.get("peerCount", 0)),
            eta=int(data.get("eta", -1)),
        )


@dataclass(frozen=True)
class TorrentInfo:
    """Daemon-side torrent tied to a request."""
    daemon_id: int
    name: str
    hash: str
    status: TorrentStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daemonId": self.daemon_id,
            "name": self.name,
            "hash": self.hash,
            "status": self.status.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TorrentInfo":
        return cls(
            daemon_id=data["daemonId"],
            name=data.get("name", ""),
            hash=data.get("hash", ""),
            status=TorrentStatus.from_dict(data["status"]),
        )


def new_request_id() -> str:
    return uuid.uuid4().hex


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class FetchRequest:
    """One user's attempt to fetch a resource, from search to terminal outcome."""
    requester: Requester
    messages: MessageRefs
    results: List[SearchResult]
    query: str = ""
    id: str = field(default_factory=new_request_id)
    created_at: str = field(default_factory=_utc_now)
    choice: Optional[SearchResult] = None
    torrent: Optional[TorrentInfo] = None

    def __post_init__(self):
        if self.requester.channel_id is None:
            raise ValueError("A request must record the chat it came from")
        self.results = list(self.results)[:MAX_RESULTS]

    @property
    def state(self) -> RequestState:
        if self.choice is None:
            return RequestState.ASKING_USER
        if self.torrent is None:
            return RequestState.SELECTED
        if self.torrent.status.phase is Phase.SEEDING:
            return RequestState.SEEDING
        return RequestState.DOWNLOADING

    @property
    def in_progress(self) -> bool:
        return self.torrent is not None and self.torrent.status.in_progress

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "requester": self.requester.to_dict(),
            "messages": self.messages.to_dict(),
            "query": self.query,
            "createdAt": self.created_at,
            "results": [result.to_dict() for result in self.results],
            "choice": self.choice.to_dict() if self.choice else None,
            "torrent": self.torrent.to_dict() if self.torrent else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetchRequest":
        choice = data.get("choice")
        torrent = data.get("torrent")
        return cls(
            id=data["id"],
            requester=Requester.from_dict(data["requester"]),
            messages=MessageRefs.from_dict(data.get("messages") or {}),
            query=data.get("query", ""),
            created_at=data.get("createdAt") or _utc_now(),
            results=[SearchResult.from_dict(r) for r in data.get("results", [])],
            choice=SearchResult.from_dict(choice) if choice else None,
            torrent=TorrentInfo.from_dict(torrent) if torrent else None,
        )
