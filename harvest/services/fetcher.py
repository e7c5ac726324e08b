"""
Resource Fetcher Service
Drives each fetch request from a user's choice to a finished download.

The state of a request is never stored as a field. It is derived from which
fields of the stored request are set (see FetchRequest.state):

    ASKING_USER  no choice yet, nothing to do until the user picks a result
    SELECTED     choice made, download not yet handed to Transmission
    DOWNLOADING  torrent known to Transmission and still in progress
    SEEDING      download finished, terminal
    FAILED       Transmission lost the torrent, the request is deleted

download() advances one request by one step and is called again on every
poll tick until torrent.status.inProgress is false.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from harvest.config import logger
from harvest.models import FetchRequest, Phase, RequestState, TorrentInfo, TorrentStatus
from harvest.services.notifier import StatusPayload
from harvest.services.transmission import DaemonTorrent, phase_for_status
from harvest.utils.formatting import format_eta, format_progress, format_rate


def render_status(request: FetchRequest, torrent: TorrentInfo) -> StatusPayload:
    """Build the status message contents for a request's torrent."""
    status = torrent.status
    fields = [("Status", status.phase.value)]

    if status.phase is Phase.DOWNLOADING:
        seeders = request.choice.seeders if request.choice else 0
        fields.extend([
            ("Progress", format_progress(status.progress)),
            ("Download Rate", format_rate(status.download_rate)),
            ("Peers", f"{status.peer_count} / {seeders}"),
            ("ETA", format_eta(status.eta)),
        ])

    title = request.choice.name if request.choice else torrent.name
    return StatusPayload(title=title, fields=fields)


def torrent_from_daemon(daemon_id: int, daemon_torrent: DaemonTorrent, request_id: str = "") -> TorrentInfo:
    """Convert the daemon's view of a torrent into the stored TorrentInfo."""
    phase = phase_for_status(daemon_torrent.status_code)
    if phase is None:
        logger.warning(
            f"Unknown Transmission status {daemon_torrent.status_code} for request {request_id}, "
            f"treating it as {Phase.VERIFYING.value}"
        )
        phase = Phase.VERIFYING

    return TorrentInfo(
        daemon_id=daemon_id,
        name=daemon_torrent.name,
        hash=daemon_torrent.hash,
        status=TorrentStatus(
            in_progress=phase is not Phase.SEEDING,
            phase=phase,
            progress=daemon_torrent.percent_done,
            download_rate=daemon_torrent.rate_download,
            peer_count=daemon_torrent.peers_sending_to_us,
            eta=daemon_torrent.eta,
        ),
    )


class ResourceFetcher:
    """Runs the fetch state machine against a store, a daemon and a notifier."""

    def __init__(self, store, daemon, notifier):
        self.store = store
        self.daemon = daemon
        self.notifier = notifier
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def locked(self, request_id: str) -> AsyncIterator[None]:
        """
        Hold the lock for one request ID.

        Anything that reads and then writes a request should do it inside this
        block. A lock is forgotten as soon as nobody holds or waits for it.
        """
        lock = self._locks.get(request_id)
        if lock is None:
            lock = self._locks[request_id] = asyncio.Lock()
        self._lock_users[request_id] = self._lock_users.get(request_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[request_id] -= 1
            if not self._lock_users[request_id]:
                del self._lock_users[request_id]
                del self._locks[request_id]

    async def update_all(self) -> None:
        """Call download() on every request that still needs driving."""
        requests = self.store.find_all_pending()
        if not requests:
            return

        results = await asyncio.gather(
            *(self.download(request.id) for request in requests),
            return_exceptions=True,
        )
        for request, result in zip(requests, results):
            if isinstance(result, Exception):
                logger.error(f"Error updating request {request.id}: {result}")

    async def download(self, request_id: str) -> None:
        """
        Evaluate a request's state and advance it.

        Does nothing if the request is unknown or has no status message yet.
        Daemon errors propagate to the caller; notification errors do not.
        Calls for the same request ID run one at a time.
        """
        async with self.locked(request_id):
            await self._advance(request_id)

    async def _advance(self, request_id: str) -> None:
        """Run one step for a request."""
        request = self.store.find_by_id(request_id)
        if request is None or request.messages.status_message_id is None:
            return

        state = request.state
        if state is RequestState.ASKING_USER:
            return

        was_in_progress = request.in_progress
        chat_id = request.requester.channel_id
        message_id = request.messages.status_message_id

        if state is RequestState.SELECTED:
            handle = await self.daemon.add_uri(request.choice.magnet_uri)
            daemon_id = handle.id
            logger.info(f"Added '{request.choice.name}' to Transmission as {daemon_id} for request {request_id}")
            # Record the daemon id before polling so a failed poll never leads to a second add
            self.store.update_torrent(request_id, TorrentInfo(
                daemon_id=daemon_id,
                name=handle.name,
                hash=handle.hash,
                status=TorrentStatus(in_progress=True),
            ))
        else:
            daemon_id = request.torrent.daemon_id

        daemon_torrent = await self.daemon.get_status(daemon_id)
        if daemon_torrent is None:
            name = request.torrent.name if request.torrent else request.choice.name
            logger.warning(
                f"Can't find torrent in Transmission for request {request_id} "
                f"(daemon id {daemon_id}, name '{name}'), removing request"
            )
            self.store.delete(request_id)
            return

        torrent = torrent_from_daemon(daemon_id, daemon_torrent, request_id)
        self.store.update_torrent(request_id, torrent)

        try:
            await self.notifier.edit_status(chat_id, message_id, render_status(request, torrent))
        except Exception as e:
            logger.error(f"Error updating status message for request {request_id}: {e}")

        if was_in_progress and not torrent.status.in_progress:
            logger.info(f"Request {request_id} finished downloading '{request.choice.name}'")
            try:
                await self.notifier.send_mention(
                    chat_id,
                    request.requester.author_id,
                    f"{request.choice.name} has finished downloading!",
                )
            except Exception as e:
                logger.error(f"Error sending completion notice for request {request_id}: {e}")
