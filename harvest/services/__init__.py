"""
Bot Services
Business logic, storage and external daemon clients.
"""

from harvest.services.request_store import RequestStore
from harvest.services.transmission import TransmissionClient, DownloadHandle, DaemonTorrent, phase_for_status
from harvest.services.notifier import TelegramNotifier, StatusPayload, render_markdown
from harvest.services.fetcher import ResourceFetcher, render_status
from harvest.services.poller import StatusPoller
from harvest.services.search import TorrentSearch

__all__ = [
    'RequestStore',
    'TransmissionClient',
    'DownloadHandle',
    'DaemonTorrent',
    'phase_for_status',
    'TelegramNotifier',
    'StatusPayload',
    'render_markdown',
    'ResourceFetcher',
    'render_status',
    'StatusPoller',
    'TorrentSearch',
]
