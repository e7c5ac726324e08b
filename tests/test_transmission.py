"""Tests for the Transmission client adapter."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import transmission_rpc
from transmission_rpc.error import TransmissionError

from harvest.config import TransmissionSettings
from harvest.exceptions import DaemonError
from harvest.models import Phase
from harvest.services.transmission import STATUS_FIELDS, TransmissionClient, connect, phase_for_status

SETTINGS = TransmissionSettings(host="transmission.local", port=9091, download_dir="/downloads")


def rpc_torrent(**fields):
    return SimpleNamespace(fields=fields)


def make_client(rpc) -> TransmissionClient:
    return TransmissionClient(SETTINGS, client=rpc)


class TestPhaseMapping:
    """Numeric status codes to phases."""

    @pytest.mark.parametrize("code,phase", [
        (0, Phase.VERIFYING),
        (1, Phase.VERIFYING),
        (2, Phase.VERIFYING),
        (3, Phase.QUEUED),
        (4, Phase.DOWNLOADING),
        (5, Phase.VERIFYING),
        (6, Phase.SEEDING),
    ])
    def test_known_codes(self, code, phase) -> None:
        """Test the mapping of every code Transmission defines."""
        assert phase_for_status(code) is phase

    def test_unknown_code(self) -> None:
        """Test that codes Transmission does not define map to None."""
        assert phase_for_status(99) is None


class TestAddUri:
    """torrent-add."""

    async def test_add_returns_handle(self) -> None:
        """Test adding a magnet returns the daemon's torrent."""
        rpc = MagicMock()
        rpc.add_torrent.return_value = rpc_torrent(id=5, name="ubuntu", hashString="abc")

        handle = await make_client(rpc).add_uri("magnet:?xt=urn:btih:abc")

        assert (handle.id, handle.name, handle.hash) == (5, "ubuntu", "abc")
        rpc.add_torrent.assert_called_once_with("magnet:?xt=urn:btih:abc", download_dir="/downloads")

    async def test_no_download_dir(self) -> None:
        """Test that the daemon's default directory is used when none is configured."""
        rpc = MagicMock()
        rpc.add_torrent.return_value = rpc_torrent(id=5, name="ubuntu", hashString="abc")
        client = TransmissionClient(TransmissionSettings(), client=rpc)

        await client.add_uri("magnet:?xt=urn:btih:abc")

        rpc.add_torrent.assert_called_once_with("magnet:?xt=urn:btih:abc")

    async def test_failure_raises_daemon_error(self) -> None:
        """Test that library errors surface as DaemonError."""
        rpc = MagicMock()
        rpc.add_torrent.side_effect = TransmissionError("invalid or corrupt torrent file")

        with pytest.raises(DaemonError, match="invalid or corrupt"):
            await make_client(rpc).add_uri("magnet:?xt=urn:btih:abc")

    async def test_empty_torrent_raises(self) -> None:
        """Test that a reply without a torrent ID raises DaemonError."""
        rpc = MagicMock()
        rpc.add_torrent.return_value = rpc_torrent()

        with pytest.raises(DaemonError, match="no torrent"):
            await make_client(rpc).add_uri("magnet:?xt=urn:btih:abc")


class TestConnection:
    """Lazy connection to the daemon."""

    async def test_connects_once(self) -> None:
        """Test that the library client is created on first use and then reused."""
        rpc = MagicMock()
        rpc.get_torrents.return_value = []
        factory = MagicMock(return_value=rpc)
        client = TransmissionClient(SETTINGS, factory=factory)

        assert await client.get_status(1) is None
        assert await client.get_status(1) is None

        factory.assert_called_once_with(SETTINGS)

    async def test_connection_error(self) -> None:
        """Test that a daemon that cannot be reached raises DaemonError and is retried later."""
        factory = MagicMock(side_effect=TransmissionError("connection refused"))
        client = TransmissionClient(SETTINGS, factory=factory)

        with pytest.raises(DaemonError, match="connection refused"):
            await client.get_status(1)
        with pytest.raises(DaemonError):
            await client.get_status(1)

        assert factory.call_count == 2

    async def test_close_reconnects(self) -> None:
        """Test that a closed client connects again on next use."""
        rpc = MagicMock()
        rpc.get_torrents.return_value = []
        factory = MagicMock(return_value=rpc)
        client = TransmissionClient(SETTINGS, factory=factory)

        await client.get_status(1)
        await client.close()
        await client.get_status(1)

        assert factory.call_count == 2

    def test_connect_passes_settings(self, monkeypatch) -> None:
        """Test that settings are handed to transmission_rpc.Client."""
        created = MagicMock()
        monkeypatch.setattr(transmission_rpc, "Client", created)

        connect(TransmissionSettings(host="nas", port=9092, username="u", password="p", ssl=True))

        created.assert_called_once_with(
            protocol="https", host="nas", port=9092, path="/transmission/rpc", username="u", password="p",
        )


class TestGetStatus:
    """torrent-get."""

    async def test_status_fields(self) -> None:
        """Test that torrent-get fields are mapped onto DaemonTorrent."""
        rpc = MagicMock()
        rpc.get_torrents.return_value = [rpc_torrent(
            id=5,
            name="ubuntu",
            hashString="abc",
            status=4,
            percentDone=0.5,
            rateDownload=2048,
            peersSendingToUs=3,
            eta=60,
        )]

        torrent = await make_client(rpc).get_status(5)

        rpc.get_torrents.assert_called_once_with(ids=[5], arguments=STATUS_FIELDS)
        assert torrent.status_code == 4
        assert torrent.percent_done == 0.5
        assert torrent.rate_download == 2048
        assert torrent.peers_sending_to_us == 3
        assert torrent.eta == 60

    async def test_missing_torrent(self) -> None:
        """Test that an empty torrent list means the torrent is gone."""
        rpc = MagicMock()
        rpc.get_torrents.return_value = []

        assert await make_client(rpc).get_status(5) is None

    async def test_failure_raises_daemon_error(self) -> None:
        """Test that library errors during torrent-get surface as DaemonError."""
        rpc = MagicMock()
        rpc.get_torrents.side_effect = TransmissionError("timed out")

        with pytest.raises(DaemonError, match="timed out"):
            await make_client(rpc).get_status(5)
