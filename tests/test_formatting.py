"""Tests for formatting helpers."""

import pytest

from harvest.utils.formatting import (
    escape_markdown_v2,
    format_eta,
    format_progress,
    format_rate,
    format_size,
)


class TestDownloadStats:
    """Progress, rate and ETA formatting."""

    def test_progress(self) -> None:
        """Test that progress is a percentage with 2 decimals."""
        assert format_progress(0.4567) == "45.67%"
        assert format_progress(1) == "100.00%"

    def test_rate(self) -> None:
        """Test that the rate divides bytes/sec by 10000."""
        assert format_rate(123456) == "12.35 MB/s"
        assert format_rate(0) == "0.00 MB/s"

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00:00"),
        (59, "00:00:59"),
        (3725, "01:02:05"),
        (90061, "25:01:01"),
        (-1, "--:--:--"),
        (-2, "--:--:--"),
    ])
    def test_eta(self, seconds, expected) -> None:
        """Test ETA formatting, including the daemon's unknown values."""
        assert format_eta(seconds) == expected


class TestText:
    """Text helpers."""

    def test_escape_markdown_v2(self) -> None:
        """Test escaping of MarkdownV2 reserved characters."""
        assert escape_markdown_v2("a_b (c).") == "a\\_b \\(c\\)\\."

    def test_format_size(self) -> None:
        """Test human readable sizes."""
        assert format_size(512) == "512 B"
        assert format_size(1536) == "1.50 KB"
        assert format_size(4 * 1024 ** 3) == "4.00 GB"
