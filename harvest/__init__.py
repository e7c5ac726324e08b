"""
Harvest
Telegram bot which searches for torrents and drives their download through Transmission.
"""

__version__ = "0.3.0"
