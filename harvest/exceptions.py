"""
Harvest Exceptions
Custom exceptions so callers can tell configuration, daemon and selection failures apart.
"""


class HarvestError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(HarvestError):
    """Raised when environment configuration is missing or cannot be parsed."""


class DaemonError(HarvestError):
    """Raised when the Transmission daemon cannot be reached or rejects an RPC call."""


class SearchError(HarvestError):
    """Raised when the search feed cannot be fetched or parsed."""


class SelectionError(HarvestError):
    """Raised when a user's pick cannot be applied to a request."""


class ChoiceAlreadyMade(SelectionError):
    """Raised when a request already has a choice recorded."""


class InvalidChoice(SelectionError):
    """Raised when the picked index is outside the search results."""


class NotRequester(SelectionError):
    """Raised when someone other than the original requester tries to pick."""
