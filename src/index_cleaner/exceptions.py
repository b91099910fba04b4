"""Error taxonomy for the index cleaner.

Only :class:`ConfigError` and :class:`ListError` abort a run. The others are
caught close to where they happen and turned into recorded outcomes.
"""

from __future__ import annotations


class CleanerError(Exception):
    """Base class for all index cleaner errors."""
    pass


class ConfigError(CleanerError):
    """Raised for a missing or malformed rules file, or an invalid pattern."""
    pass


class ListError(CleanerError):
    """Raised when the index service cannot be listed for a service."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"failed to list indexes for {service}: {message}")
        self.service = service


class DateParseError(CleanerError):
    """Raised when an index name does not carry a date in the expected format."""

    def __init__(self, token: str, date_pattern: str) -> None:
        super().__init__(f"date token {token!r} does not match pattern {date_pattern!r}")
        self.token = token
        self.date_pattern = date_pattern


class DeleteError(CleanerError):
    """Raised when the index service rejects or fails a delete call."""

    def __init__(self, index_name: str, message: str) -> None:
        super().__init__(f"failed to delete {index_name}: {message}")
        self.index_name = index_name


class NotificationError(CleanerError):
    """Raised by the webhook transport; never fatal to a run."""
    pass
