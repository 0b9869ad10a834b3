"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class NotPlayingError(DomainError):
    """Raised when an operation needs an active session and none exists."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Cannot '{operation}' while nothing is playing"
        super().__init__(msg, code="NOT_PLAYING")
        self.operation = operation


class NoPermissionError(DomainError):
    """Raised when the requester may not connect or speak in the target channel."""

    def __init__(self, user_id: int, channel_id: int | None, message: str | None = None) -> None:
        msg = message or f"User {user_id} cannot connect and speak in channel {channel_id}"
        super().__init__(msg, code="NO_PERMISSION")
        self.user_id = user_id
        self.channel_id = channel_id


class ResolutionFailedError(DomainError):
    """Raised when the metadata provider cannot resolve a query, URL or stream."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code="RESOLUTION_FAILED")
        self.query = query


class ConnectFailedError(DomainError):
    """Raised when joining a voice channel fails."""

    def __init__(self, channel_id: int | None, message: str | None = None) -> None:
        msg = message or f"Could not connect to voice channel {channel_id}"
        super().__init__(msg, code="CONNECT_FAILED")
        self.channel_id = channel_id


class StreamFailedError(DomainError):
    """Raised when the voice layer refuses to start an audio stream."""

    def __init__(self, url: str, message: str | None = None) -> None:
        msg = message or f"Could not start audio stream for {url}"
        super().__init__(msg, code="STREAM_FAILED")
        self.url = url


class InvalidRemovalSpecError(DomainError):
    """Raised when a remove argument is neither an index nor an ``a-b`` range."""

    def __init__(self, raw: str, message: str | None = None) -> None:
        msg = message or f"'{raw}' is not a queue position or range"
        super().__init__(msg, code="INVALID_ARGUMENT")
        self.raw = raw
