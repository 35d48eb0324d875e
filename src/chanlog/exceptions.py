"""Exceptions raised on channel configuration errors.

Configuration errors are raised synchronously to the caller and never
retried. Errors raised while encoding log data or inside listeners are
not wrapped; they propagate as-is.
"""


class LoggingException(Exception):
    """Base class for logging configuration errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"Logging exception: {self.message}"


class DuplicateChannelError(LoggingException):
    """Raised when a channel name is registered twice."""

    def __init__(self, name: str):
        super().__init__(f'a channel named "{name}" is already registered')
        self.name = name


class ChannelNotRegisteredError(LoggingException):
    """Raised by strict managers when enabling an unknown channel."""

    def __init__(self, name: str):
        super().__init__(f'channel "{name}" is not registered')
        self.name = name
