"""chanlog — opt-in channel logging with lazy messages.

Named channels are registered, switched on and off at runtime, and
logged to only when on. Messages and data are thunks, so a disabled
channel costs a set lookup. Enabling the 'http' channel instruments
every client made with chanlog.http.create_http_client().

Public API:
    register_channel   — register a channel
    enable_logging     — switch a channel on or off
    should_log         — query a channel
    log / debug_log    — log lazily to a channel
    Log                — per-channel handle
    LogManager         — registry and dispatch engine
    init_manager / get_manager / reset_manager — shared manager lifecycle
"""

import logging

from chanlog._version import __version__, __app_name__
from chanlog.exceptions import (
    LoggingException, DuplicateChannelError, ChannelNotRegisteredError,
)
from chanlog.levels import DEBUG, INFO, WARNING, ERROR, CRITICAL
from chanlog.manager import (
    LogEntry, LogManager, init_manager, get_manager, reset_manager,
)
from chanlog.logs import (
    Log, register_channel, enable_logging, should_log, log, debug_log,
)
from chanlog.trace import trace

# Entries reach logging only where the application configures handlers
logging.getLogger("chanlog").addHandler(logging.NullHandler())

__all__ = [
    "__version__", "__app_name__",
    "LoggingException", "DuplicateChannelError", "ChannelNotRegisteredError",
    "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL",
    "LogEntry", "LogManager", "init_manager", "get_manager", "reset_manager",
    "Log", "register_channel", "enable_logging", "should_log", "log", "debug_log",
    "trace",
]
