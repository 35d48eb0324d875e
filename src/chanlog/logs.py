"""
Module-level logging API backed by the shared LogManager.

    from chanlog import Log, log, enable_logging

    gestures = Log('gestures', description='Gesture recognition events')

    def on_tap(x, y):
        gestures.log(lambda: 'tap', data=lambda: {'x': x, 'y': y})

    enable_logging('gestures')

Messages and data are thunks; for a disabled channel neither is
evaluated. Wrap expensive call sites in ``if __debug__:`` (or use
debug_log) to drop them entirely when Python runs with -O.
"""

from typing import Any, Optional

from .levels import INFO
from .manager import ToJsonEncodable, get_manager


def register_channel(name: str, description: Optional[str] = None) -> None:
    """Register a logging channel with an optional description."""
    get_manager().register_channel(name, description=description)


def enable_logging(channel: str, enable: bool = True) -> None:
    """Enable (or disable) logging for all events on ``channel``."""
    get_manager().enable_logging(channel, enable)


def should_log(channel: str) -> bool:
    """Return True if events on ``channel`` should be logged."""
    return get_manager().should_log(channel)


def log(channel: str, message: Any, data: Any = None,
        to_json_encodable: Optional[ToJsonEncodable] = None,
        level: int = INFO, stack_trace: bool = False) -> None:
    """Log a message if ``channel`` is enabled.

    ``message`` is evaluated only if the channel is enabled, and so is the
    optional ``data`` callback, whose result must be JSON-encodable (or
    convertible with ``to_json_encodable``).
    """
    get_manager().log(channel, message, data=data,
                      to_json_encodable=to_json_encodable,
                      level=level, stack_trace=stack_trace)


def debug_log(channel: str, message: Any, data: Any = None,
              to_json_encodable: Optional[ToJsonEncodable] = None,
              level: int = INFO, stack_trace: bool = False) -> None:
    """Like log(), removed when Python runs with -O."""
    if __debug__:
        get_manager().log(channel, message, data=data,
                          to_json_encodable=to_json_encodable,
                          level=level, stack_trace=stack_trace)


class Log:
    """A handle on one channel, registering it on first use.

    Constructing a second handle for an already-registered channel reuses
    the existing registration (its description is left unchanged).
    """

    def __init__(self, channel: str, description: Optional[str] = None,
                 manager=None):
        self.channel = channel
        self._manager = manager
        target = self.manager
        if not target.is_registered(channel):
            target.register_channel(channel, description=description)

    @property
    def manager(self):
        return self._manager if self._manager is not None else get_manager()

    @property
    def enabled(self) -> bool:
        return self.manager.should_log(self.channel)

    @enabled.setter
    def enabled(self, enabled: bool) -> None:
        self.manager.enable_logging(self.channel, enabled)

    def log(self, message: Any, data: Any = None,
            to_json_encodable: Optional[ToJsonEncodable] = None,
            level: int = INFO, stack_trace: bool = False) -> None:
        """See chanlog.log()."""
        self.manager.log(self.channel, message, data=data,
                         to_json_encodable=to_json_encodable,
                         level=level, stack_trace=stack_trace)

    def debug_log(self, message: Any, data: Any = None,
                  to_json_encodable: Optional[ToJsonEncodable] = None,
                  level: int = INFO, stack_trace: bool = False) -> None:
        if __debug__:
            self.log(message, data=data, to_json_encodable=to_json_encodable,
                     level=level, stack_trace=stack_trace)

    def __repr__(self) -> str:
        return f"Log({self.channel!r}, enabled={self.enabled})"
