"""
LogManager — the channel registry and dispatch engine.

Central coordinator for opt-in channel logging. A message is dispatched
only when its channel is registered and enabled:

    register_channel('gestures')          # known, disabled
    enable_logging('gestures')            # known, enabled
    log('gestures', lambda: 'tap')        # evaluated and dispatched

Messages and data are passed as thunks (zero-argument callables) so a
disabled channel costs one set lookup and nothing else. Enabled entries
are pushed synchronously to every listener, in registration order, on
the caller's thread.

Enablement is lenient: enabling a channel before it is registered records
the desired state, and the channel reports enabled once registered. Pass
strict=True to get ChannelNotRegisteredError instead.

Enabling a channel also runs the pending install handlers. A handler
that claims the channel name is removed, so each handler fires once.
The default handler installs HTTP instrumentation for the 'http' channel.

Registry, enablement, listener and handler state are guarded by one
re-entrant lock; listeners and handlers are called outside of it.
"""

import json
import threading
import traceback
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Set

from .channels import BUILTIN_CHANNEL_DESCRIPTIONS, BUILTIN_CHANNELS, ChannelInfo
from .exceptions import ChannelNotRegisteredError, DuplicateChannelError, LoggingException
from .levels import INFO


class LogEntry(NamedTuple):
    """One dispatched log entry."""
    channel: str
    message: str
    data: Optional[str] = None
    level: int = INFO
    stack: Optional[str] = None


LogListener = Callable[[LogEntry], None]
ChannelInstallHandler = Callable[[str], bool]
ToJsonEncodable = Callable[[Any], Any]


class LogManager:
    """Channel registry, listener set and dispatch engine.

    Usage::

        manager = LogManager()
        manager.add_listener(print)
        manager.register_channel('gestures', description='Gesture events')
        manager.enable_logging('gestures')
        manager.log('gestures', lambda: 'tap', data=lambda: {'x': 1, 'y': 2})
    """

    def __init__(self, strict: bool = False, install_defaults: bool = True):
        self.strict = strict
        self._lock = threading.RLock()
        self._descriptions: Dict[str, Optional[str]] = {}
        self._enabled: Set[str] = set()
        self._requested: Dict[str, bool] = {}
        self._listeners: List[LogListener] = []
        self._install_handlers: List[ChannelInstallHandler] = []
        if install_defaults:
            self.add_install_handler(_http_install_handler(self))

    # -------------------------------------------------------------------------
    # Channel registry
    # -------------------------------------------------------------------------

    def register_channel(self, name: str, description: Optional[str] = None) -> None:
        """Register a channel.

        If the channel was enabled before registration (lenient mode), it
        becomes enabled now.

        Raises:
            DuplicateChannelError: If a channel with this name exists
            LoggingException: If the name is empty
        """
        if not name:
            raise LoggingException('channel names must be non-empty')
        with self._lock:
            if name in self._descriptions:
                raise DuplicateChannelError(name)
            self._descriptions[name] = description
            if self._requested.pop(name, False):
                self._enabled.add(name)

    def is_registered(self, name: str) -> bool:
        return name in self._descriptions

    def enable_logging(self, name: str, enable: bool = True) -> None:
        """Enable (or disable) logging for all events on a channel.

        Enabling runs the pending install handlers for ``name``.

        Raises:
            ChannelNotRegisteredError: Strict managers only, for unknown names
        """
        with self._lock:
            if name in self._descriptions:
                if enable:
                    self._enabled.add(name)
                else:
                    self._enabled.discard(name)
            elif self.strict:
                raise ChannelNotRegisteredError(name)
            else:
                self._requested[name] = enable
        if enable:
            self._run_install_handlers(name)

    def should_log(self, name: str) -> bool:
        """True if events on ``name`` are dispatched. Unknown names are off."""
        return name in self._enabled

    @property
    def channels(self) -> Dict[str, ChannelInfo]:
        """Snapshot of registered channels keyed by name."""
        with self._lock:
            return {
                name: ChannelInfo(name, description, name in self._enabled)
                for name, description in self._descriptions.items()
            }

    @property
    def channel_descriptions(self) -> Dict[str, Optional[str]]:
        """A copy of the channel -> description map."""
        with self._lock:
            return dict(self._descriptions)

    @property
    def pending_states(self) -> Dict[str, bool]:
        """States requested for channels that are not registered yet."""
        with self._lock:
            return dict(self._requested)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_listener(self, listener: LogListener) -> None:
        """Add a listener; adding one that is already present is a no-op."""
        if listener is None:
            return
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: LogListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listeners(self) -> List[LogListener]:
        with self._lock:
            return list(self._listeners)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def log(self, channel: str, message: Any, data: Any = None,
            to_json_encodable: Optional[ToJsonEncodable] = None,
            level: int = INFO, stack_trace: bool = False) -> None:
        """Log a message if ``channel`` is enabled.

        ``message`` and ``data`` may be thunks; they are evaluated only
        when the channel is enabled. Data is encoded as compact JSON, with
        ``to_json_encodable`` converting objects json cannot handle.

        Args:
            channel: Channel name
            message: Message or zero-argument callable returning one
            data: JSON-encodable value or callable returning one
            to_json_encodable: Fallback converter passed to json.dumps
            level: Severity level (see chanlog.levels)
            stack_trace: Capture the caller's stack into the entry

        Raises:
            TypeError, ValueError: If data cannot be encoded
        """
        if channel not in self._enabled:
            return

        if callable(message):
            message = message()
        if not isinstance(message, str):
            message = str(message)

        if callable(data):
            data = data()
        encoded = None
        if data is not None:
            encoded = json.dumps(data, default=to_json_encodable,
                                 separators=(',', ':'))

        stack = None
        if stack_trace:
            stack = ''.join(traceback.format_stack()[:-1])

        entry = LogEntry(channel, message, encoded, level, stack)
        for listener in self.listeners:
            listener(entry)

    def debug_log(self, channel: str, message: Any, data: Any = None,
                  to_json_encodable: Optional[ToJsonEncodable] = None,
                  level: int = INFO, stack_trace: bool = False) -> None:
        """Like log(), but compiled out when Python runs with -O."""
        if __debug__:
            self.log(channel, message, data=data,
                     to_json_encodable=to_json_encodable,
                     level=level, stack_trace=stack_trace)

    # -------------------------------------------------------------------------
    # Install handlers
    # -------------------------------------------------------------------------

    def add_install_handler(self, handler: ChannelInstallHandler) -> None:
        """Add a one-shot handler run whenever a channel is enabled.

        The handler receives the channel name and returns True when it
        claims it; claimed handlers are removed.
        """
        with self._lock:
            if handler not in self._install_handlers:
                self._install_handlers.append(handler)

    @property
    def install_handlers(self) -> List[ChannelInstallHandler]:
        with self._lock:
            return list(self._install_handlers)

    def _run_install_handlers(self, name: str) -> None:
        for handler in self.install_handlers:
            # Taken out while running so re-entrant enables skip it
            with self._lock:
                if handler not in self._install_handlers:
                    continue
                position = self._install_handlers.index(handler)
                self._install_handlers.remove(handler)
            claimed = False
            try:
                claimed = handler(name)
            finally:
                if not claimed:
                    with self._lock:
                        if handler not in self._install_handlers:
                            self._install_handlers.insert(position, handler)


def _http_install_handler(manager: LogManager) -> ChannelInstallHandler:
    """Build the handler that installs HTTP instrumentation on 'http'."""
    def install(name: str) -> bool:
        if name != 'http':
            return False
        # Lazy import: chanlog.http imports httpx
        from .http.channel import install_http_channel
        install_http_channel(manager)
        return True
    return install


# =============================================================================
# Module-level shared manager
# =============================================================================

_manager: Optional[LogManager] = None
_manager_lock = threading.Lock()


def _build_manager(strict: bool = False,
                   listeners: Optional[List[LogListener]] = None) -> LogManager:
    from .sinks import developer_log_sink

    manager = LogManager(strict=strict)
    for name in sorted(BUILTIN_CHANNELS):
        manager.register_channel(name, BUILTIN_CHANNEL_DESCRIPTIONS.get(name))
    manager.add_listener(developer_log_sink)
    for listener in listeners or []:
        manager.add_listener(listener)
    return manager


def init_manager(strict: bool = False,
                 listeners: Optional[List[LogListener]] = None) -> LogManager:
    """Create the shared LogManager, replacing any existing one.

    Call once at program startup. The built-in channels are registered
    (disabled) and the developer-log sink is attached first, followed by
    ``listeners``.

    HTTP instrumentation installed through the old manager is removed.

    Returns:
        The new shared manager
    """
    global _manager
    from .http.channel import uninstall_http_channel

    manager = _build_manager(strict, listeners)
    with _manager_lock:
        _manager = manager
    uninstall_http_channel()
    return manager


def get_manager() -> LogManager:
    """Get the shared LogManager, creating a default one if needed."""
    global _manager
    with _manager_lock:
        if _manager is None:
            _manager = _build_manager()
        return _manager


def reset_manager() -> None:
    """Drop the shared manager; the next get_manager() builds a fresh one.

    HTTP instrumentation installed through the old manager is removed.
    """
    global _manager
    from .http.overrides import reset_http_overrides

    with _manager_lock:
        _manager = None
    reset_http_overrides()
