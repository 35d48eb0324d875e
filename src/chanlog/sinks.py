"""
Listeners that deliver log entries somewhere visible.

developer_log_sink bridges entries into the standard ``logging`` module,
one logger per channel under the ``chanlog`` namespace. The shared
manager is created with it attached.

ConsoleSink writes entries to a file handle (default: stderr). The CLI
attaches one so enabled channels show up in the terminal.
"""

import logging
import sys
from typing import TextIO

from .levels import INFO, level_name
from .manager import LogEntry

LOGGER_PREFIX = 'chanlog'


def developer_log_sink(entry: LogEntry) -> None:
    """Forward an entry to ``logging.getLogger('chanlog.<channel>')``.

    The message is the record text; channel, encoded data and captured
    stack are attached as ``extra`` fields so handlers and formatters can
    reach them as ``record.channel``, ``record.data`` and ``record.stack``.
    """
    logger = logging.getLogger(f"{LOGGER_PREFIX}.{entry.channel}")
    if not logger.isEnabledFor(entry.level):
        return
    logger.log(entry.level, entry.message, extra={
        'channel': entry.channel,
        'data': entry.data,
        'stack': entry.stack,
    })


class ConsoleSink:
    """Print entries at or above ``min_level`` to a file handle.

    Usage::

        sink = ConsoleSink(min_level=DEBUG)
        manager.add_listener(sink)

    Output format::

        [http] #1 • GET • https://example.com/ open
        [http] #1 • GET • https://example.com/ 200 OK 512 bytes
            {"content-type":"text/html"}
    """

    def __init__(self, file: TextIO = None, min_level: int = INFO,
                 show_data: bool = True, show_levels: bool = False):
        self.file = file
        self.min_level = min_level
        self.show_data = show_data
        self.show_levels = show_levels

    def __call__(self, entry: LogEntry) -> None:
        if entry.level < self.min_level:
            return
        # Resolved per call so pytest's capsys sees the current stderr
        out = self.file if self.file is not None else sys.stderr
        prefix = f"[{entry.channel}]"
        if self.show_levels:
            prefix = f"{prefix} {level_name(entry.level)}:"
        print(f"{prefix} {entry.message}", file=out)
        if self.show_data and entry.data is not None:
            print(f"    {entry.data}", file=out)
        if entry.stack:
            print(entry.stack.rstrip(), file=out)
