"""Console output for the chanlog CLI.

Bridges the CLI's -v / -Q flags to a ConsoleSink on the shared manager
and provides the print_*() helpers commands use for their own output.

Verbosity axis (verbose count minus quiet count):
    ←── quieter ─────────────── default ──── louder ──→
    -4       -3        -2      -1       0       1
    silent   CRITICAL  ERROR   WARNING  INFO    DEBUG
"""

import json
import sys
from typing import Optional

from chanlog.levels import CRITICAL, DEBUG, INFO
from chanlog.sinks import ConsoleSink

_verbosity = 0


def level_for_verbosity(verbosity: int) -> Optional[int]:
    """Map a verbosity count to a ConsoleSink threshold (None = silent)."""
    if verbosity <= -4:
        return None
    return max(DEBUG, min(CRITICAL, INFO - 10 * verbosity))


def configure_console(manager, verbosity: int = 0, file=None) -> Optional[ConsoleSink]:
    """Attach a ConsoleSink for ``verbosity`` to ``manager``.

    Returns the sink, or None at the silent level.
    """
    global _verbosity
    _verbosity = verbosity
    level = level_for_verbosity(verbosity)
    if level is None:
        return None
    sink = ConsoleSink(file=file, min_level=level, show_levels=verbosity > 0)
    manager.add_listener(sink)
    return sink


def _should_print():
    """User-facing print_*() output shows above -3 (errors only) verbosity."""
    return _verbosity > -3


def print_ok(msg):
    """Print a success message."""
    if _should_print():
        print(f"  [OK] {msg}")


def print_warn(msg):
    """Print a warning message."""
    if _should_print():
        print(f"  [WARN] {msg}")


def print_error(msg):
    """Print an error message to stderr (shown unless silent)."""
    if _verbosity > -4:
        print(f"  ERROR: {msg}", file=sys.stderr)


def print_json(data):
    """Print data as indented JSON (always shown; it is the command's result)."""
    print(json.dumps(data, indent=2, sort_keys=True))
