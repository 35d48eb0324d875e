"""
Severity levels carried by log entries.

Channels are the on/off switch; levels only annotate an entry so sinks
can filter or style it. The values match the standard ``logging`` module
so the developer-log sink passes them through unchanged.

    ←── quieter ──────────────── louder ──→
    CRITICAL  ERROR  WARNING  INFO  DEBUG
       50      40      30      20    10
"""

DEBUG = 10         # Diagnostic notices (e.g. forwarded-but-not-instrumented calls)
INFO = 20          # Default level for log() calls
WARNING = 30       # Something unexpected, operation continued
ERROR = 40         # An observed operation failed
CRITICAL = 50      # Reserved for callers

LEVEL_NAMES = {
    DEBUG: 'DEBUG',
    INFO: 'INFO',
    WARNING: 'WARNING',
    ERROR: 'ERROR',
    CRITICAL: 'CRITICAL',
}


def level_name(level: int) -> str:
    """Return the display name for a level, or ``Level N`` if unnamed."""
    return LEVEL_NAMES.get(level, f'Level {level}')

