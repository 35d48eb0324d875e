"""
Process-wide HTTP client factory.

Application code creates clients through create_http_client() rather
than constructing HttpClient directly. Installing an HttpOverrides
instance changes what every subsequent call returns, which is how the
http channel swaps in LoggingHttpClient without callers noticing:

    client = create_http_client()         # HttpClient, or a stand-in

    with http_overrides(MyOverrides()):   # scoped replacement
        client = create_http_client()     # MyOverrides.create_http_client()
"""

import ssl
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .client import HttpClient


class HttpOverrides:
    """Base factory; subclass and override create_http_client()."""

    def create_http_client(self, context: Optional[ssl.SSLContext] = None) -> HttpClient:
        return HttpClient(context)


_overrides: Optional[HttpOverrides] = None
_overrides_lock = threading.Lock()


def get_http_overrides() -> Optional[HttpOverrides]:
    """Return the installed overrides, or None for the default factory."""
    return _overrides


def set_http_overrides(overrides: Optional[HttpOverrides]) -> Optional[HttpOverrides]:
    """Install ``overrides`` process-wide and return the previous value."""
    global _overrides
    with _overrides_lock:
        previous, _overrides = _overrides, overrides
    return previous


def reset_http_overrides() -> None:
    """Restore the default factory."""
    set_http_overrides(None)


@contextmanager
def http_overrides(overrides: Optional[HttpOverrides]) -> Iterator[Optional[HttpOverrides]]:
    """Install ``overrides`` for the duration of a with-block."""
    previous = set_http_overrides(overrides)
    try:
        yield overrides
    finally:
        set_http_overrides(previous)


def create_http_client(context: Optional[ssl.SSLContext] = None) -> HttpClient:
    """Create an HTTP client through the installed overrides."""
    overrides = _overrides
    if overrides is None:
        return HttpClient(context)
    return overrides.create_http_client(context)
