"""
The 'http' channel: request logging by client substitution.

Enabling the 'http' channel runs its install handler, which installs
LoggingHttpOverrides as the process-wide factory. From then on every
create_http_client() call returns a LoggingHttpClient wrapping a real
HttpClient. Each open_url() call logs three correlated entries:

    #1 • GET • https://example.com/ open
    #1 • GET • https://example.com/ request ready
    #1 • GET • https://example.com/ 200 OK 1256 bytes   (data: headers)

A request that fails or is cancelled ends with a 'failed'/'cancelled'
entry instead. Everything else on the client is forwarded unchanged;
the forwarded calls log a DEBUG 'not instrumented' notice first.
"""

import functools
import itertools
import ssl
from typing import Callable, Dict, Optional

import httpx

from ..channels import BUILTIN_CHANNEL_DESCRIPTIONS
from ..levels import DEBUG, ERROR, WARNING
from ..logs import Log
from .client import HttpClient, HttpClientRequest, URLTypes
from .overrides import HttpOverrides, get_http_overrides, set_http_overrides

HTTP_CHANNEL = 'http'

ClientFactory = Callable[[Optional[ssl.SSLContext]], HttpClient]


def headers_to_map(headers: httpx.Headers) -> Dict[str, str]:
    """Flatten headers to name -> comma-joined values."""
    flattened: Dict[str, str] = {}
    for name in headers.keys():
        flattened[name] = ','.join(headers.get_list(name))
    return flattened


def _forwarded_property(name: str, notice: bool = False) -> property:
    def fget(self):
        return getattr(self.proxy, name)

    def fset(self, value):
        if notice:
            self._not_instrumented(name)
        setattr(self.proxy, name, value)

    return property(fget, fset, doc=f"Forwarded to the wrapped client's ``{name}``.")


def _forwarded_method(name: str) -> Callable:
    def forward(self, *args, **kwargs):
        self._not_instrumented(name)
        return getattr(self.proxy, name)(*args, **kwargs)

    forward.__name__ = forward.__qualname__ = name
    forward.__doc__ = f"Forwarded to the wrapped client's ``{name}()``."
    return forward


class LoggingHttpClient:
    """HttpClient stand-in that logs requests on the 'http' channel.

    The wrapped client is built by ``client_factory`` (HttpClient by
    default), never through create_http_client(), so wrapping cannot
    recurse into another LoggingHttpClient.

    Args:
        context: SSL context handed to the wrapped client
        manager: LogManager to log through (default: the shared manager)
        client_factory: Builds the wrapped client from ``context``
    """

    def __init__(self, context: Optional[ssl.SSLContext] = None, *,
                 manager=None, client_factory: Optional[ClientFactory] = None):
        factory = client_factory or HttpClient
        self.proxy: HttpClient = factory(context)
        self._log = Log(HTTP_CHANNEL, BUILTIN_CHANNEL_DESCRIPTIONS[HTTP_CHANNEL],
                        manager=manager)
        self._request_ids = itertools.count(1)

    def _not_instrumented(self, name: str) -> None:
        self._log.log(lambda: f"{name} (not instrumented)", level=DEBUG)

    # Settings
    connection_timeout = _forwarded_property('connection_timeout')
    idle_timeout = _forwarded_property('idle_timeout')
    max_connections_per_host = _forwarded_property('max_connections_per_host')
    user_agent = _forwarded_property('user_agent')
    auto_uncompress = _forwarded_property('auto_uncompress')

    # Hooks
    authenticate = _forwarded_property('authenticate', notice=True)
    authenticate_proxy = _forwarded_property('authenticate_proxy', notice=True)
    bad_certificate_callback = _forwarded_property('bad_certificate_callback', notice=True)
    find_proxy = _forwarded_property('find_proxy', notice=True)

    @property
    def closed(self) -> bool:
        return self.proxy.closed

    # Credentials and lifecycle
    add_credentials = _forwarded_method('add_credentials')
    add_proxy_credentials = _forwarded_method('add_proxy_credentials')
    close = _forwarded_method('close')

    # Requests by host/port/path and by URL
    open = _forwarded_method('open')
    get = _forwarded_method('get')
    get_url = _forwarded_method('get_url')
    post = _forwarded_method('post')
    post_url = _forwarded_method('post_url')
    put = _forwarded_method('put')
    put_url = _forwarded_method('put_url')
    patch = _forwarded_method('patch')
    patch_url = _forwarded_method('patch_url')
    delete = _forwarded_method('delete')
    delete_url = _forwarded_method('delete_url')
    head = _forwarded_method('head')
    head_url = _forwarded_method('head_url')

    async def open_url(self, method: str, url: URLTypes) -> HttpClientRequest:
        """Open a request through the wrapped client, logging its lifecycle.

        The returned request is the wrapped client's own object; logging
        observes it through ``request.done`` and never alters it.
        """
        request_id = next(self._request_ids)
        label = f"#{request_id} • {method} • {url}"

        self._log.log(lambda: f"{label} open")
        try:
            request = await self.proxy.open_url(method, url)
        except Exception as e:
            self._log.log(lambda: f"{label} failed: {e}", level=ERROR)
            raise
        self._log.log(lambda: f"{label} request ready")

        request.done.add_done_callback(functools.partial(self._on_done, label))
        return request

    def _on_done(self, label: str, done) -> None:
        if done.cancelled():
            self._log.log(lambda: f"{label} cancelled", level=WARNING)
            return
        error = done.exception()
        if error is not None:
            self._log.log(lambda: f"{label} failed: {type(error).__name__}: {error}",
                          level=ERROR)
            return
        response = done.result()
        self._log.log(
            lambda: (f"{label} {response.status_code} {response.reason_phrase} "
                     f"{response.content_length} bytes"),
            data=lambda: headers_to_map(response.headers),
        )

    def __repr__(self) -> str:
        return f"<LoggingHttpClient wrapping {self.proxy!r}>"


class LoggingHttpOverrides(HttpOverrides):
    """Factory handing out LoggingHttpClient instances."""

    def __init__(self, manager=None, client_factory: Optional[ClientFactory] = None):
        self.manager = manager
        self.client_factory = client_factory
        # Factory in place before install; restored by uninstall_http_channel()
        self.previous: Optional[HttpOverrides] = None

    def create_http_client(self, context: Optional[ssl.SSLContext] = None) -> LoggingHttpClient:
        return LoggingHttpClient(context, manager=self.manager,
                                 client_factory=self.client_factory)


def install_http_channel(manager, client_factory: Optional[ClientFactory] = None) -> None:
    """Register and enable the 'http' channel and install request logging.

    Normally run by the manager's install handler the first time 'http'
    is enabled.
    """
    if not manager.is_registered(HTTP_CHANNEL):
        manager.register_channel(HTTP_CHANNEL, BUILTIN_CHANNEL_DESCRIPTIONS[HTTP_CHANNEL])
    if not manager.should_log(HTTP_CHANNEL):
        manager.enable_logging(HTTP_CHANNEL)
    overrides = LoggingHttpOverrides(manager, client_factory)
    previous = set_http_overrides(overrides)
    if isinstance(previous, LoggingHttpOverrides):
        previous = previous.previous
    overrides.previous = previous


def uninstall_http_channel() -> bool:
    """Remove request logging if installed; returns True if it was.

    The factory that was installed before request logging is restored.
    """
    current = get_http_overrides()
    if isinstance(current, LoggingHttpOverrides):
        set_http_overrides(current.previous)
        return True
    return False
