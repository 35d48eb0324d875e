"""
HttpClient — a two-phase HTTP client over httpx.AsyncClient.

Requests are opened first and sent later, which gives observers two
distinct completion points:

    client = HttpClient()
    request = await client.get_url('https://example.com/')   # opened
    request.headers['Accept'] = 'text/html'
    response = await request.close()                          # sent
    print(response.status_code, response.content_length)
    await client.close()

``request.done`` is an asyncio.Future that resolves to the same response
(or the failure) once the request completes, whoever awaited close().

Connection handling, TLS, redirects and decompression are httpx's job.
This module adds the surface around it: per-URL credentials and proxy
credentials, authentication and bad-certificate callbacks, proxy
selection, and timeouts/limits read when a route's httpx client is first
built.
"""

import asyncio
import inspect
import ssl
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union
from urllib.parse import quote

import httpx

from .._version import get_user_agent

URLTypes = Union[str, httpx.URL]

_DEFAULT_PORTS = {'http': 80, 'https': 443}
_MAX_REDIRECTS = 5


class HttpException(Exception):
    """Raised on client misuse (request after close, write after send)."""

    def __init__(self, message: str, url: Optional[httpx.URL] = None):
        super().__init__(message)
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url is not None:
            return f"HttpException: {self.message}, uri = {self.url}"
        return f"HttpException: {self.message}"


# =============================================================================
# Credentials
# =============================================================================

class HttpClientCredentials:
    """Base class for credentials registered with add_credentials()."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def to_auth(self) -> httpx.Auth:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.username!r}, ***)"


class HttpClientBasicCredentials(HttpClientCredentials):
    def to_auth(self) -> httpx.Auth:
        return httpx.BasicAuth(self.username, self.password)


class HttpClientDigestCredentials(HttpClientCredentials):
    def to_auth(self) -> httpx.Auth:
        return httpx.DigestAuth(self.username, self.password)


# =============================================================================
# Request / Response
# =============================================================================

class HttpClientResponse:
    """A completed response; the body has already been read."""

    def __init__(self, response: httpx.Response, auto_uncompress: bool = True):
        self.raw = response
        self._auto_uncompress = auto_uncompress

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def reason_phrase(self) -> str:
        return self.raw.reason_phrase

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    @property
    def url(self) -> httpx.URL:
        return self.raw.url

    @property
    def redirects(self) -> List[httpx.Response]:
        return list(self.raw.history)

    @property
    def content_length(self) -> int:
        """Declared body length, or -1 when unknown.

        Compressed bodies report -1 when auto_uncompress is on, since the
        declared length no longer matches the decoded content.
        """
        declared = self.raw.headers.get('content-length')
        if declared is None or not declared.isdigit():
            return -1
        if self._auto_uncompress and self.raw.headers.get('content-encoding'):
            return -1
        return int(declared)

    @property
    def content(self) -> bytes:
        return self.raw.content

    @property
    def text(self) -> str:
        return self.raw.text

    def json(self) -> Any:
        return self.raw.json()

    def __repr__(self) -> str:
        return f"<HttpClientResponse [{self.status_code} {self.reason_phrase}]>"


class HttpClientRequest:
    """An opened request. Add headers and body, then ``await close()``."""

    def __init__(self, client: 'HttpClient', method: str, url: httpx.URL,
                 headers: Optional[Dict[str, str]] = None):
        self._client = client
        self.method = method
        self.url = url
        self.headers = httpx.Headers(headers or {})
        self.follow_redirects = True
        self._body = bytearray()
        self._sent = False
        self._done: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> asyncio.Future:
        """Future resolving to the HttpClientResponse once sent."""
        return self._done

    @property
    def content_length(self) -> int:
        return len(self._body)

    def write(self, data: Union[bytes, str]) -> None:
        if self._sent:
            raise HttpException('request already sent', self.url)
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._body.extend(data)

    async def close(self) -> HttpClientResponse:
        """Send the request and return the response.

        Calling close() again returns the same response.
        """
        if self._sent:
            return await asyncio.shield(self._done)
        self._sent = True
        self._client._track(self._done)
        try:
            response = await self._client._send(self)
        except asyncio.CancelledError:
            self._done.cancel()
            raise
        except Exception as e:
            self._done.set_exception(e)
            raise
        self._done.set_result(response)
        return response

    def _build(self, client: httpx.AsyncClient) -> httpx.Request:
        content = bytes(self._body) if self._body else None
        return client.build_request(self.method, self.url,
                                    headers=self.headers, content=content)

    def __repr__(self) -> str:
        return f"<HttpClientRequest [{self.method} {self.url}]>"


# =============================================================================
# Client
# =============================================================================

class HttpClient:
    """HTTP client with an open-then-send request model.

    Settings (``connection_timeout``, ``idle_timeout``,
    ``max_connections_per_host``, ``user_agent``, ``auto_uncompress``) and
    callbacks may be changed at any time; timeouts and limits are read when
    an underlying httpx client is built for a route, i.e. on the first
    request through that proxy or verification mode.

    ``max_connections_per_host`` is applied as httpx's pool-wide
    ``max_connections``; httpx has no per-host limit.

    Args:
        context: SSL context used to verify servers (default: system CAs)
        transport: httpx transport to send through (proxies are then unused)
    """

    def __init__(self, context: Optional[ssl.SSLContext] = None, *,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.context = context
        self._transport = transport

        self.connection_timeout: Optional[float] = None
        self.idle_timeout: float = 15.0
        self.max_connections_per_host: Optional[int] = None
        self.user_agent: Optional[str] = get_user_agent()
        self.auto_uncompress: bool = True

        self.authenticate: Optional[Callable[..., Any]] = None
        self.authenticate_proxy: Optional[Callable[..., Any]] = None
        self.bad_certificate_callback: Optional[Callable[..., Any]] = None
        self.find_proxy: Optional[Callable[[httpx.URL], str]] = None

        self._credentials: List[Tuple[httpx.URL, Optional[str], HttpClientCredentials]] = []
        self._proxy_credentials: Dict[Tuple[str, int], Tuple[Optional[str], HttpClientCredentials]] = {}
        self._clients: Dict[Tuple[Optional[str], bool], httpx.AsyncClient] = {}
        self._retired: List[httpx.AsyncClient] = []
        self._trusted_hosts: Set[Tuple[str, int]] = set()
        self._inflight: Set[asyncio.Future] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def add_credentials(self, url: URLTypes, realm: Optional[str],
                        credentials: HttpClientCredentials) -> None:
        """Use ``credentials`` for requests below ``url`` (optionally per realm)."""
        self._credentials.append((httpx.URL(url), realm, credentials))

    def add_proxy_credentials(self, host: str, port: int, realm: Optional[str],
                              credentials: HttpClientCredentials) -> None:
        """Use ``credentials`` when connecting through proxy ``host:port``."""
        self._proxy_credentials[(host, port)] = (realm, credentials)
        self._discard_routes(host, port)

    def _find_credentials(self, url: httpx.URL,
                          realm: Optional[str] = None) -> Optional[HttpClientCredentials]:
        best, best_len = None, -1
        for base, cred_realm, credentials in self._credentials:
            if (base.scheme, base.host, _port(base)) != (url.scheme, url.host, _port(url)):
                continue
            if not url.path.startswith(base.path):
                continue
            if realm is not None and cred_realm is not None and cred_realm != realm:
                continue
            if len(base.path) > best_len:
                best, best_len = credentials, len(base.path)
        return best

    # -------------------------------------------------------------------------
    # Opening requests
    # -------------------------------------------------------------------------

    async def open(self, method: str, host: str, port: int, path: str) -> HttpClientRequest:
        """Open a plain-http request to ``host:port`` for ``path``."""
        return await self.open_url(method, _join(host, port, path))

    async def open_url(self, method: str, url: URLTypes) -> HttpClientRequest:
        """Open a request for ``url``; send it with ``await request.close()``.

        Raises:
            HttpException: If the client has been closed
            ValueError: For schemes other than http/https
        """
        url = httpx.URL(url)
        if self._closed:
            raise HttpException('HTTP client is closed', url)
        if url.scheme not in _DEFAULT_PORTS:
            raise ValueError(f"Unsupported scheme '{url.scheme}' in URI {url}")

        headers = {}
        if self.user_agent is not None:
            headers['User-Agent'] = self.user_agent
        if not self.auto_uncompress:
            headers['Accept-Encoding'] = 'identity'
        return HttpClientRequest(self, method.upper(), url, headers)

    async def get(self, host: str, port: int, path: str) -> HttpClientRequest:
        return await self.open('GET', host, port, path)

    async def get_url(self, url: URLTypes) -> HttpClientRequest:
        return await self.open_url('GET', url)

    async def post(self, host: str, port: int, path: str) -> HttpClientRequest:
        return await self.open('POST', host, port, path)

    async def post_url(self, url: URLTypes) -> HttpClientRequest:
        return await self.open_url('POST', url)

    async def put(self, host: str, port: int, path: str) -> HttpClientRequest:
        return await self.open('PUT', host, port, path)

    async def put_url(self, url: URLTypes) -> HttpClientRequest:
        return await self.open_url('PUT', url)

    async def patch(self, host: str, port: int, path: str) -> HttpClientRequest:
        return await self.open('PATCH', host, port, path)

    async def patch_url(self, url: URLTypes) -> HttpClientRequest:
        return await self.open_url('PATCH', url)

    async def delete(self, host: str, port: int, path: str) -> HttpClientRequest:
        return await self.open('DELETE', host, port, path)

    async def delete_url(self, url: URLTypes) -> HttpClientRequest:
        return await self.open_url('DELETE', url)

    async def head(self, host: str, port: int, path: str) -> HttpClientRequest:
        return await self.open('HEAD', host, port, path)

    async def head_url(self, url: URLTypes) -> HttpClientRequest:
        return await self.open_url('HEAD', url)

    # -------------------------------------------------------------------------
    # Closing
    # -------------------------------------------------------------------------

    async def close(self, force: bool = False) -> None:
        """Refuse new requests and release connections.

        Without ``force``, requests already sent are allowed to finish
        first; with it, they are aborted.
        """
        self._closed = True
        if not force and self._inflight:
            await asyncio.wait(list(self._inflight))
        clients = list(self._clients.values()) + self._retired
        self._clients.clear()
        self._retired.clear()
        for client in clients:
            await client.aclose()

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    def _track(self, done: asyncio.Future) -> None:
        self._inflight.add(done)
        done.add_done_callback(self._inflight.discard)

    async def _send(self, request: HttpClientRequest) -> HttpClientResponse:
        url = request.url
        proxy = self._resolve_proxy(url)
        credentials = self._find_credentials(url)
        response = await self._send_once(request, proxy, credentials)

        if response.status_code == 401 and credentials is None and self.authenticate:
            scheme, realm = _parse_challenge(response.headers.get('www-authenticate'))
            if await _maybe_await(self.authenticate(url, scheme, realm)):
                credentials = self._find_credentials(url, realm)
                if credentials is not None:
                    await response.aclose()
                    response = await self._send_once(request, proxy, credentials)

        elif response.status_code == 407 and proxy and self.authenticate_proxy:
            proxy_url = httpx.URL(proxy)
            scheme, realm = _parse_challenge(response.headers.get('proxy-authenticate'))
            if await _maybe_await(self.authenticate_proxy(
                    proxy_url.host, _port(proxy_url), scheme, realm)):
                await response.aclose()
                proxy = self._resolve_proxy(url)
                response = await self._send_once(request, proxy, credentials)

        return HttpClientResponse(response, self.auto_uncompress)

    async def _send_once(self, request: HttpClientRequest, proxy: Optional[str],
                         credentials: Optional[HttpClientCredentials]) -> httpx.Response:
        url = request.url
        target = (url.host, _port(url))
        auth = credentials.to_auth() if credentials is not None else None
        client = self._route(proxy, verify=target not in self._trusted_hosts)
        try:
            response = await client.send(request._build(client), auth=auth,
                                         follow_redirects=request.follow_redirects)
        except httpx.ConnectError as e:
            if self.bad_certificate_callback is None or not _is_certificate_error(e):
                raise
            pem = await asyncio.to_thread(ssl.get_server_certificate, target)
            if not await _maybe_await(self.bad_certificate_callback(pem, *target)):
                raise
            self._trusted_hosts.add(target)
            client = self._route(proxy, verify=False)
            response = await client.send(request._build(client), auth=auth,
                                         follow_redirects=request.follow_redirects)
        await response.aread()
        return response

    def _resolve_proxy(self, url: httpx.URL) -> Optional[str]:
        if self.find_proxy is None:
            return None
        directive = self.find_proxy(url) or 'DIRECT'
        first = directive.split(';')[0].strip()
        if first.upper() == 'DIRECT':
            return None
        keyword, _, address = first.partition(' ')
        if keyword.upper() != 'PROXY' or not address.strip():
            raise HttpException(f"invalid proxy configuration: {directive!r}", url)
        host, _, port = address.strip().rpartition(':')
        if not host:
            host, port = port, '1080'
        return _proxy_url(host, int(port), self._proxy_credentials.get((host, int(port))))

    def _route(self, proxy: Optional[str], verify: bool) -> httpx.AsyncClient:
        key = (proxy, verify)
        client = self._clients.get(key)
        if client is None:
            limits = httpx.Limits(max_connections=self.max_connections_per_host,
                                  keepalive_expiry=self.idle_timeout)
            kwargs = dict(
                timeout=httpx.Timeout(None, connect=self.connection_timeout),
                limits=limits,
                max_redirects=_MAX_REDIRECTS,
                verify=(self.context or True) if verify else False,
            )
            if self._transport is not None:
                kwargs['transport'] = self._transport
            elif proxy is not None:
                kwargs['proxy'] = proxy
            client = httpx.AsyncClient(**kwargs)
            self._clients[key] = client
        return client

    def _discard_routes(self, host: str, port: int) -> None:
        # Routes through this proxy are rebuilt with the new credentials;
        # the old clients may still carry in-flight requests.
        for key in list(self._clients):
            proxy = key[0]
            if proxy is None:
                continue
            proxy_url = httpx.URL(proxy)
            if (proxy_url.host, _port(proxy_url)) == (host, port):
                self._retired.append(self._clients.pop(key))

    def __repr__(self) -> str:
        state = 'closed' if self._closed else 'open'
        return f"<{type(self).__name__} [{state}]>"


# =============================================================================
# Helpers
# =============================================================================

def _port(url: httpx.URL) -> int:
    return url.port or _DEFAULT_PORTS.get(url.scheme, 80)


def _join(host: str, port: int, path: str) -> httpx.URL:
    if not path.startswith('/'):
        path = '/' + path
    return httpx.URL(f"http://{host}:{port}{path}")


def _proxy_url(host: str, port: int, entry=None) -> str:
    if entry is None:
        return f"http://{host}:{port}"
    _realm, credentials = entry
    userinfo = f"{quote(credentials.username, safe='')}:{quote(credentials.password, safe='')}"
    return f"http://{userinfo}@{host}:{port}"


def _parse_challenge(header: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Extract (scheme, realm) from a WWW-Authenticate style header."""
    if not header:
        return None, None
    scheme, _, params = header.strip().partition(' ')
    realm = None
    for part in params.split(','):
        key, _, value = part.strip().partition('=')
        if key.lower() == 'realm':
            realm = value.strip().strip('"')
            break
    return scheme.lower(), realm


def _is_certificate_error(exc: BaseException) -> bool:
    seen = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, ssl.SSLCertVerificationError):
            return True
        seen.add(id(exc))
        exc = exc.__cause__ or exc.__context__
    return False


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value
