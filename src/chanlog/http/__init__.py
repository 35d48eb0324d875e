"""
HTTP client and the 'http' logging channel.

Public API:
    HttpClient            — open-then-send client over httpx
    create_http_client    — process-wide factory (honors overrides)
    HttpOverrides         — factory base class
    http_overrides        — scoped factory replacement
    LoggingHttpClient     — request-logging stand-in for HttpClient
    install_http_channel  — install request logging
"""

from .client import (
    HttpClient, HttpClientRequest, HttpClientResponse, HttpException,
    HttpClientCredentials, HttpClientBasicCredentials, HttpClientDigestCredentials,
)
from .overrides import (
    HttpOverrides, create_http_client, get_http_overrides, set_http_overrides,
    reset_http_overrides, http_overrides,
)
from .channel import (
    HTTP_CHANNEL, LoggingHttpClient, LoggingHttpOverrides,
    install_http_channel, uninstall_http_channel, headers_to_map,
)

__all__ = [
    'HttpClient', 'HttpClientRequest', 'HttpClientResponse', 'HttpException',
    'HttpClientCredentials', 'HttpClientBasicCredentials', 'HttpClientDigestCredentials',
    'HttpOverrides', 'create_http_client', 'get_http_overrides', 'set_http_overrides',
    'reset_http_overrides', 'http_overrides',
    'HTTP_CHANNEL', 'LoggingHttpClient', 'LoggingHttpOverrides',
    'install_http_channel', 'uninstall_http_channel', 'headers_to_map',
]
