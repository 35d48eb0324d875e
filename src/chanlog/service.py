"""
Service extensions: channel inspection and control for external tools.

An inspector (a debugger panel, an admin endpoint, the ``chanlog ext``
command) talks to a running process through named request/response
methods. Parameters arrive as a string -> string map; results go back as
JSON text.

Two extensions are installed for a manager:

    ext.chanlog.enable           {channel, enable} -> {}
    ext.chanlog.loggingChannels  {} -> {"value": {name: {enabled, description}}}

Errors raised inside an extension never cross the boundary: they come
back as an error response carrying {exception, stack, method}.
"""

import json
import threading
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

EXTENSION_PREFIX = 'ext.chanlog.'

# JSON-RPC style error codes
METHOD_NOT_FOUND = -32601
EXTENSION_ERROR = -32000

ServiceExtensionCallback = Callable[[Dict[str, str]], Dict[str, Any]]


@dataclass(frozen=True)
class ServiceExtensionResponse:
    """Result of invoking a service extension.

    Exactly one of ``result`` (JSON text) or ``error_detail`` (JSON text)
    is set; ``error_code`` accompanies the latter.
    """
    result: Optional[str] = None
    error_code: Optional[int] = None
    error_detail: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error_code is not None

    @classmethod
    def from_result(cls, result: str) -> 'ServiceExtensionResponse':
        return cls(result=result)

    @classmethod
    def error(cls, code: int, detail: str) -> 'ServiceExtensionResponse':
        return cls(error_code=code, error_detail=detail)

    def to_json(self) -> Dict[str, Any]:
        """Decode into a dict suitable for printing or re-encoding."""
        if self.is_error:
            return {'error': {'code': self.error_code,
                              'data': json.loads(self.error_detail)}}
        return {'result': json.loads(self.result)}


class ServiceExtensionRegistry:
    """Named request/response methods callable by an inspector."""

    def __init__(self):
        self._lock = threading.Lock()
        self._extensions: Dict[str, ServiceExtensionCallback] = {}

    def register_extension(self, method: str,
                           callback: ServiceExtensionCallback) -> None:
        """Register ``callback`` under ``method``.

        Raises:
            ValueError: If ``method`` is already registered
        """
        with self._lock:
            if method in self._extensions:
                raise ValueError(f"service extension already registered: {method}")
            self._extensions[method] = callback

    @property
    def methods(self) -> List[str]:
        with self._lock:
            return sorted(self._extensions)

    def invoke(self, method: str,
               parameters: Optional[Mapping[str, str]] = None) -> ServiceExtensionResponse:
        """Call an extension and wrap the outcome in a response."""
        with self._lock:
            callback = self._extensions.get(method)
        if callback is None:
            return ServiceExtensionResponse.error(
                METHOD_NOT_FOUND,
                json.dumps({'exception': f"unknown method: {method}",
                            'stack': '', 'method': method}))

        try:
            result = dict(callback(dict(parameters or {})))
        except Exception as e:
            return ServiceExtensionResponse.error(
                EXTENSION_ERROR,
                json.dumps({
                    'exception': str(e) or type(e).__name__,
                    'stack': traceback.format_exc(),
                    'method': method,
                }))

        result['type'] = '_extensionType'
        result['method'] = method
        return ServiceExtensionResponse.from_result(json.dumps(result))


def install_service_extensions(manager, registry: ServiceExtensionRegistry) -> None:
    """Register the channel enable/list extensions for ``manager``."""

    def enable(parameters: Dict[str, str]) -> Dict[str, Any]:
        channel = parameters.get('channel')
        if channel is not None and manager.is_registered(channel):
            manager.enable_logging(channel, parameters.get('enable') == 'true')
        return {}

    def logging_channels(parameters: Dict[str, str]) -> Dict[str, Any]:
        return {
            'value': {
                name: {
                    'enabled': str(info.enabled).lower(),
                    'description': info.description or '',
                }
                for name, info in manager.channels.items()
            }
        }

    registry.register_extension(EXTENSION_PREFIX + 'enable', enable)
    registry.register_extension(EXTENSION_PREFIX + 'loggingChannels', logging_channels)


def parse_parameters(pairs: List[str]) -> Dict[str, str]:
    """Parse ``key=value`` strings into an extension parameter map.

    Raises:
        ValueError: If a pair has no '='
    """
    parameters = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if not sep or not key:
            raise ValueError(f"expected key=value, got {pair!r}")
        parameters[key] = value
    return parameters
