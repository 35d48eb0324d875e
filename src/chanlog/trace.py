"""
Function tracing decorator.

Routes call entry/exit through the shared LogManager on the 'trace'
channel. When the channel is off, the wrapper costs one set lookup.
"""

import functools
import inspect
from pathlib import Path

from .levels import DEBUG, ERROR

TRACE_CHANNEL = 'trace'


def _short_repr(value):
    if isinstance(value, Path):
        return f"Path('{value}')"
    if isinstance(value, str) and len(value) > 50:
        return f"'{value[:47]}...'"
    if isinstance(value, (list, tuple)) and len(value) > 3:
        return f"[...{len(value)} items...]"
    return repr(value)


def _format_args(func, args, kwargs):
    args_repr = []
    remaining = args
    # Methods: show the receiver as 'self'
    params = list(inspect.signature(func).parameters)
    if args and params and params[0] in ('self', 'cls'):
        args_repr.append(params[0])
        remaining = args[1:]
    args_repr.extend(_short_repr(arg) for arg in remaining)
    args_repr.extend(f"{key}={_short_repr(value)}" for key, value in kwargs.items())
    return ', '.join(args_repr)


def trace(func):
    """Decorator that logs calls to ``func`` on the 'trace' channel.

    Entry and exit are logged with arguments and the return value;
    exceptions are logged at ERROR level and re-raised. Async functions
    are not supported (the coroutine object is reported as the result).
    """
    module = inspect.getmodule(func)
    module_name = module.__name__ if module else "unknown"
    qualified = f"{module_name}.{func.__qualname__}"

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        # Lazy import to avoid circular dependency
        from .manager import get_manager

        manager = get_manager()
        if not manager.should_log(TRACE_CHANNEL):
            return func(*args, **kwargs)

        manager.log(TRACE_CHANNEL,
                    lambda: f">> {qualified}({_format_args(func, args, kwargs)})",
                    level=DEBUG)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            manager.log(TRACE_CHANNEL,
                        lambda: f"!! {qualified} raised: {type(e).__name__}: {e}",
                        level=ERROR)
            raise

        if result is not None:
            manager.log(TRACE_CHANNEL,
                        lambda: f"<< {qualified} returned: {_short_repr(result)}",
                        level=DEBUG)
        return result

    return wrapper
