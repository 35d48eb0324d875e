"""
Channel records and channel spec parsing.

Channels are named, independently toggleable logging categories. The
manager owns the live registry; this module holds the value types and
the helpers shared by the CLI and the config layer.

Channel spec syntax (compact, positional):
    CHANNEL[:STATE]

    Examples:
        http            # Enable the http channel
        http:on         # Same
        trace:off       # Disable the trace channel
        gestures:0      # Same as :off
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional


# Channels the library itself logs to
BUILTIN_CHANNELS = {
    'http',         # Outbound HTTP requests made through create_http_client()
    'trace',        # Function tracing (@trace decorator)
}

BUILTIN_CHANNEL_DESCRIPTIONS = {
    'http':   'Outbound HTTP requests and responses',
    'trace':  'Function call tracing',
}

_TRUE_STATES = {'', 'on', 'true', 'yes', '1', 'enable', 'enabled'}
_FALSE_STATES = {'off', 'false', 'no', '0', 'disable', 'disabled'}


@dataclass(frozen=True)
class ChannelInfo:
    """Snapshot of one registered channel."""
    name: str
    description: Optional[str] = None
    enabled: bool = False


@dataclass(frozen=True)
class ChannelSpec:
    """A parsed ``CHANNEL[:STATE]`` spec."""
    name: str
    enable: bool = True


def parse_channel_spec(spec: str) -> ChannelSpec:
    """Parse a channel spec string into a ChannelSpec.

    Args:
        spec: Channel spec like "http" or "trace:off"

    Returns:
        ChannelSpec with the parsed name and desired state

    Raises:
        ValueError: If the name is empty or the state is not recognized
    """
    name, _, state = spec.strip().partition(':')
    name = name.strip()
    if not name:
        raise ValueError(f"empty channel name in spec: {spec!r}")

    state = state.strip().lower()
    if state in _TRUE_STATES:
        return ChannelSpec(name=name, enable=True)
    if state in _FALSE_STATES:
        return ChannelSpec(name=name, enable=False)
    raise ValueError(f"unknown channel state {state!r} in spec: {spec!r}")


def format_channel_list(channels: Iterable[ChannelInfo]) -> str:
    """Format registered channels for display.

    Returns:
        Formatted string listing channels with state and description.
    """
    channels = sorted(channels, key=lambda c: c.name)
    if not channels:
        return "No channels registered."

    lines = ["Registered channels:"]
    max_name = max(len(c.name) for c in channels)
    for info in channels:
        state = 'on ' if info.enabled else 'off'
        desc = info.description or ''
        lines.append(f"  {info.name:<{max_name}}  [{state}]  {desc}".rstrip())
    return "\n".join(lines)


def states_from_specs(specs: Iterable[str]) -> Dict[str, bool]:
    """Collapse a list of specs into name -> enabled; later specs win."""
    states: Dict[str, bool] = {}
    for spec in specs:
        parsed = parse_channel_spec(spec)
        states[parsed.name] = parsed.enable
    return states
