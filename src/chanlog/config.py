"""Configuration management for chanlog.

Three-layer channel state resolution (highest priority wins):
  1. CLI flags — --enable / --disable on the command line
  2. Project config — .chanlog.json in the working directory or a parent
  3. Global config — ~/.chanlog/config.json (or --config PATH)

Both files share one shape:

    {
      "channels": {"http": true, "trace": false},
      "descriptions": {"gestures": "Gesture recognition events"}
    }

Channels named under "descriptions" are registered when the config is
applied, so they show up in listings before any code logs to them.
"""

import json
import os
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from chanlog.channels import states_from_specs

PROJECT_CONFIG_NAME = ".chanlog.json"


# ---------------------------------------------------------------------------
# Config file locations
# ---------------------------------------------------------------------------
def get_global_config_dir():
    """Return the global config directory (~/.chanlog/)."""
    return Path.home() / ".chanlog"


def get_global_config_path():
    """Return path to the global config file."""
    return get_global_config_dir() / "config.json"


def find_project_config(start_dir=None):
    """Walk up from start_dir looking for .chanlog.json.

    Returns the path if found, None otherwise.
    """
    current = Path(start_dir or os.getcwd()).resolve()
    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------
def load_json(path):
    """Load a JSON object from a file, returning empty dict on error."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_global_config(path=None):
    """Load the global config file (or an explicit --config path)."""
    return load_json(path or get_global_config_path())


def load_project_config(start_dir=None):
    """Load the nearest .chanlog.json walking upward from start_dir."""
    path = find_project_config(start_dir)
    if path:
        return load_json(path), path
    return {}, None


# ---------------------------------------------------------------------------
# Config resolution
# ---------------------------------------------------------------------------
def _channel_states(config) -> Dict[str, bool]:
    channels = config.get("channels", {})
    if not isinstance(channels, dict):
        return {}
    return {str(name): bool(state) for name, state in channels.items()}


def resolve_channel_states(cli_specs: Optional[Iterable[str]] = None,
                           start_dir=None,
                           config_path=None) -> Dict[str, bool]:
    """Resolve channel on/off states using three-layer precedence.

    Args:
        cli_specs: Channel specs from the command line ("http", "trace:off")
        start_dir: Directory to start the .chanlog.json search from
        config_path: Global config override (--config PATH)

    Returns:
        Dict of channel name -> enabled
    """
    global_cfg = load_global_config(config_path)
    project_cfg, _ = load_project_config(start_dir)

    resolved: Dict[str, bool] = {}
    resolved.update(_channel_states(global_cfg))    # Layer 3
    resolved.update(_channel_states(project_cfg))   # Layer 2
    resolved.update(states_from_specs(cli_specs or []))  # Layer 1
    return resolved


def resolve_descriptions(start_dir=None, config_path=None) -> Dict[str, str]:
    """Merge channel descriptions from global and project config."""
    descriptions: Dict[str, str] = {}
    project_cfg, _ = load_project_config(start_dir)
    for cfg in (load_global_config(config_path), project_cfg):
        entries = cfg.get("descriptions", {})
        if isinstance(entries, dict):
            descriptions.update({str(k): str(v) for k, v in entries.items()})
    return descriptions


def apply_channel_states(manager, states: Dict[str, bool],
                         descriptions: Optional[Dict[str, str]] = None) -> None:
    """Register described channels, then apply each on/off state.

    Unregistered channels keep their state pending until registered.
    """
    for name, description in (descriptions or {}).items():
        if not manager.is_registered(name):
            manager.register_channel(name, description=description)
    for name, enable in states.items():
        manager.enable_logging(name, enable)


# ---------------------------------------------------------------------------
# Config writing
# ---------------------------------------------------------------------------
def save_project_config(data, directory=None):
    """Write .chanlog.json to the given directory (default: cwd)."""
    target = Path(directory or os.getcwd()) / PROJECT_CONFIG_NAME
    with open(target, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
    return target


def save_global_config(data):
    """Write the global config file."""
    config_dir = get_global_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = get_global_config_path()
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
    return config_path


def remember_channel_state(name: str, enable: bool,
                           directory=None) -> Tuple[Path, dict]:
    """Persist a channel's state in the project config."""
    existing = find_project_config(directory)
    config = load_json(existing) if existing else {}
    config.setdefault("channels", {})[name] = enable
    target = existing.parent if existing else directory
    return save_project_config(config, target), config
