"""Main CLI entry point for chanlog.

Implements a Docker-style two-pass argument parser:
  1. First pass: extract global flags (--enable, --verbose, --config)
  2. Second pass: dispatch to subcommand with shared parent args

Global flags can appear before OR after the subcommand:
  chanlog --enable http fetch https://example.com     # works
  chanlog fetch https://example.com --enable http     # also works

Subcommands self-register via register(subparsers, parents) convention.
"""

import argparse
import sys

import httpx

from chanlog._version import BASE_VERSION, VERSION
from chanlog.exceptions import LoggingException
from chanlog.http.client import HttpException


# ---------------------------------------------------------------------------
# Global flags (Docker-style: can precede the subcommand)
# ---------------------------------------------------------------------------
GLOBAL_FLAGS = {
    "--enable": {"aliases": ["-e"], "action": "append", "metavar": "CHANNEL[:on|off]",
                 "help": "Enable a logging channel (repeatable)"},
    "--disable": {"action": "append", "metavar": "CHANNEL",
                  "help": "Disable a logging channel (repeatable)"},
    "--verbose": {"aliases": ["-v"], "action": "count", "default": 0,
                  "help": "Show more log levels (-v shows DEBUG)"},
    "--quiet": {"aliases": ["-Q"], "action": "count", "default": 0,
                "help": "Show fewer log levels (-Q, -QQ, -QQQ, -QQQQ=silent)"},
    "--config": {"metavar": "PATH", "default": None,
                 "help": "Path to config file (default: ~/.chanlog/config.json)"},
}


def _extract_global_flags(argv):
    """Two-pass parse: pull global flags from anywhere in argv.

    Returns (global_namespace, remaining_argv).
    """
    global_parser = argparse.ArgumentParser(add_help=False)
    for flag, kwargs in GLOBAL_FLAGS.items():
        kw = {k: v for k, v in kwargs.items() if k != "aliases"}
        global_parser.add_argument(flag, *kwargs.get("aliases", []), **kw)

    global_args, remaining = global_parser.parse_known_args(argv)
    return global_args, remaining


def _channel_specs(global_args):
    """Collapse --enable/--disable into ordered channel specs."""
    specs = list(global_args.enable or [])
    specs.extend(f"{name}:off" for name in (global_args.disable or []))
    return specs


# ---------------------------------------------------------------------------
# Shared parent parser (inherited by all subcommands via parents=[])
# ---------------------------------------------------------------------------
def _build_common_parser():
    """Build the shared argument parser inherited by every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--project-dir", metavar="PATH",
                        help="Directory to search for .chanlog.json (default: cwd)")
    return common


# ---------------------------------------------------------------------------
# Subcommand discovery and registration
# ---------------------------------------------------------------------------
def _discover_commands():
    """Import and return all command modules.

    Each module in chanlog.commands must export:
      register(subparsers, parents) — add itself to the subparser
      run(args) — execute the command
    """
    from chanlog.commands import channels, ext, fetch
    return [channels, fetch, ext]


def _build_parser(commands, common_parser):
    """Build the main argparse parser with subcommand dispatch."""
    parser = argparse.ArgumentParser(
        prog="chanlog",
        description="chanlog — opt-in channel logging",
        epilog=(
            "Run 'chanlog <command> --help' for details on a specific command.\n"
            "\n"
            "Global flags (--enable, --verbose, --config) can appear\n"
            "before or after the subcommand."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"chanlog {BASE_VERSION} ({VERSION})",
    )

    # Add global flags to main parser too (for --help display)
    for flag, kwargs in GLOBAL_FLAGS.items():
        kw = {k: v for k, v in kwargs.items() if k != "aliases"}
        parser.add_argument(flag, *kwargs.get("aliases", []), **kw)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    for cmd_module in commands:
        cmd_module.register(subparsers, parents=[common_parser])

    return parser


def _init_logging(global_args, project_dir=None):
    """Create the shared manager and apply config, flags and console sink."""
    from chanlog.config import (
        apply_channel_states, resolve_channel_states, resolve_descriptions,
    )
    from chanlog.manager import init_manager
    from chanlog.output import configure_console

    manager = init_manager()
    verbosity = (global_args.verbose or 0) - (global_args.quiet or 0)
    configure_console(manager, verbosity)

    states = resolve_channel_states(_channel_specs(global_args),
                                    start_dir=project_dir,
                                    config_path=global_args.config)
    descriptions = resolve_descriptions(start_dir=project_dir,
                                        config_path=global_args.config)
    apply_channel_states(manager, states, descriptions)
    return manager


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv=None):
    """Main entry point for chanlog CLI.

    Args:
        argv: Command-line arguments. None means sys.argv[1:].

    Returns:
        Exit code (0 = success).
    """
    from chanlog.output import print_error

    if argv is None:
        argv = sys.argv[1:]

    # Pass 1: extract global flags from anywhere in the arg list
    global_args, remaining = _extract_global_flags(argv)

    # Pass 2: parse subcommand + shared/specific args
    common_parser = _build_common_parser()
    commands = _discover_commands()
    parser = _build_parser(commands, common_parser)

    if not remaining:
        parser.print_help()
        return 0

    args = parser.parse_args(remaining)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    # Merge global args into the namespace for convenience
    for key, value in vars(global_args).items():
        if key not in vars(args) or getattr(args, key) is None:
            setattr(args, key, value)
    args.channel_specs = _channel_specs(global_args)

    try:
        args.manager = _init_logging(global_args, args.project_dir)
        return args.func(args) or 0
    except ValueError as e:
        print_error(str(e))
        return 2
    except (LoggingException, HttpException, httpx.HTTPError) as e:
        print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
