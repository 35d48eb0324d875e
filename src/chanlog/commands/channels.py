"""chanlog channels — list channels and their resolved on/off state.

Shows the built-in channels, channels described in config files, and
any state given with --enable/--disable. With --save, the command-line
states are written to the project .chanlog.json so later runs pick
them up without flags.
"""

from chanlog.channels import format_channel_list, states_from_specs
from chanlog.config import remember_channel_state
from chanlog.output import print_ok, print_warn


def register(subparsers, parents):
    """Register the 'channels' subcommand."""
    p = subparsers.add_parser(
        "channels",
        parents=parents,
        help="List logging channels and their state",
        description=(
            "List registered logging channels with their on/off state and\n"
            "description. States come from --enable/--disable, the project\n"
            ".chanlog.json and the global config, in that order of priority."
        ),
        formatter_class=__import__("argparse").RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--save", action="store_true", default=False,
        help="Persist --enable/--disable states to the project .chanlog.json",
    )
    p.set_defaults(func=run)


def run(args):
    manager = args.manager
    print(format_channel_list(manager.channels.values()))

    pending = manager.pending_states
    if pending:
        names = ", ".join(sorted(pending))
        print_warn(f"State set for unregistered channel(s): {names}")

    if args.save:
        states = states_from_specs(args.channel_specs)
        if not states:
            print_warn("Nothing to save: pass --enable/--disable CHANNEL.")
            return 0
        path = None
        for name, enable in states.items():
            path, _ = remember_channel_state(name, enable, args.project_dir)
        print_ok(f"Saved {len(states)} channel state(s) to {path}")
    return 0
