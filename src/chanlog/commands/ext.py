"""chanlog ext — invoke a service extension and print the JSON response.

    chanlog ext loggingChannels
    chanlog ext enable channel=http enable=true

Method names without a dot are taken relative to 'ext.chanlog.'.
"""

from chanlog.output import print_json
from chanlog.service import (
    EXTENSION_PREFIX, ServiceExtensionRegistry, install_service_extensions,
    parse_parameters,
)


def register(subparsers, parents):
    """Register the 'ext' subcommand."""
    p = subparsers.add_parser(
        "ext",
        parents=parents,
        help="Invoke a channel service extension",
        description=(
            "Invoke a service extension against this process's channels and\n"
            "print the JSON response. Available methods: enable,\n"
            "loggingChannels."
        ),
        formatter_class=__import__("argparse").RawDescriptionHelpFormatter,
    )
    p.add_argument("method", help="Extension method (e.g. loggingChannels)")
    p.add_argument("params", nargs="*", metavar="KEY=VALUE",
                   help="String parameters passed to the extension")
    p.set_defaults(func=run)


def run(args):
    registry = ServiceExtensionRegistry()
    install_service_extensions(args.manager, registry)

    method = args.method if "." in args.method else EXTENSION_PREFIX + args.method
    response = registry.invoke(method, parse_parameters(args.params))
    print_json(response.to_json())
    return 1 if response.is_error else 0
