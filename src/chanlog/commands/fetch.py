"""chanlog fetch — make one HTTP request through create_http_client().

Useful for seeing the 'http' channel at work:

    chanlog --enable http fetch https://example.com/
    chanlog -v -e http fetch -X POST -H 'Content-Type: application/json' \\
        -d '{"q": 1}' https://httpbin.org/post
"""

import asyncio

from chanlog.http.overrides import create_http_client
from chanlog.output import print_ok


def register(subparsers, parents):
    """Register the 'fetch' subcommand."""
    p = subparsers.add_parser(
        "fetch",
        parents=parents,
        help="Make an HTTP request (logged when the http channel is on)",
        description=(
            "Open and send one HTTP request through the process-wide client\n"
            "factory. With '--enable http' the request is logged on the\n"
            "http channel: open, request ready, and completion."
        ),
        formatter_class=__import__("argparse").RawDescriptionHelpFormatter,
    )
    p.add_argument("url", help="URL to request")
    p.add_argument("-X", "--method", default="GET",
                   help="HTTP method (default: GET)")
    p.add_argument("-H", "--header", action="append", default=[],
                   metavar="'NAME: VALUE'", help="Request header (repeatable)")
    p.add_argument("-d", "--data", default=None,
                   help="Request body")
    p.add_argument("--timeout", type=float, default=None, metavar="SECONDS",
                   help="Connection timeout")
    p.add_argument("--body", action="store_true", default=False,
                   help="Print the response body")
    p.set_defaults(func=run)


def _parse_header(text):
    name, sep, value = text.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"expected 'NAME: VALUE' header, got {text!r}")
    return name.strip(), value.strip()


async def _fetch(args):
    client = create_http_client()
    client.connection_timeout = args.timeout
    try:
        request = await client.open_url(args.method.upper(), args.url)
        for header in args.header:
            name, value = _parse_header(header)
            request.headers[name] = value
        if args.data is not None:
            request.write(args.data)
        return await request.close()
    finally:
        await client.close()


def run(args):
    response = asyncio.run(_fetch(args))
    print_ok(f"{response.status_code} {response.reason_phrase} "
             f"({len(response.content)} bytes)")
    if args.body:
        print(response.text)
    return 0 if response.status_code < 400 else 1
