from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.completion import service


def _completion(ctx: CommandContext, args: argparse.Namespace) -> None:
    # The script is derived from the full parser, built the same way main() builds it.
    from r2pilot.main import create_parser

    service.print_completion(ctx, create_parser(), args.shell)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("completion", help="Print a shell completion script")
    parser.add_argument("shell", choices=service.SHELLS, type=str.lower)
    parser.set_defaults(handler=_completion)
