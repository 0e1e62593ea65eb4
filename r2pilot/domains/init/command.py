from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.init.wizard import run_init_wizard


def _init(ctx: CommandContext, args: argparse.Namespace) -> None:
    run_init_wizard(ctx)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("init", help="Interactive setup wizard")
    parser.set_defaults(handler=_init)
