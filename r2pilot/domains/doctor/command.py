from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.doctor import service
from r2pilot.version import VERSION


def _check(ctx: CommandContext, args: argparse.Namespace) -> int:
    return 0 if service.check(ctx, version=VERSION) else 1


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("doctor", help="Diagnose installation and connectivity")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    check = actions.add_parser("check", help="Check the installation and configuration")
    check.set_defaults(handler=_check)

    test = actions.add_parser("test-connection", help="Test the Cloudflare API and R2 connections")
    test.set_defaults(handler=lambda ctx, args: service.test_connection(ctx))
