from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.website import service


def _enable(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.enable_website(ctx, bucket=args.bucket, index=args.index, error=args.error)


def _disable(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.disable_website(ctx, bucket=args.bucket)


def _get(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.get_website(ctx, bucket=args.bucket)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("website", help="Static website hosting")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    enable = actions.add_parser("enable", help="Enable static hosting")
    enable.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    enable.add_argument("--index", help=f"Index document suffix (default {service.DEFAULT_INDEX_DOCUMENT})")
    enable.add_argument("--error", help=f"Error document key (default {service.DEFAULT_ERROR_DOCUMENT})")
    enable.set_defaults(handler=_enable)

    disable = actions.add_parser("disable", help="Disable static hosting")
    disable.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    disable.set_defaults(handler=_disable)

    get = actions.add_parser("get", help="Show the website configuration")
    get.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    get.set_defaults(handler=_get)
