from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.lifecycle import service


def _get(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.get_lifecycle(ctx, bucket=args.bucket)


def _set(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.set_lifecycle(ctx, bucket=args.bucket, file=args.file, interactive=args.interactive)


def _delete(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.delete_lifecycle(ctx, bucket=args.bucket)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("lifecycle", help="Bucket lifecycle (expiration) rules")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    get = actions.add_parser("get", help="Show the lifecycle rules")
    get.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    get.set_defaults(handler=_get)

    set_ = actions.add_parser("set", help="Replace the lifecycle rules")
    set_.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    source = set_.add_mutually_exclusive_group(required=True)
    source.add_argument("--interactive", action="store_true", help="Build the rules with a wizard")
    source.add_argument("--file", help='JSON file: {"rules": [{"id": ..., "status": "Enabled", ...}]}')
    set_.set_defaults(handler=_set)

    delete = actions.add_parser("delete", help="Remove the lifecycle rules")
    delete.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    delete.set_defaults(handler=_delete)
