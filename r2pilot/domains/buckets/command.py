from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.buckets import service


def _create(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.create_bucket(ctx, name=args.name, location=args.location)


def _delete(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.delete_bucket(ctx, name=args.name, assume_yes=args.yes)


def _info(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.bucket_info(ctx, name=args.name)


def _ls(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.bucket_contents(ctx, name=args.name)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("buckets", help="Manage R2 buckets")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    list_ = actions.add_parser("list", help="List buckets in the account")
    list_.set_defaults(handler=lambda ctx, args: service.list_buckets(ctx))

    create = actions.add_parser("create", help="Create a bucket")
    create.add_argument("name")
    create.add_argument("--location", help="Location hint, e.g. weur, enam, apac")
    create.set_defaults(handler=_create)

    delete = actions.add_parser("delete", help="Delete a bucket (never the default one)")
    delete.add_argument("name")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    delete.set_defaults(handler=_delete)

    info = actions.add_parser("info", help="Object count and total size of a bucket")
    info.add_argument("name", nargs="?", help="Bucket (defaults to r2.default_bucket)")
    info.set_defaults(handler=_info)

    ls = actions.add_parser("ls", help="List the objects of a bucket")
    ls.add_argument("name", nargs="?", help="Bucket (defaults to r2.default_bucket)")
    ls.set_defaults(handler=_ls)
