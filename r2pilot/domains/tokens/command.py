from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.tokens import service


def _create(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.create_token(ctx, name=args.name, ips=args.ip)


def _revoke(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.revoke_token(ctx, token_id=args.token_id, assume_yes=args.yes)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("tokens", help="Manage Cloudflare API tokens")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    list_ = actions.add_parser("list", help="List API tokens")
    list_.set_defaults(handler=lambda ctx, args: service.list_tokens(ctx))

    create = actions.add_parser("create", help="Create a token with R2 edit permissions")
    create.add_argument("--name", help="Token name (prompted when omitted)")
    create.add_argument(
        "--ip",
        action="append",
        metavar="IP",
        help="Restrict the token to this IP or CIDR (repeatable)",
    )
    create.set_defaults(handler=_create)

    revoke = actions.add_parser("revoke", help="Revoke a token")
    revoke.add_argument("token_id", help="Token ID (see 'tokens list')")
    revoke.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    revoke.set_defaults(handler=_revoke)
