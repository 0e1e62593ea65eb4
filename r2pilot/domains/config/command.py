from __future__ import annotations

import argparse

from r2pilot.core.config import settable_keys
from r2pilot.core.context import CommandContext
from r2pilot.domains.config import service


def _set(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.set_value(ctx, key=args.key, value=args.value)


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("config", help="Show and edit the configuration file")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    show = actions.add_parser("show", help="Print the current configuration (secrets masked)")
    show.set_defaults(handler=lambda ctx, args: service.show_config(ctx))

    edit = actions.add_parser("edit", help="Open the configuration in $EDITOR")
    edit.set_defaults(handler=lambda ctx, args: service.edit_config(ctx))

    validate = actions.add_parser("validate", help="Validate the configuration and test the R2 connection")
    validate.set_defaults(handler=lambda ctx, args: service.validate_current_config(ctx))

    path = actions.add_parser("path", help="Print the configuration file path")
    path.set_defaults(handler=lambda ctx, args: service.config_path(ctx))

    set_ = actions.add_parser(
        "set",
        help="Set one value, e.g. r2.default_bucket",
        epilog=f"Keys: {', '.join(settable_keys())}",
    )
    set_.add_argument("key", help="section.field")
    set_.add_argument("value", help="New value (empty string clears an optional field)")
    set_.set_defaults(handler=_set)
