from __future__ import annotations

import argparse

from r2pilot.core.context import OUTPUT_FORMATS, CommandContext
from r2pilot.core.storage.r2 import PRESIGN_METHODS
from r2pilot.domains.urls import service


def _generate(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.generate_url(
        ctx,
        key=args.key,
        method=args.method,
        expires=args.expires,
        content_type=args.content_type,
        bucket=args.bucket,
        output=args.url_output,
    )


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("urls", help="Presigned URLs")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    generate = actions.add_parser("generate", help="Generate a presigned URL for one object")
    generate.add_argument("key")
    generate.add_argument("--method", choices=list(PRESIGN_METHODS), default="get", type=str.lower)
    generate.add_argument(
        "--expires",
        type=int,
        metavar="SECONDS",
        help="Lifetime in seconds, 1..604800 (defaults to r2.default_expiration)",
    )
    generate.add_argument("--content-type", help="Content type the upload must use (put only)")
    generate.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")
    generate.add_argument("--output", dest="url_output", choices=OUTPUT_FORMATS, help="Output format")
    generate.set_defaults(handler=_generate)
