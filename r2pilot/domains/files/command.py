from __future__ import annotations

import argparse

from r2pilot.core.context import CommandContext
from r2pilot.domains.files import service


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}")
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _upload(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.upload(
        ctx,
        file=args.file,
        key=args.key,
        bucket=args.bucket,
        progress=args.progress,
        multipart=args.multipart,
        content_type=args.content_type,
    )


def _download(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.download(ctx, key=args.key, dest=args.dest, bucket=args.bucket)


def _delete(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.delete(ctx, key=args.key, bucket=args.bucket)


def _ls(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.list_files(ctx, prefix=args.prefix, bucket=args.bucket, limit=args.limit)


def _info(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.info(ctx, key=args.key, bucket=args.bucket)


def _copy(ctx: CommandContext, args: argparse.Namespace) -> None:
    service.copy(ctx, source=args.source, dest=args.dest, bucket=args.bucket)


def _bucket_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--bucket", help="Bucket (defaults to r2.default_bucket)")


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("files", help="Upload, download and manage objects")
    actions = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    upload = actions.add_parser("upload", help="Upload a local file")
    upload.add_argument("file", help="Local file")
    upload.add_argument("key", help="Destination key")
    _bucket_option(upload)
    upload.add_argument("--progress", action="store_true", help="Show a progress bar")
    upload.add_argument("--multipart", action="store_true", help="Force a multipart upload")
    upload.add_argument("--content-type", help="Override the guessed content type")
    upload.set_defaults(handler=_upload)

    download = actions.add_parser("download", help="Download an object to a local path")
    download.add_argument("key")
    download.add_argument("dest", help="Local destination path")
    _bucket_option(download)
    download.set_defaults(handler=_download)

    delete = actions.add_parser("delete", help="Delete an object")
    delete.add_argument("key")
    _bucket_option(delete)
    delete.set_defaults(handler=_delete)

    ls = actions.add_parser("ls", help="List objects")
    ls.add_argument("prefix", nargs="?", help="Only keys starting with this prefix")
    _bucket_option(ls)
    ls.add_argument("--limit", type=_positive_int, help="Maximum number of entries")
    ls.set_defaults(handler=_ls)

    info = actions.add_parser("info", help="Show object metadata")
    info.add_argument("key")
    _bucket_option(info)
    info.set_defaults(handler=_info)

    copy = actions.add_parser("copy", help="Copy an object within the bucket")
    copy.add_argument("source", help="Source key")
    copy.add_argument("dest", help="Destination key")
    _bucket_option(copy)
    copy.set_defaults(handler=_copy)
