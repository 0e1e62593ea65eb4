from __future__ import annotations

from dataclasses import asdict

from loguru import logger
from rich.markup import escape

from r2pilot.core.cloudflare.schemas import R2Bucket
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError
from r2pilot.domains.init.wizard import validate_bucket_name
from r2pilot.domains.shared import confirm_destructive, success
from r2pilot.ui.console import print_json
from r2pilot.ui.formatting import format_bytes
from r2pilot.ui.tables import buckets_table, key_value_table, objects_table


def list_buckets(ctx: CommandContext) -> list[R2Bucket]:
    config = ctx.load_config()
    client = ctx.cloudflare(purpose="bucket management")
    try:
        buckets = client.list_buckets()
    finally:
        client.close()

    if ctx.json_output:
        print_json(ctx.console, [b.model_dump() for b in buckets])
        return buckets

    if not buckets:
        ctx.console.print("  No buckets found")
    else:
        ctx.console.print(buckets_table(buckets, default_bucket=config.r2.default_bucket))
    ctx.console.print(f"\nDefault bucket: {escape(config.r2.default_bucket)}")
    return buckets


def create_bucket(ctx: CommandContext, *, name: str, location: str | None = None) -> R2Bucket:
    error = validate_bucket_name(name)
    if error:
        raise InvalidInputError(error)

    client = ctx.cloudflare(purpose="bucket management")
    try:
        bucket = client.create_bucket(name, location)
    finally:
        client.close()
    logger.info("Created bucket {}", bucket.name)

    if ctx.json_output:
        print_json(ctx.console, bucket.model_dump())
    else:
        success(ctx, f"Bucket created: {bucket.name}")
        if bucket.location:
            ctx.console.print(f"  Location: {escape(bucket.location)}")
    return bucket


def delete_bucket(ctx: CommandContext, *, name: str, assume_yes: bool = False) -> None:
    config = ctx.load_config()
    if name == config.r2.default_bucket:
        raise InvalidInputError(
            f"Cannot delete default bucket '{name}'. Change the default bucket in your configuration first"
        )

    client = ctx.cloudflare(purpose="bucket management")
    try:
        confirm_destructive(ctx, f"you are about to delete bucket '{name}'", assume_yes=assume_yes)
        client.delete_bucket(name)
    finally:
        client.close()
    logger.info("Deleted bucket {}", name)
    success(ctx, f"Bucket deleted: {name}")


def bucket_info(ctx: CommandContext, *, name: str | None = None) -> dict[str, int | str]:
    storage = ctx.storage(bucket=name)
    objects = storage.list_objects()
    info: dict[str, int | str] = {
        "name": storage.bucket,
        "objects": len(objects),
        "total_size": sum(o.size for o in objects),
    }

    if ctx.json_output:
        print_json(ctx.console, info)
    else:
        ctx.console.print(
            key_value_table(
                [
                    ("Name", storage.bucket),
                    ("Objects", str(info["objects"])),
                    ("Total size", format_bytes(int(info["total_size"]))),
                ],
                title=f"Bucket '{storage.bucket}'",
            )
        )
    return info


def bucket_contents(ctx: CommandContext, *, name: str | None = None) -> None:
    storage = ctx.storage(bucket=name)
    objects = storage.list_objects()

    if ctx.json_output:
        print_json(ctx.console, [asdict(o) for o in objects])
    elif not objects:
        ctx.console.print("  Empty bucket")
    else:
        ctx.console.print(objects_table(objects, title=f"Bucket '{storage.bucket}' contents"))
