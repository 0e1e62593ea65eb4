from __future__ import annotations

import mimetypes
from dataclasses import asdict
from pathlib import Path

from loguru import logger
from rich.markup import escape
from tqdm import tqdm

from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import IoError
from r2pilot.core.storage.multipart import MultipartUploadConfig, requires_multipart_upload
from r2pilot.core.storage.r2 import ObjectInfo, ObjectMetadata
from r2pilot.domains.shared import success
from r2pilot.ui.console import print_json
from r2pilot.ui.formatting import format_bytes, format_date
from r2pilot.ui.tables import key_value_table, objects_table

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(path: Path | str) -> str:
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or DEFAULT_CONTENT_TYPE


def upload(
    ctx: CommandContext,
    *,
    file: Path | str,
    key: str,
    bucket: str | None = None,
    progress: bool = False,
    multipart: bool = False,
    content_type: str | None = None,
) -> None:
    path = Path(file)
    if not path.is_file():
        raise IoError(f"File not found: {path}")

    size = path.stat().st_size
    content_type = content_type or guess_content_type(path)
    use_multipart = multipart or requires_multipart_upload(size)

    storage = ctx.storage(bucket=bucket)
    ctx.console.print(f"Uploading {escape(str(path))} -> {escape(storage.bucket)}/{escape(key)}...")
    ctx.console.print(f"  Size: {format_bytes(size)}")

    with tqdm(
        total=size,
        unit="B",
        unit_scale=True,
        unit_divisor=1024,
        desc=key,
        disable=not progress,
    ) as bar:
        if use_multipart:
            ctx.console.print("  Using multipart upload...")
            config = MultipartUploadConfig.from_advanced(ctx.load_config().advanced_or_default())
            session = storage.upload_file_multipart(
                path=path, key=key, content_type=content_type, config=config, progress=bar.update
            )
            logger.debug("Multipart session {} finished with {} parts", session.upload_id, len(session.parts))
        else:
            storage.upload_file(path=path, key=key, content_type=content_type, callback=bar.update)

    success(ctx, "Upload complete")


def download(ctx: CommandContext, *, key: str, dest: Path | str, bucket: str | None = None) -> None:
    storage = ctx.storage(bucket=bucket)
    ctx.console.print(f"Downloading {escape(storage.bucket)}/{escape(key)} -> {escape(str(dest))}...")
    written = storage.download_file(key=key, path=dest)
    success(ctx, f"Download complete ({format_bytes(written)})")


def delete(ctx: CommandContext, *, key: str, bucket: str | None = None) -> None:
    storage = ctx.storage(bucket=bucket)
    storage.delete_object(key=key)
    logger.info("Deleted {}/{}", storage.bucket, key)
    success(ctx, f"File deleted: {key}")


def list_files(
    ctx: CommandContext,
    *,
    prefix: str | None = None,
    bucket: str | None = None,
    limit: int | None = None,
) -> list[ObjectInfo]:
    storage = ctx.storage(bucket=bucket)
    objects = storage.list_objects(prefix=prefix, limit=limit)

    if ctx.json_output:
        print_json(ctx.console, [asdict(o) for o in objects])
    elif not objects:
        ctx.console.print("  No files found")
    else:
        title = f"{storage.bucket}/{prefix or ''}"
        ctx.console.print(objects_table(objects, title=title))
    return objects


def info(ctx: CommandContext, *, key: str, bucket: str | None = None) -> ObjectMetadata:
    storage = ctx.storage(bucket=bucket)
    meta = storage.head_object(key=key)

    if ctx.json_output:
        print_json(ctx.console, asdict(meta))
    else:
        ctx.console.print(
            key_value_table(
                [
                    ("Key", meta.key),
                    ("Size", format_bytes(meta.size)),
                    ("Content type", meta.content_type or "-"),
                    ("Last modified", format_date(meta.last_modified)),
                    ("ETag", meta.etag or "-"),
                ],
                title=storage.bucket,
            )
        )
    return meta


def copy(ctx: CommandContext, *, source: str, dest: str, bucket: str | None = None) -> None:
    storage = ctx.storage(bucket=bucket)
    storage.copy_object(source_key=source, dest_key=dest)
    logger.info("Copied {} to {} in {}", source, dest, storage.bucket)
    success(ctx, f"Copied {source} -> {dest}")
