from __future__ import annotations

from loguru import logger
from rich.markup import escape

from r2pilot.core.cloudflare.schemas import ErrorDocument, IndexDocument, WebsiteConfiguration
from r2pilot.core.context import CommandContext
from r2pilot.domains.shared import success
from r2pilot.ui.console import print_json

DEFAULT_INDEX_DOCUMENT = "index.html"
DEFAULT_ERROR_DOCUMENT = "404.html"


def enable_website(
    ctx: CommandContext,
    *,
    bucket: str | None = None,
    index: str | None = None,
    error: str | None = None,
) -> WebsiteConfiguration:
    name = ctx.bucket_name(bucket)
    config = WebsiteConfiguration(
        index_document=IndexDocument(suffix=index or DEFAULT_INDEX_DOCUMENT),
        error_document=ErrorDocument(key=error or DEFAULT_ERROR_DOCUMENT),
    )

    client = ctx.cloudflare(purpose="static website management")
    try:
        client.put_bucket_website(name, config)
    finally:
        client.close()
    logger.info("Enabled static website hosting on {}", name)

    success(ctx, f"Static hosting enabled for '{name}'")
    ctx.console.print(f"  Index document: {escape(config.index_document.suffix)}")
    ctx.console.print(f"  Error document: {escape(config.error_document.key)}")
    return config


def disable_website(ctx: CommandContext, *, bucket: str | None = None) -> None:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="static website management")
    try:
        client.delete_bucket_website(name)
    finally:
        client.close()
    success(ctx, f"Static hosting disabled for '{name}'")


def get_website(ctx: CommandContext, *, bucket: str | None = None) -> WebsiteConfiguration:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="static website management")
    try:
        config = client.get_bucket_website(name)
    finally:
        client.close()

    if ctx.json_output:
        print_json(ctx.console, config.to_payload())
        return config

    ctx.console.print(f"Website configuration for '{escape(name)}':")
    if config.index_document is None and config.error_document is None:
        ctx.console.print("  Static hosting is not configured")
    if config.index_document is not None:
        ctx.console.print(f"  Index document: {escape(config.index_document.suffix)}")
    if config.error_document is not None:
        ctx.console.print(f"  Error document: {escape(config.error_document.key)}")
    return config
