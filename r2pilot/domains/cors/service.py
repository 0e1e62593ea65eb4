from __future__ import annotations

from pathlib import Path

from loguru import logger
from rich.markup import escape

from r2pilot.core.cloudflare.schemas import BucketCorsConfig
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError
from r2pilot.domains.cors.wizard import run_cors_wizard
from r2pilot.domains.shared import load_json_model, success
from r2pilot.ui.console import print_json


def get_cors(ctx: CommandContext, *, bucket: str | None = None) -> BucketCorsConfig:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="CORS management")
    try:
        config = client.get_bucket_cors(name)
    finally:
        client.close()

    if ctx.json_output:
        print_json(ctx.console, config.to_payload())
        return config

    ctx.console.print(f"CORS rules for '{escape(name)}':")
    if not config.rules:
        ctx.console.print("  No CORS rules")
    for i, rule in enumerate(config.rules, start=1):
        ctx.console.print(f"  Rule {i}:")
        ctx.console.print(f"    Allowed origins: {escape(', '.join(rule.allowed_origins))}")
        ctx.console.print(f"    Allowed methods: {', '.join(rule.allowed_methods)}")
        ctx.console.print(f"    Allowed headers: {escape(', '.join(rule.allowed_headers or []) or '-')}")
        max_age = "-" if rule.max_age_seconds is None else f"{rule.max_age_seconds}s"
        ctx.console.print(f"    Max age: {max_age}")
    return config


def set_cors(
    ctx: CommandContext,
    *,
    bucket: str | None = None,
    file: Path | str | None = None,
    interactive: bool = False,
) -> BucketCorsConfig:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="CORS management")
    try:
        if interactive:
            config = run_cors_wizard(ctx)
        elif file:
            config = load_json_model(file, BucketCorsConfig)
        else:
            raise InvalidInputError("Either --interactive or --file must be specified")

        ctx.console.print(f"Setting CORS configuration for '{escape(name)}'...")
        client.put_bucket_cors(name, config)
    finally:
        client.close()

    logger.info("Set {} CORS rule(s) on {}", len(config.rules), name)
    success(ctx, "CORS configuration set")
    return config


def delete_cors(ctx: CommandContext, *, bucket: str | None = None) -> None:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="CORS management")
    try:
        client.delete_bucket_cors(name)
    finally:
        client.close()
    success(ctx, f"CORS configuration deleted for '{name}'")
