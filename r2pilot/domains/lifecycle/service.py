from __future__ import annotations

from pathlib import Path

from loguru import logger
from rich.markup import escape

from r2pilot.core.cloudflare.schemas import LifecycleConfiguration
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError
from r2pilot.domains.lifecycle.wizard import run_lifecycle_wizard
from r2pilot.domains.shared import load_json_model, success
from r2pilot.ui.console import print_json


def get_lifecycle(ctx: CommandContext, *, bucket: str | None = None) -> LifecycleConfiguration:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="lifecycle management")
    try:
        config = client.get_bucket_lifecycle(name)
    finally:
        client.close()

    if ctx.json_output:
        print_json(ctx.console, config.to_payload())
        return config

    ctx.console.print(f"Lifecycle rules for '{escape(name)}':")
    if not config.rules:
        ctx.console.print("  No lifecycle rules")
    for i, rule in enumerate(config.rules, start=1):
        ctx.console.print(f"  Rule {i} ({escape(rule.id)})")
        ctx.console.print(f"    Status: {rule.status}")
        if rule.filter.prefix:
            ctx.console.print(f"    Filter prefix: {escape(rule.filter.prefix)}")
        if rule.expiration and rule.expiration.days:
            ctx.console.print(f"    Expiration: {rule.expiration.days} days")
    return config


def set_lifecycle(
    ctx: CommandContext,
    *,
    bucket: str | None = None,
    file: Path | str | None = None,
    interactive: bool = False,
) -> LifecycleConfiguration:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="lifecycle management")
    try:
        if interactive:
            config = run_lifecycle_wizard(ctx)
        elif file:
            config = load_json_model(file, LifecycleConfiguration)
        else:
            raise InvalidInputError("Either --interactive or --file must be specified")

        ctx.console.print(f"Setting lifecycle rules for '{escape(name)}'...")
        client.put_bucket_lifecycle(name, config)
    finally:
        client.close()

    logger.info("Set {} lifecycle rule(s) on {}", len(config.rules), name)
    success(ctx, "Lifecycle rules set")
    ctx.console.print("  Note: rules may take time to apply")
    return config


def delete_lifecycle(ctx: CommandContext, *, bucket: str | None = None) -> None:
    name = ctx.bucket_name(bucket)
    client = ctx.cloudflare(purpose="lifecycle management")
    try:
        client.delete_bucket_lifecycle(name)
    finally:
        client.close()
    success(ctx, f"Lifecycle rules deleted for '{name}'")
