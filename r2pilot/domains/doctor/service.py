from __future__ import annotations

import platform

from rich.markup import escape

from r2pilot.core.config import get_config_path, load_config, validate_config
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import AppError
from r2pilot.domains.shared import success


def check(ctx: CommandContext, *, version: str) -> bool:
    """Report installation and configuration state; returns ``True`` when healthy."""
    ctx.console.print("Checking r2pilot installation...")
    success(ctx, f"r2pilot {version} (Python {platform.python_version()})")

    path = ctx.config_path or get_config_path()
    if not path.exists():
        ctx.console.print(f"  [yellow]![/yellow] Configuration not found at {escape(str(path))} (run 'r2pilot init')")
        return False
    success(ctx, f"Configuration found at {path}")

    try:
        config = load_config(path)
        validate_config(config)
    except AppError as exc:
        ctx.console.print(f"  [red]✗[/red] {escape(str(exc))}")
        return False

    success(ctx, "Configuration valid")
    method = "API Token" if config.cloudflare.has_api_token else "Access Keys"
    ctx.console.print(f"  Auth method: {method}")
    ctx.console.print(f"  Default bucket: {escape(config.r2.default_bucket)}")
    return True


def test_connection(ctx: CommandContext) -> None:
    ctx.console.print("Testing connections...")
    config = ctx.load_config()

    if config.cloudflare.has_api_token:
        client = ctx.cloudflare(purpose="the Cloudflare API check")
        try:
            verification = client.verify_token()
        finally:
            client.close()
        success(ctx, f"Cloudflare API token is {verification.status or 'valid'}")
    else:
        ctx.console.print("  Using configured Access Keys")

    storage = ctx.storage()
    storage.list_objects(limit=1)
    success(ctx, f"R2 connection OK (bucket '{storage.bucket}')")
    ctx.console.print()
    success(ctx, "All connections are working!")
