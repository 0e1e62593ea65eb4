from __future__ import annotations

import re
from pathlib import Path

from rich.markup import escape

from r2pilot.core.config import (
    ACCOUNT_ID_LENGTH,
    CloudflareConfig,
    ConfigFile,
    R2Config,
    endpoint_for_account,
    get_config_path,
    save_config,
    validate_config,
)
from r2pilot.core.context import CommandContext
from r2pilot.ui.prompts import ask_choice, ask_confirm, ask_text
from r2pilot.ui.tables import key_value_table

AUTH_METHODS = ("API Token (recommended)", "Access Key ID + Secret Access Key")

_BUCKET_NAME_RE = re.compile(r"^[A-Za-z0-9.-]+$")
MIN_SECRET_KEY_LENGTH = 20


def validate_account_id(value: str) -> str | None:
    if not value:
        return "Account ID cannot be empty"
    if not value.isalnum() or not value.isascii():
        return f"Account ID must be alphanumeric ({ACCOUNT_ID_LENGTH} characters)"
    if len(value) != ACCOUNT_ID_LENGTH:
        return f"Account ID must be exactly {ACCOUNT_ID_LENGTH} characters"
    return None


def validate_bucket_name(value: str) -> str | None:
    if not value:
        return "Bucket name cannot be empty"
    if len(value) < 3:
        return "Bucket name must be at least 3 characters"
    if len(value) > 63:
        return "Bucket name must be less than 64 characters"
    if not _BUCKET_NAME_RE.match(value):
        return "Bucket name can only contain alphanumeric characters, hyphens, and dots"
    return None


def validate_secret_key(value: str) -> str | None:
    if not value:
        return "Secret Access Key cannot be empty"
    if len(value) < MIN_SECRET_KEY_LENGTH:
        return "Secret Access Key seems too short"
    return None


def run_init_wizard(ctx: CommandContext, *, path: Path | None = None) -> ConfigFile | None:
    """Prompt for a configuration, save it, and return it (``None`` when declined)."""
    console = ctx.err_console
    target = path or ctx.config_path or get_config_path()

    console.print("[bold]Welcome to r2pilot setup![/bold]\n")
    console.print("You will need:")
    console.print("  1. Your Cloudflare Account ID")
    console.print("  2. An API Token OR Access Key ID + Secret Access Key")
    console.print("  3. Your R2 bucket name\n")

    if target.exists():
        if not ask_confirm(console, f"A configuration already exists at {target}. Overwrite it?", default=False):
            console.print("[yellow]Configuration unchanged[/yellow]")
            return None

    account_id = ask_text(console, "Cloudflare Account ID", validate=validate_account_id)

    api_token = access_key_id = secret_access_key = None
    if ask_choice(console, "Authentication method", AUTH_METHODS) == 0:
        api_token = ask_text(console, "API Token", password=True)
    else:
        access_key_id = ask_text(console, "Access Key ID")
        secret_access_key = ask_text(console, "Secret Access Key", password=True, validate=validate_secret_key)

    default_bucket = ask_text(console, "Default bucket name", default="my-bucket", validate=validate_bucket_name)

    config = ConfigFile(
        cloudflare=CloudflareConfig(
            account_id=account_id,
            endpoint=endpoint_for_account(account_id),
            api_token=api_token,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
        ),
        r2=R2Config(default_bucket=default_bucket),
    )
    validate_config(config)

    console.print()
    console.print(
        key_value_table(
            [
                ("Account ID", account_id),
                ("Endpoint", config.cloudflare.endpoint),
                ("Bucket", default_bucket),
                ("Auth", "API Token" if api_token else "Access Keys"),
            ],
            title="Configuration summary",
        )
    )

    if not ask_confirm(console, "Save this configuration?", default=False):
        console.print("[yellow]Configuration cancelled[/yellow]")
        return None

    saved = save_config(config, target)
    console.print(f"\n[green]Configuration saved to {escape(str(saved))}[/green]")
    console.print("\nYou can now use r2pilot:")
    console.print("  $ r2pilot buckets list")
    console.print("  $ r2pilot files upload file.txt path/to/file.txt")
    console.print("  $ r2pilot config show")
    return config
