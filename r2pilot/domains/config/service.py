from __future__ import annotations

import os
import shlex
import subprocess
from typing import Any

from loguru import logger
from rich.markup import escape

from r2pilot.core.config import (
    ConfigFile,
    get_config_path,
    load_config,
    save_config,
    set_config_value,
    validate_config,
)
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import ConfigNotFoundError, IoError
from r2pilot.domains.shared import success
from r2pilot.ui.console import print_json
from r2pilot.ui.formatting import mask_secret
from r2pilot.ui.tables import key_value_table

DEFAULT_EDITOR = "vi"


def redacted_config(config: ConfigFile) -> dict[str, Any]:
    payload = config.model_dump(exclude_none=True)
    cf = payload["cloudflare"]
    for secret in ("api_token", "secret_access_key"):
        if secret in cf:
            cf[secret] = mask_secret(cf[secret])
    return payload


def show_config(ctx: CommandContext) -> None:
    config = ctx.load_config(validate=False)
    if ctx.json_output:
        print_json(ctx.console, redacted_config(config))
        return

    cf = config.cloudflare
    rows = [
        ("Account ID", f"{cf.account_id[:8]}..."),
        ("Endpoint", cf.endpoint),
        ("Auth", "API Token" if cf.has_api_token else "Access Keys"),
    ]
    if cf.has_access_keys:
        rows.append(("Access Key ID", cf.access_key_id or ""))
    ctx.console.print(key_value_table(rows, title="Cloudflare"))

    ctx.console.print(
        key_value_table(
            [
                ("Default bucket", config.r2.default_bucket),
                ("Region", config.r2.region),
                ("Default expiration", f"{config.r2.default_expiration}s"),
            ],
            title="R2",
        )
    )

    advanced = config.advanced_or_default()
    ctx.console.print(
        key_value_table(
            [
                ("Timeout", f"{advanced.timeout}s"),
                ("Max retries", str(advanced.max_retries)),
                ("Multipart chunk size", f"{advanced.multipart_chunk_size_mb} MB"),
            ],
            title="Advanced",
        )
    )


def config_path(ctx: CommandContext) -> None:
    ctx.console.out(str(ctx.config_path or get_config_path()), highlight=False)


def edit_config(ctx: CommandContext) -> None:
    path = ctx.config_path or get_config_path()
    if not path.exists():
        raise ConfigNotFoundError(path)

    editor = (os.getenv("EDITOR") or DEFAULT_EDITOR).strip() or DEFAULT_EDITOR
    ctx.err_console.print(f"Opening {escape(str(path))} with {escape(editor)}...")

    try:
        completed = subprocess.run([*shlex.split(editor), str(path)], check=False)
    except OSError as exc:
        raise IoError(f"Failed to launch editor '{editor}': {exc}", cause=exc) from exc

    if completed.returncode != 0:
        logger.warning("Editor exited with status {}", completed.returncode)
        ctx.err_console.print("[yellow]Editor exited with an error[/yellow]")
        return

    success(ctx, "Configuration edited")
    validate_config(load_config(path))
    success(ctx, "Configuration valid")


def validate_current_config(ctx: CommandContext) -> None:
    ctx.console.print("Validating configuration...")
    config = ctx.load_config(validate=False)
    validate_config(config)
    success(ctx, "Valid configuration format")

    ctx.console.print("  Testing R2 connection...")
    storage = ctx.storage()
    storage.list_objects(limit=1)
    success(ctx, f"R2 connection to bucket '{storage.bucket}' successful")


def set_value(ctx: CommandContext, *, key: str, value: str) -> None:
    path = ctx.config_path or get_config_path()
    config = ctx.load_config(validate=False)
    updated = set_config_value(config, key, value)
    save_config(updated, path)
    logger.info("Set {} in {}", key, path)
    success(ctx, f"{key} updated")
