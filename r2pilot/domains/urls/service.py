from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from rich.markup import escape

from r2pilot.core.config import MAX_EXPIRATION_SECONDS
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError
from r2pilot.core.storage.r2 import PRESIGN_METHODS
from r2pilot.ui.console import print_json


def check_expiration(expires: int) -> int:
    if expires < 1 or expires > MAX_EXPIRATION_SECONDS:
        raise InvalidInputError(f"Expiration must be between 1 and {MAX_EXPIRATION_SECONDS} seconds (7 days)")
    return expires


def generate_url(
    ctx: CommandContext,
    *,
    key: str,
    method: str = "get",
    expires: int | None = None,
    content_type: str | None = None,
    bucket: str | None = None,
    output: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    method = method.lower()
    if method not in PRESIGN_METHODS:
        raise InvalidInputError(f"Invalid method: {method}. Valid methods: {', '.join(PRESIGN_METHODS)}")

    config = ctx.load_config()
    expires = check_expiration(config.r2.default_expiration if expires is None else expires)

    storage = ctx.storage(bucket=bucket)
    url = storage.presigned_url(key=key, method=method, expires_in=expires, content_type=content_type)
    expires_at = (now or datetime.now(timezone.utc)) + timedelta(seconds=expires)

    result = {
        "key": key,
        "bucket": storage.bucket,
        "method": method.upper(),
        "url": url,
        "expires_in": expires,
        "expires_at": expires_at.isoformat(),
    }

    if (output or ctx.output) == "json":
        print_json(ctx.console, result)
        return result

    ctx.console.print(f"Signed URL for [bold]{escape(key)}[/bold] (method: {method.upper()}, expires: {expires}s)")
    ctx.console.print()
    ctx.console.out(url, highlight=False)
    ctx.console.print()
    ctx.console.print(f"  Expires at: {expires_at.strftime('%Y-%m-%d %H:%M:%S %Z')}")
    return result
