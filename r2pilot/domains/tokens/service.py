from __future__ import annotations

from datetime import datetime

from loguru import logger
from rich.markup import escape

from r2pilot.core.cloudflare.schemas import ApiToken, R2TokenBuilder
from r2pilot.core.context import CommandContext
from r2pilot.domains.shared import confirm_destructive, success
from r2pilot.ui.console import print_json
from r2pilot.ui.formatting import format_status
from r2pilot.ui.prompts import ask_text
from r2pilot.ui.tables import tokens_table


def default_token_name(now: datetime | None = None) -> str:
    return f"r2pilot-{(now or datetime.now()).strftime('%Y%m%d')}"


def list_tokens(ctx: CommandContext) -> list[ApiToken]:
    client = ctx.cloudflare(purpose="token management")
    try:
        tokens = client.list_tokens()
    finally:
        client.close()

    if ctx.json_output:
        print_json(ctx.console, [t.model_dump(exclude={"value"}) for t in tokens])
    elif not tokens:
        ctx.console.print("  No tokens found")
    else:
        ctx.console.print(tokens_table(tokens))
    return tokens


def create_token(ctx: CommandContext, *, name: str | None = None, ips: list[str] | None = None) -> ApiToken:
    config = ctx.load_config()
    if not name:
        name = ask_text(ctx.err_console, "Token name", default=default_token_name())

    params = R2TokenBuilder(name, config.cloudflare.account_id).ip_whitelist(ips or []).build()

    client = ctx.cloudflare(purpose="token management")
    try:
        token = client.create_token(params)
    finally:
        client.close()
    logger.info("Created API token {} ({})", token.name, token.id)

    if ctx.json_output:
        print_json(ctx.console, token.model_dump())
        return token

    success(ctx, f"Token created: {token.name}")
    ctx.console.print(f"  Status: {format_status(token.status)}")
    ctx.console.print(f"  ID: {escape(token.id)}")
    if token.value:
        ctx.console.print()
        ctx.console.print("  [bold yellow]IMPORTANT:[/bold yellow] copy this token now, it won't be shown again!")
        ctx.console.out(f"  {token.value}", highlight=False)
        ctx.console.print()
        ctx.console.print("  Save it in your configuration:")
        ctx.console.print("     r2pilot config set cloudflare.api_token <token>")
    return token


def revoke_token(ctx: CommandContext, *, token_id: str, assume_yes: bool = False) -> None:
    client = ctx.cloudflare(purpose="token management")
    try:
        confirm_destructive(ctx, f"you are about to revoke token '{token_id}'", assume_yes=assume_yes)
        client.revoke_token(token_id)
    finally:
        client.close()
    logger.info("Revoked API token {}", token_id)
    success(ctx, f"Token revoked: {token_id}")
