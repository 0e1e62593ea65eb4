from __future__ import annotations

from pydantic import ValidationError
from rich.markup import escape

from r2pilot.core.cloudflare.schemas import CORS_METHODS, BucketCorsConfig, CorsRule
from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError
from r2pilot.ui.formatting import split_csv
from r2pilot.ui.prompts import ask_confirm, ask_int, ask_multiselect, ask_text

DEFAULT_MAX_AGE_SECONDS = 86400


def run_cors_wizard(ctx: CommandContext) -> BucketCorsConfig:
    console = ctx.err_console
    console.print("[bold]CORS Configuration Wizard[/bold]\n")

    if ask_confirm(console, "Allow requests from all origins (*)?", default=True):
        origins = ["*"]
    else:
        origins = split_csv(
            ask_text(console, "Allowed origins (comma-separated, e.g. https://example.com,https://app.example.com)")
        )

    methods = ask_multiselect(console, "Allowed HTTP methods", CORS_METHODS, defaults=("GET", "OPTIONS"))

    if ask_confirm(console, "Allow all headers (*)?", default=True):
        headers: list[str] | None = ["*"]
    else:
        raw = ask_text(
            console, "Allowed headers (comma-separated, e.g. Content-Type,Authorization)", allow_empty=True
        )
        headers = split_csv(raw) or None

    max_age = ask_int(
        console,
        "Cache preflight responses for how many seconds? (0 = no caching)",
        default=DEFAULT_MAX_AGE_SECONDS,
        minimum=0,
    )

    try:
        rule = CorsRule(
            allowed_origins=origins,
            allowed_methods=methods,
            allowed_headers=headers,
            max_age_seconds=max_age,
        )
    except ValidationError as exc:
        raise InvalidInputError("Invalid CORS rule", detail=str(exc)) from exc

    console.print("\n[green]CORS configuration created[/green]")
    console.print(f"  Allowed origins: {escape(', '.join(rule.allowed_origins))}")
    console.print(f"  Allowed methods: {', '.join(rule.allowed_methods)}")
    console.print(f"  Allowed headers: {escape(', '.join(rule.allowed_headers or []) or '-')}")
    console.print(f"  Max age: {rule.max_age_seconds}s")
    return BucketCorsConfig(rules=[rule])
