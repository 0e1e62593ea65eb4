from __future__ import annotations

from rich.markup import escape

from r2pilot.core.cloudflare.schemas import (
    LifecycleConfiguration,
    LifecycleExpiration,
    LifecycleFilter,
    LifecycleRule,
)
from r2pilot.core.context import CommandContext
from r2pilot.ui.prompts import ask_confirm, ask_int, ask_text

DEFAULT_EXPIRATION_DAYS = 30


def run_lifecycle_wizard(ctx: CommandContext) -> LifecycleConfiguration:
    console = ctx.err_console
    console.print("[bold]Lifecycle Rules Configuration Wizard[/bold]\n")

    rules: list[LifecycleRule] = []
    while True:
        console.print("Add a new lifecycle rule...")
        rule_id = ask_text(console, "Rule ID (unique identifier)", default=f"rule-{len(rules) + 1}")
        prefix = ask_text(console, "Object prefix (leave empty for all objects)", default="", allow_empty=True)

        expiration = None
        if ask_confirm(console, "Add expiration to this rule?", default=True):
            days = ask_int(
                console, "Delete objects after how many days?", default=DEFAULT_EXPIRATION_DAYS, minimum=1
            )
            expiration = LifecycleExpiration(days=days)

        enabled = ask_confirm(console, "Enable this rule?", default=True)
        rules.append(
            LifecycleRule(
                id=rule_id,
                filter=LifecycleFilter(prefix=prefix or None),
                status="Enabled" if enabled else "Disabled",
                expiration=expiration,
            )
        )
        console.print(f"\n[green]Rule '{escape(rule_id)}' added[/green]")

        if not ask_confirm(console, "Add another rule?", default=False):
            break
        console.print()

    console.print(f"\n[green]Lifecycle configuration created[/green] ({len(rules)} rule(s))")
    return LifecycleConfiguration(rules=rules)
