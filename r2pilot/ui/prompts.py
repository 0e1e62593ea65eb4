"""Interactive prompts built on rich.prompt.

Interrupting a prompt (Ctrl-C or end of input) raises
``OperationCancelledError``.
"""

from __future__ import annotations

from typing import Callable, Sequence

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from r2pilot.core.errors.exceptions import OperationCancelledError
from r2pilot.ui.formatting import split_csv

# Returns an error message, or None when the value is accepted.
Validator = Callable[[str], str | None]


def ask_text(
    console: Console,
    prompt: str,
    *,
    default: str | None = None,
    password: bool = False,
    validate: Validator | None = None,
    allow_empty: bool = False,
) -> str:
    while True:
        try:
            if default is None:
                value = Prompt.ask(prompt, console=console, password=password)
            else:
                value = Prompt.ask(prompt, console=console, password=password, default=default)
        except (KeyboardInterrupt, EOFError) as exc:
            raise OperationCancelledError() from exc

        value = (value or "").strip()
        if not value and not allow_empty:
            console.print("[red]A value is required[/red]")
            continue

        error = validate(value) if validate else None
        if error:
            console.print(f"[red]{error}[/red]")
            continue
        return value


def ask_int(console: Console, prompt: str, *, default: int, minimum: int | None = None) -> int:
    while True:
        try:
            value = IntPrompt.ask(prompt, console=console, default=default)
        except (KeyboardInterrupt, EOFError) as exc:
            raise OperationCancelledError() from exc

        if minimum is not None and value < minimum:
            console.print(f"[red]Value must be >= {minimum}[/red]")
            continue
        return value


def ask_confirm(console: Console, prompt: str, *, default: bool = False) -> bool:
    try:
        return Confirm.ask(prompt, console=console, default=default)
    except (KeyboardInterrupt, EOFError) as exc:
        raise OperationCancelledError() from exc


def ask_choice(console: Console, prompt: str, choices: Sequence[str], *, default: int = 0) -> int:
    """Numbered single choice; returns the selected index."""
    for i, choice in enumerate(choices, start=1):
        console.print(f"  [cyan]{i}[/cyan]) {choice}")

    numbers = [str(i) for i in range(1, len(choices) + 1)]
    try:
        picked = Prompt.ask(prompt, console=console, choices=numbers, default=numbers[default])
    except (KeyboardInterrupt, EOFError) as exc:
        raise OperationCancelledError() from exc
    return int(picked) - 1


def ask_multiselect(
    console: Console,
    prompt: str,
    choices: Sequence[str],
    *,
    defaults: Sequence[str] = (),
) -> list[str]:
    """Comma-separated multi choice, case-insensitive, kept in ``choices`` order."""
    known = {c.upper(): c for c in choices}
    default = ",".join(defaults)

    while True:
        raw = ask_text(console, f"{prompt} ({', '.join(choices)})", default=default or None)
        picked = {item.upper() for item in split_csv(raw)}
        unknown = sorted(picked - set(known))
        if unknown:
            console.print(f"[red]Unknown choice(s): {', '.join(unknown)}[/red]")
            continue
        if not picked:
            console.print("[red]Select at least one value[/red]")
            continue
        return [c for c in choices if c.upper() in picked]
