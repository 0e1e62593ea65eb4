from __future__ import annotations

from typing import Any, Callable

from loguru import logger
from rich.console import Console
from rich.markup import escape

from r2pilot.core.errors.exceptions import AppError

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CANCELLED = 130


def render_error(console: Console, exc: AppError) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    if exc.detail is not None:
        console.print(f"[dim]{escape(str(exc.detail))}[/dim]")
    if exc.hint:
        console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


def run_command(handler: Callable[[], Any], *, console: Console, verbose: bool = False) -> int:
    """Run one command handler and turn its outcome into a process exit code."""
    try:
        result = handler()
    except AppError as exc:
        logger.debug("Command failed: {} ({})", exc.code, exc.message)
        if verbose and exc.cause is not None:
            logger.opt(exception=exc.cause).debug("Underlying error")
        render_error(console, exc)
        return exc.exit_code
    except KeyboardInterrupt:
        console.print("[yellow]Operation cancelled[/yellow]")
        return EXIT_CANCELLED
    except Exception as exc:
        if verbose:
            logger.exception("Unexpected error")
        else:
            logger.debug("Unexpected error: {!r}", exc)
        console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc) or type(exc).__name__)}")
        if not verbose:
            console.print("[dim]Re-run with --verbose for details[/dim]")
        return EXIT_UNEXPECTED

    if isinstance(result, int):
        return result
    return EXIT_OK
