from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from rich.markup import escape

from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError, IoError, OperationCancelledError
from r2pilot.ui.prompts import ask_confirm

ModelT = TypeVar("ModelT", bound=BaseModel)


def load_json_model(path: Path | str, model: type[ModelT]) -> ModelT:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IoError(f"Failed to read file {path}: {exc}", cause=exc) from exc

    try:
        payload: Any = json.loads(raw)
    except ValueError as exc:
        raise InvalidInputError(f"{path} is not valid JSON: {exc}") from exc

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid {model.__name__} in {path}", detail=str(exc)) from exc


def confirm_destructive(ctx: CommandContext, message: str, *, assume_yes: bool) -> None:
    """Ask before an irreversible action; ``--yes`` skips the prompt."""
    if assume_yes:
        return
    ctx.err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")
    ctx.err_console.print("  This action is IRREVERSIBLE!")
    if not ask_confirm(ctx.err_console, "Continue?", default=False):
        raise OperationCancelledError()


def success(ctx: CommandContext, message: str) -> None:
    ctx.console.print(f"  [green]✓[/green] {escape(message)}")
