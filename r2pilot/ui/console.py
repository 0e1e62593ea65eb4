from __future__ import annotations

import json
from typing import Any

from rich.console import Console

COLOR_MODES = ("auto", "always", "never")


def make_console(*, color: str = "auto", stderr: bool = False) -> Console:
    """Build a rich console for ``auto``/``always``/``never`` color modes."""
    mode = (color or "auto").strip().lower()
    if mode not in COLOR_MODES:
        mode = "auto"

    if mode == "never":
        return Console(stderr=stderr, no_color=True, highlight=False)
    if mode == "always":
        return Console(stderr=stderr, force_terminal=True)
    return Console(stderr=stderr)


def print_json(console: Console, data: Any) -> None:
    # Plain JSON on stdout so it can be piped into other tools.
    console.out(json.dumps(data, indent=2, ensure_ascii=False, default=str), highlight=False)
