from __future__ import annotations

from datetime import datetime

from rich.markup import escape

_UNITS = ("B", "KB", "MB", "GB", "TB")

_STATUS_STYLES = {
    "active": "[green]Active[/green]",
    "revoked": "[red]Revoked[/red]",
    "expired": "[yellow]Expired[/yellow]",
    "disabled": "[yellow]Disabled[/yellow]",
}


def format_bytes(size: int) -> str:
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {_UNITS[unit]}"


def format_date(value: str | datetime | None, *, default: str = "-") -> str:
    """Render an ISO-8601 string or datetime as ``YYYY-MM-DD HH:MM``.

    Unparsable strings are returned unchanged.
    """
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")

    raw = value.strip()
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    return parsed.strftime("%Y-%m-%d %H:%M")


def format_status(status: str) -> str:
    return _STATUS_STYLES.get((status or "").strip().lower(), escape(status or ""))


def format_id(value: str, *, width: int = 8) -> str:
    if len(value) > width:
        return f"{value[:width]}..."
    return value


def mask_secret(value: str | None, *, visible: int = 4) -> str:
    if not value:
        return "-"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def split_csv(raw: str) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]
