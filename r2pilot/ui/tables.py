from __future__ import annotations

from typing import Iterable

from rich.markup import escape
from rich.table import Table

from r2pilot.core.cloudflare.schemas import ApiToken, R2Bucket
from r2pilot.core.storage.r2 import ObjectInfo
from r2pilot.ui.formatting import format_bytes, format_date, format_id, format_status


def tokens_table(tokens: Iterable[ApiToken]) -> Table:
    table = Table(title="API Tokens")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("ID", style="dim")
    table.add_column("Issued")
    table.add_column("Expires")

    for t in tokens:
        table.add_row(
            escape(t.name),
            format_status(t.status),
            escape(format_id(t.id)),
            escape(format_date(t.issued_on)),
            escape(format_date(t.expires_on, default="Never")),
        )
    return table


def buckets_table(buckets: Iterable[R2Bucket], *, default_bucket: str | None = None) -> Table:
    table = Table(title="R2 Buckets")
    table.add_column("Name", style="bold")
    table.add_column("Location")
    table.add_column("Created")

    for b in buckets:
        name = escape(b.name)
        if b.name == default_bucket:
            name += " [green](default)[/green]"
        table.add_row(name, escape(b.location or "-"), escape(format_date(b.creation_date)))
    return table


def objects_table(objects: Iterable[ObjectInfo], *, title: str | None = None) -> Table:
    table = Table(title=escape(title) if title else None)
    table.add_column("Key", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Last modified")

    for o in objects:
        table.add_row(escape(o.key), format_bytes(o.size), escape(format_date(o.last_modified)))
    return table


def key_value_table(rows: Iterable[tuple[str, str]], *, title: str | None = None) -> Table:
    table = Table(title=escape(title) if title else None, show_header=False, box=None, padding=(0, 2))
    table.add_column(style="cyan")
    table.add_column()
    for key, value in rows:
        table.add_row(escape(key), escape(value))
    return table
