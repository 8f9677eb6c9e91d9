"""Rich terminal output for runtrace."""
from __future__ import annotations

import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from runtrace.models import FieldCategory
from runtrace.telemetry.fields import FieldCollection

console = Console()

CATEGORY_STYLES = {
    FieldCategory.NONE: "bold",
    FieldCategory.SESSION: "cyan",
    FieldCategory.APP: "green",
    FieldCategory.USER_SYSTEM: "yellow",
    FieldCategory.USER_CONFIG: "magenta",
}


def render_fields(fields: FieldCollection, title: str = "Telemetry session", out: Console | None = None) -> None:
    """Print collected fields as a table, in collection order."""
    c = out or console
    table = Table(title=title, title_justify="left", show_lines=False)
    table.add_column("Category")
    table.add_column("Name", no_wrap=True)
    table.add_column("Kind", style="dim")
    table.add_column("Value", overflow="fold")
    for field in fields:
        style = CATEGORY_STYLES.get(field.category, "")
        table.add_row(
            f"[{style}]{field.category.value}[/{style}]" if style else field.category.value,
            escape(field.name),
            field.kind.value,
            escape(repr(field.value) if isinstance(field.value, str) else str(field.value)),
        )
    c.print(table)


def print_submission_status(submitted: bool | None, enabled: bool) -> None:
    if not enabled:
        console.print("  [dim]Telemetry disabled: nothing was sent.[/dim]")
    elif submitted:
        console.print("  [green]Telemetry submitted.[/green]")
    else:
        console.print("  [yellow]Telemetry submission failed.[/yellow]")


def print_first_run_notice(file=None) -> None:
    """Print telemetry disclosure on first run.

    Args:
        file: Output stream. Default stdout.
    """
    out = file or sys.stdout
    c = Console(file=out)
    notice = (
        "  runtrace sends an anonymous session report (build, CPU and\n"
        "  renderer settings) when the application exits. The report is\n"
        "  keyed by a random installation id. If you configured an account,\n"
        "  its username and token are sent with the report.\n"
        "\n"
        "  Disable:    runtrace config set telemetry off\n"
        "  One-time:   runtrace session --no-telemetry\n"
        "  New id:     runtrace id regenerate"
    )
    c.print(notice, style="dim")
