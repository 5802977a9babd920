"""Console output for eksa workflows, rendered with :mod:`rich`.

Operator-facing status goes through here; the ``logging`` calls in the
workflow modules stay the structured record of what happened.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from eksa.state.models import RunRecord
    from eksa.validations.models import ValidationResult

console = Console(stderr=False, force_terminal=None)

_PASS = "[bold green]✓[/]"
_FAIL = "[bold red]✗[/]"
_WARN = "[bold yellow]![/]"


def phase(title: str) -> None:
    """Header for a workflow (``CREATE``, ``VALIDATE``)."""
    console.print()
    console.print(f"[bold blue]── {title} ──[/]")


def ok(msg: str) -> None:
    console.print(f"  {_PASS} {msg}")


def fail(msg: str) -> None:
    console.print(f"  {_FAIL} [red]{msg}[/]")


def warn(msg: str) -> None:
    console.print(f"  {_WARN} [yellow]{msg}[/]")


def validation_table(results: Iterable["ValidationResult"]) -> None:
    """One row per pre-flight validation, failures carrying their cause."""
    table = Table(title="Validations", border_style="cyan")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Error", style="red")
    for res in results:
        status = "[green]PASS[/]" if res.passed else "[red]FAIL[/]"
        table.add_row(res.name, status, res.error)
    console.print(table)


def run_summary(record: "RunRecord") -> None:
    """Closing panel for a create run, green on success and red otherwise."""
    lines = [f"Cluster:  {record.cluster_name}", f"Provider: {record.provider}"]
    if record.tasks:
        lines.append(f"Tasks:    {' -> '.join(record.tasks)}")
    if record.kubeconfig_file:
        lines.append(f"Kubeconfig: {record.kubeconfig_file}")
    if record.bootstrap_cluster:
        lines.append(f"[yellow]Bootstrap cluster left behind: {record.bootstrap_cluster}[/]")
    if record.error:
        lines.append(f"[red]{record.error}[/]")

    if record.success:
        title, style = "[bold green]CLUSTER CREATED[/]", "green"
    else:
        title, style = "[bold red]CLUSTER CREATION FAILED[/]", "red"
    console.print()
    console.print(Panel("\n".join(lines), title=title, border_style=style, padding=(1, 2)))
