"""CLI commands for computing bill splits."""

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import load_settings, setup_logging
from ..exceptions import BillSplitError, ConservationViolationError
from ..inputs import load_json, parse_split_request
from ..models import Breakdown
from ..money import format_money
from ..service import BillSplitService

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="split",
    help="Divide a receipt total among participants",
)

console = Console()


def display_breakdown(breakdown: Breakdown):
    """Display a breakdown in a table."""
    console.print(f"\n[bold]{breakdown.split_type.value.replace('_', ' ').title()} split[/bold]")
    console.print(f"  Total: {format_money(breakdown.total, use_color=True)}")
    if breakdown.receipt_total is not None:
        receipt_total = format_money(breakdown.receipt_total, use_color=True)
        console.print(f"  Receipt total: {receipt_total}")
    console.print()

    table = Table(title="Breakdown", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Participant", style="cyan")
    table.add_column("Amount", justify="right", width=14)
    table.add_column("Share", justify="right", width=9)
    table.add_column("Items", style="dim", no_wrap=False)

    for index, entry in enumerate(breakdown.entries, start=1):
        items = ", ".join(
            f"{item.item_name or '?'} x{item.quantity}" for item in entry.items
        )
        table.add_row(
            str(index),
            entry.name or entry.participant_id,
            format_money(entry.amount, use_color=True),
            f"{entry.percentage}%",
            items,
        )

    console.print(table)

    for warning in breakdown.warnings:
        console.print(f"  [yellow]⚠️  {warning.kind}: {warning.message}[/yellow]")

    if breakdown.allocated() == breakdown.total:
        console.print("  [green]✓ Shares add up to the total[/green]")
    else:
        console.print(
            f"  [yellow]Shares add up to {format_money(breakdown.allocated())} "
            f"(within tolerance)[/yellow]"
        )


@app.command()
def compute(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="JSON split request"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the breakdown as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Compute a split breakdown.

    The request holds a total, a split type (equal, percentage, custom or
    item_based), the participants in order, and the policy hints.
    """
    try:
        settings = load_settings()
        setup_logging(verbose, settings.log_level)
        service = BillSplitService(settings)

        request = parse_split_request(load_json(input_file))
        breakdown = service.compute_breakdown(
            request.total, request.policy(), request.participants
        )

        if as_json:
            console.print_json(breakdown.model_dump_json())
        else:
            display_breakdown(breakdown)

    except ConservationViolationError as e:
        logger.error(f"Conservation check failed, context: {e.context}")
        console.print(f"\n[bold red]Internal error ({e.kind.value}):[/bold red] {e}")
        sys.exit(2)
    except BillSplitError as e:
        console.print(f"\n[bold yellow]⚠️  {e.kind.value}: {e}[/bold yellow]\n")
        sys.exit(1)
