"""CLI commands for settling group balances."""

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import load_settings, setup_logging
from ..exceptions import BillSplitError, ConservationViolationError
from ..inputs import load_json, parse_balances
from ..models import SettlementPlan
from ..money import format_money
from ..service import BillSplitService

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="settle",
    help="Reduce group balances to a list of payments",
)

console = Console()


def display_plan(plan: SettlementPlan):
    """Display a settlement plan in a table."""
    if not plan.transactions:
        console.print("\n[green]Everyone is settled up.[/green]")
    else:
        table = Table(title="Payments", show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", width=4)
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Amount", justify="right", width=14)

        for index, tx in enumerate(plan.transactions, start=1):
            table.add_row(
                str(index),
                tx.from_participant,
                tx.to_participant,
                format_money(tx.amount, use_color=True),
            )

        console.print()
        console.print(table)

    for warning in plan.warnings:
        console.print(f"  [yellow]⚠️  {warning.kind}: {warning.message}[/yellow]")

    if plan.unmatched:
        console.print("\n[bold]Unmatched balances:[/bold]")
        for participant_id, balance in plan.unmatched.items():
            console.print(f"  {participant_id}: {format_money(balance, use_color=True)}")


@app.command()
def plan(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="JSON balances or ledger snapshot"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Plan the payments that settle a group.

    Input is either a mapping of participant id to net balance, or a list of
    ledger rows with total_owed / total_paid.
    """
    try:
        settings = load_settings()
        setup_logging(verbose, settings.log_level)
        service = BillSplitService(settings)

        balances = parse_balances(load_json(input_file))
        settlement_plan = service.plan_settlement_for_balances(balances)

        if as_json:
            console.print_json(settlement_plan.model_dump_json())
        else:
            display_plan(settlement_plan)

    except ConservationViolationError as e:
        logger.error(f"Settlement check failed, context: {e.context}")
        console.print(f"\n[bold red]Internal error ({e.kind.value}):[/bold red] {e}")
        sys.exit(2)
    except BillSplitError as e:
        console.print(f"\n[bold yellow]⚠️  {e.kind.value}: {e}[/bold yellow]\n")
        sys.exit(1)
