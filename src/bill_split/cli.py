"""CLI for bill-split."""

import typer

from .mcp_server import run_server
from .settle.cli import app as settle_app
from .split.cli import app as split_app

app = typer.Typer(
    name="bill-split",
    help="Split shared bills and settle group balances",
)

app.add_typer(split_app, name="split", help="Divide a receipt among participants")
app.add_typer(settle_app, name="settle", help="Settle group balances")


@app.command()
def mcp():
    """Start the MCP server."""
    run_server()


if __name__ == "__main__":
    app()
