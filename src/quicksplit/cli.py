"""CLI for QuickSplit."""

import typer

from .mcp_server import run_server
from .split.cli import app as bill_app

app = typer.Typer(
    name="quicksplit",
    help="Split restaurant bills from a photo of the receipt",
)

app.add_typer(bill_app, name="bill", help="Scan, assign, settle and share bills")


@app.command()
def mcp():
    """Start the MCP server for assistant integration."""
    run_server()


if __name__ == "__main__":
    app()
