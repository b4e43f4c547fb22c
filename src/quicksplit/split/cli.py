"""Bill commands for QuickSplit."""

import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import Settings, load_settings
from ..db import Database
from ..exceptions import BillValidationError
from ..models import Bill, NormalizedReceipt, SavedBill, ShareOutcome, SplitResult
from ..money import format_money, to_cents
from . import bill as mutations
from .renderer import PLATFORMS
from .service import BillService
from .ui import assign_items_interactive, confirm

app = typer.Typer(
    name="bill",
    help="Scan receipts, assign items and settle up",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Downgrade httpx logging to DEBUG (network requests are too noisy at INFO)
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def _service(verbose: bool) -> Iterator[tuple[BillService, Settings]]:
    """Open settings, database and service; report errors the same way everywhere."""
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield BillService(settings, db), settings
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


# ============================================================================
# Resolution helpers
# ============================================================================


def resolve_person(bill: Bill, ref: str) -> str:
    """Find a person by id or case-insensitive name."""
    if bill.get_person(ref) is not None:
        return ref
    for person in bill.people:
        if person.name.lower() == ref.strip().lower():
            return person.id
    raise BillValidationError(f"No person '{ref}' on this bill")


def resolve_item(bill: Bill, ref: str) -> str:
    """Find an item by id or 1-based position."""
    if bill.get_item(ref) is not None:
        return ref
    if ref.isdigit() and 1 <= int(ref) <= len(bill.items):
        return bill.items[int(ref) - 1].id
    raise BillValidationError(f"No item '{ref}' on this bill")


# ============================================================================
# Display
# ============================================================================


def display_items(bill: Bill, currency: str, title: str = "Items"):
    """Display bill items in a table."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Item", style="cyan", width=30)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Unit", justify="right", width=12)
    table.add_column("Total", justify="right", width=12)
    table.add_column("Shared by", style="yellow", no_wrap=False)

    for position, item in enumerate(bill.items, start=1):
        names = [bill.get_person_name(pid) for pid in item.assigned_to]
        table.add_row(
            str(position),
            item.name[:30] + "..." if len(item.name) > 30 else item.name,
            f"{item.quantity:g}",
            format_money(item.price, currency),
            format_money(item.total_price, currency),
            ", ".join(names) if names else "[dim]Everyone[/dim]",
        )

    console.print(table)
    console.print(f"  Bill total: {format_money(bill.bill_total, currency)}")


def display_receipt_check(receipt: NormalizedReceipt, bill: Bill, currency: str):
    """Compare the printed receipt total with the sum of the scanned items."""
    if to_cents(receipt.total) == to_cents(bill.bill_total):
        console.print("  [green]✓ Items add up to the receipt total[/green]")
    else:
        console.print(
            f"  [yellow]⚠️  Receipt total {format_money(receipt.total, currency, use_color=False).strip()} "
            f"differs from item sum {format_money(bill.bill_total, currency, use_color=False).strip()}[/yellow]"
        )
    if receipt.dropped:
        console.print(f"  [yellow]Skipped {receipt.dropped} unreadable entries[/yellow]")


def display_split(bill: Bill, result: SplitResult, currency: str):
    """Display person totals and payments."""
    payer = bill.payer

    table = Table(title="Individual Totals", show_header=True, header_style="bold magenta")
    table.add_column("Person", style="cyan", width=24)
    table.add_column("Total", justify="right", width=14)
    for person in bill.people:
        name = f"{person.name} 💳" if payer and person.id == payer.id else person.name
        table.add_row(name, format_money(result.person_totals.get(person.id, 0.0), currency))
    console.print(table)

    console.print()
    if result.payments:
        console.print("[bold]Payments:[/bold]")
        for payment in result.payments:
            console.print(
                f"  {bill.get_person_name(payment.from_id)} → "
                f"{bill.get_person_name(payment.to_id)}: "
                f"{format_money(payment.amount, currency)}"
            )
    elif payer is None:
        console.print("[yellow]No payer set, no payments computed.[/yellow]")
    else:
        console.print("[green]No payments needed.[/green]")


def display_bill(bill: SavedBill, service: BillService, currency: str):
    """Display a saved bill with its split."""
    console.print(f"\n[bold]{bill.name}[/bold] [dim]({bill.id}, {bill.date.date()})[/dim]")
    console.print(
        "  People: "
        + (", ".join(f"{p.name} [dim]({p.id})[/dim]" for p in bill.people) or "[dim]none[/dim]")
    )
    display_items(bill, currency)
    if bill.people:
        console.print()
        display_split(bill, service.split(bill), currency)


def _edit(bill_id: str, verbose: bool, edit: Callable[[SavedBill], Bill], done: str):
    """Apply one mutation to a saved bill and show the result."""
    with _service(verbose) as (service, settings):
        edited = service.edit_bill(bill_id, edit)
        console.print(f"[green]✓ {done}[/green]")
        display_bill(edited, service, settings.currency)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def scan(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Receipt photo"),
    name: str = typer.Option(None, "--name", "-n", help="Save the bill under this name"),
    person: list[str] = typer.Option(None, "--person", "-p", help="Add a person (repeatable)"),
    payer: str = typer.Option(None, "--payer", help="Who paid (defaults to the first person)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Scan a receipt photo and extract its line items.

    With --name the scanned bill is saved, together with any --person entries.
    """
    with _service(verbose) as (service, settings):
        console.print("\n[bold blue]Scanning receipt...[/bold blue]")
        receipt = service.scan_receipt(image)

        bill = mutations.new_bill_from_receipt(receipt)
        for person_name in person or []:
            bill = mutations.add_person(bill, person_name)
        if payer:
            bill = mutations.set_payer(bill, resolve_person(bill, payer))

        display_items(bill, settings.currency, title="Scanned Items")
        display_receipt_check(receipt, bill, settings.currency)

        if name:
            bill_id = service.save_bill(name, bill)
            console.print(f"\n[bold green]✓ Saved bill {bill_id}[/bold green]")
        else:
            console.print("\n[dim]Not saved. Re-run with --name to keep this bill.[/dim]")


@app.command()
def new(
    name: str = typer.Argument(..., help="Bill name"),
    person: list[str] = typer.Option(None, "--person", "-p", help="Add a person (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create an empty bill for manual item entry."""
    with _service(verbose) as (service, _settings):
        bill = Bill()
        for person_name in person or []:
            bill = mutations.add_person(bill, person_name)
        bill_id = service.save_bill(name, bill)
        console.print(f"[bold green]✓ Created bill {bill_id}[/bold green]")


@app.command("list")
def list_bills(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List saved bills, newest first."""
    with _service(verbose) as (service, settings):
        bills = service.list_bills()
        if not bills:
            console.print("[yellow]No saved bills.[/yellow]")
            return

        table = Table(title="Saved Bills", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Date")
        table.add_column("Total", justify="right")
        for saved in bills:
            table.add_row(
                saved.id,
                saved.name,
                str(saved.date.date()),
                format_money(saved.bill_total, settings.currency),
            )
        console.print(table)


@app.command()
def show(
    bill_id: str = typer.Argument(..., help="Bill id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show a bill's items, who owes what and to whom."""
    with _service(verbose) as (service, settings):
        display_bill(service.get_bill(bill_id), service, settings.currency)


@app.command()
def delete(
    bill_id: str = typer.Argument(..., help="Bill id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a saved bill."""
    with _service(verbose) as (service, _settings):
        saved = service.get_bill(bill_id)
        if not yes and not confirm(f"Delete '{saved.name}'?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit()
        service.delete_bill(bill_id)
        console.print(f"[green]✓ Deleted '{saved.name}'[/green]")


@app.command("add-person")
def add_person(
    bill_id: str = typer.Argument(..., help="Bill id"),
    name: str = typer.Argument(..., help="Person name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a person to a bill. The first person becomes the payer."""
    _edit(bill_id, verbose, lambda b: mutations.add_person(b, name), f"Added {name}")


@app.command("remove-person")
def remove_person(
    bill_id: str = typer.Argument(..., help="Bill id"),
    person: str = typer.Argument(..., help="Person id or name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Remove a person and their item assignments."""
    _edit(
        bill_id,
        verbose,
        lambda b: mutations.remove_person(b, resolve_person(b, person)),
        f"Removed {person}",
    )


@app.command("set-payer")
def set_payer(
    bill_id: str = typer.Argument(..., help="Bill id"),
    person: str = typer.Argument(..., help="Person id or name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Set who paid the bill."""
    _edit(
        bill_id,
        verbose,
        lambda b: mutations.set_payer(b, resolve_person(b, person)),
        f"{person} paid",
    )


@app.command("add-item")
def add_item(
    bill_id: str = typer.Argument(..., help="Bill id"),
    name: str = typer.Argument(..., help="Item name"),
    price: float = typer.Argument(..., help="Unit price"),
    quantity: float = typer.Option(1.0, "--quantity", "-q", help="Quantity"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add an item by hand."""
    _edit(
        bill_id,
        verbose,
        lambda b: mutations.add_item(b, name, price, quantity),
        f"Added {name}",
    )


@app.command("remove-item")
def remove_item(
    bill_id: str = typer.Argument(..., help="Bill id"),
    item: str = typer.Argument(..., help="Item id or position"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Remove an item from a bill."""
    _edit(
        bill_id,
        verbose,
        lambda b: mutations.remove_item(b, resolve_item(b, item)),
        f"Removed item {item}",
    )


@app.command()
def quantity(
    bill_id: str = typer.Argument(..., help="Bill id"),
    item: str = typer.Argument(..., help="Item id or position"),
    value: float = typer.Argument(..., help="New quantity"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Change an item's quantity."""
    _edit(
        bill_id,
        verbose,
        lambda b: mutations.update_item_quantity(b, resolve_item(b, item), value),
        f"Updated quantity of item {item}",
    )


@app.command()
def assign(
    bill_id: str = typer.Argument(..., help="Bill id"),
    item: str = typer.Option(None, "--item", "-i", help="Item id or position"),
    person: str = typer.Option(None, "--person", "-p", help="Person id or name"),
    remove: bool = typer.Option(False, "--remove", help="Unassign instead of assign"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Assign items to people.

    Without --item/--person, walks through every item interactively.
    Unassigned items are split equally across everyone.
    """
    if item is None and person is None:
        with _service(verbose) as (service, settings):
            saved = service.get_bill(bill_id)
            if not saved.people:
                console.print("[yellow]Add people to the bill first.[/yellow]")
                return
            service.edit_bill(
                bill_id, lambda b: assign_items_interactive(b, settings.currency)
            )
            display_bill(service.get_bill(bill_id), service, settings.currency)
        return

    if item is None or person is None:
        console.print("[red]Use --item and --person together.[/red]")
        raise typer.Exit(code=1)

    _edit(
        bill_id,
        verbose,
        lambda b: mutations.toggle_assignment(
            b, resolve_item(b, item), resolve_person(b, person), not remove
        ),
        f"{'Unassigned' if remove else 'Assigned'} item {item}",
    )


@app.command()
def share(
    bill_id: str = typer.Argument(..., help="Bill id"),
    platform: str = typer.Option(
        "general",
        "--platform",
        help="general, whatsapp, facebook, twitter, email or copy",
    ),
    message: str = typer.Option(None, "--message", "-m", help="Custom message"),
    link: bool = typer.Option(False, "--link", help="Include a link to the bill"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Share a bill's summary via the configured webhook or the clipboard."""
    if platform not in PLATFORMS:
        console.print(f"[red]Unknown platform '{platform}'.[/red]")
        raise typer.Exit(code=1)

    with _service(verbose) as (service, _settings):
        saved = service.get_bill(bill_id)
        outcome = service.share_summary(
            saved,
            platform=platform,  # type: ignore[arg-type]
            message=message,
            include_link=link,
            bill_id=saved.id,
        )
        if outcome == ShareOutcome.DELIVERED:
            console.print("[green]✓ Summary shared[/green]")
        else:
            console.print("[green]✓ Summary copied to clipboard![/green]")


@app.command()
def export(
    bill_id: str = typer.Argument(..., help="Bill id"),
    html: Path = typer.Option(None, "--html", help="Write an HTML summary to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Print the text summary, or write the HTML summary to a file."""
    with _service(verbose) as (service, _settings):
        saved = service.get_bill(bill_id)
        if html is None:
            print(service.text_summary(saved))
            return
        html.write_text(service.html_summary(saved), encoding="utf-8")
        console.print(f"[green]✓ Wrote {html}[/green]")
