"""MCP server for QuickSplit: exposes the bill workflow as tools for an assistant."""

import logging
from dataclasses import dataclass
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .exceptions import QuickSplitError
from .models import NormalizedReceipt
from .split import bill as mutations
from .split.service import BillService

logger = logging.getLogger(__name__)

mcp_app = FastMCP("quicksplit")

# ---------------------------------------------------------------------------
# Session state, one MCP server process per conversation
# ---------------------------------------------------------------------------

WORKFLOW_INSTRUCTIONS = """\
You are helping a group split a restaurant bill. Follow this workflow:

1. SCAN: Call scan_receipt with the path to the receipt photo.
   Show the user the items found and point out any mismatch with the receipt total.

2. SAVE: Ask who was at the table and who paid, then call save_scanned_bill.
   The first person listed is the payer unless told otherwise.

3. ASSIGN: For each item that was not shared by everyone, call assign_item.
   Items nobody is assigned to are split equally across everyone.

4. SETTLE: Call show_bill and present the summary.
   If the payer is wrong, call set_payer and show the bill again.

Bills are always referred to by the id returned from save_scanned_bill or
list_bills.\
"""


@dataclass
class SessionState:
    """Holds state between MCP tool calls within a single conversation."""

    service: BillService | None = None
    db: Database | None = None
    receipt: NormalizedReceipt | None = None


_state = SessionState()


def _ensure_service() -> BillService:
    """Lazily initialize the BillService (loads .env config)."""
    if _state.service is None:
        settings = load_settings()
        _state.db = Database(settings.database_path)
        _state.service = BillService(settings, _state.db)
    return _state.service


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def list_bills() -> str:
    """List saved bills, newest first."""
    try:
        service = _ensure_service()
        bills = service.list_bills()

        if not bills:
            return "No saved bills."

        lines = ["Saved Bills:"]
        for saved in bills:
            lines.append(
                f"  - {saved.id} | {saved.name} | {saved.date.date()} | "
                f"{saved.bill_total:.2f}"
            )
        return "\n".join(lines)
    except QuickSplitError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Failed to list bills: {e}"


@mcp_app.tool()
def scan_receipt(image_path: str) -> str:
    """Extract line items from a receipt photo.

    Args:
        image_path: Path to the receipt image on disk.
    """
    try:
        service = _ensure_service()
        receipt = service.scan_receipt(Path(image_path))
        _state.receipt = receipt

        lines = [f"Found {len(receipt.items)} items:"]
        for position, item in enumerate(receipt.items, start=1):
            lines.append(
                f"  [{position}] {item.name} | {item.quantity:g} x {item.price:.2f} "
                f"= {item.total_price:.2f}"
            )
        item_sum = sum(item.total_price for item in receipt.items)
        lines.append(f"Receipt total: {receipt.total:.2f} (items add up to {item_sum:.2f})")
        if receipt.dropped:
            lines.append(f"Skipped {receipt.dropped} unreadable entries.")
        return "\n".join(lines)
    except QuickSplitError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Failed to scan receipt: {e}"


@mcp_app.tool()
def save_scanned_bill(name: str, people: list[str], payer: str | None = None) -> str:
    """Save the last scanned receipt as a bill with the given people.

    Args:
        name: Name for the bill.
        people: Names of everyone at the table.
        payer: Name of whoever paid. Defaults to the first person.
    """
    try:
        service = _ensure_service()

        if _state.receipt is None:
            return "Error: No receipt scanned. Call scan_receipt first."

        bill = mutations.new_bill_from_receipt(_state.receipt)
        for person_name in people:
            bill = mutations.add_person(bill, person_name)

        if payer:
            matches = [p for p in bill.people if p.name.lower() == payer.strip().lower()]
            if not matches:
                return f"Error: '{payer}' is not one of the people."
            bill = mutations.set_payer(bill, matches[0].id)

        bill_id = service.save_bill(name, bill)
        _state.receipt = None
        return f"Saved bill {bill_id}.\n\n{_describe(bill_id)}"
    except QuickSplitError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Failed to save bill: {e}"


def _describe(bill_id: str) -> str:
    """People and numbered items of a saved bill, followed by its summary."""
    service = _ensure_service()
    saved = service.get_bill(bill_id)

    lines = [f"{saved.name} ({saved.id})", "People:"]
    for person in saved.people:
        marker = " (payer)" if person.is_payer else ""
        lines.append(f"  - {person.id}: {person.name}{marker}")

    lines.append("Items:")
    for item in saved.items:
        shared = ", ".join(saved.get_person_name(pid) for pid in item.assigned_to)
        lines.append(
            f"  - {item.id}: {item.name} | {item.total_price:.2f} | "
            f"{shared or 'everyone'}"
        )

    if saved.people:
        lines.append("")
        lines.append(service.text_summary(saved))
    return "\n".join(lines)


@mcp_app.tool()
def show_bill(bill_id: str) -> str:
    """Show a saved bill's people, items and who owes whom.

    Args:
        bill_id: Id from list_bills or save_scanned_bill.
    """
    try:
        return _describe(bill_id)
    except QuickSplitError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Failed to show bill: {e}"


@mcp_app.tool()
def assign_item(bill_id: str, item_id: str, person_id: str, assigned: bool = True) -> str:
    """Assign an item to a person, or remove the assignment.

    Args:
        bill_id: The bill.
        item_id: Item id as shown by show_bill.
        person_id: Person id as shown by show_bill.
        assigned: False to remove the person from the item.
    """
    try:
        service = _ensure_service()
        service.edit_bill(
            bill_id,
            lambda b: mutations.toggle_assignment(b, item_id, person_id, assigned),
        )
        return _describe(bill_id)
    except QuickSplitError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Failed to assign item: {e}"


@mcp_app.tool()
def set_payer(bill_id: str, person_id: str) -> str:
    """Set who paid a bill.

    Args:
        bill_id: The bill.
        person_id: Person id as shown by show_bill.
    """
    try:
        service = _ensure_service()
        service.edit_bill(bill_id, lambda b: mutations.set_payer(b, person_id))
        return _describe(bill_id)
    except QuickSplitError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Failed to set payer: {e}"


# ---------------------------------------------------------------------------
# MCP Prompt
# ---------------------------------------------------------------------------


@mcp_app.prompt()
def bill_workflow() -> str:
    """Orchestration instructions for splitting a bill."""
    return WORKFLOW_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
