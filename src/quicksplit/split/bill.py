"""Pure state transitions over a working bill.

Every function takes a ``Bill`` and returns a new one; the input is never
modified. Invalid requests raise ``BillValidationError`` before any new state
is built, so a rejected edit leaves the caller's bill exactly as it was.

``bill_total`` is maintained incrementally: each operation adjusts it by the
change it makes rather than re-summing the items.
"""

import math
import uuid

from ..exceptions import BillValidationError
from ..models import Bill, BillItem, NormalizedReceipt, Person

AVATAR_COLORS = [
    "purple",
    "magenta",
    "pink",
    "yellow",
    "blue",
    "indigo",
    "orange",
    "red",
]


def _new_id() -> str:
    return uuid.uuid4().hex


def _require_name(name: str, what: str) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise BillValidationError(f"Please enter a {what} name")
    return cleaned


def _require_positive(value: float, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise BillValidationError(f"Please enter a valid {what}")
    if math.isnan(value) or math.isinf(value) or value <= 0:
        raise BillValidationError(f"Please enter a valid {what}")
    return float(value)


def _require_finite_total(bill: Bill, old_total: float, new_total: float) -> float:
    if not math.isfinite(new_total) or not math.isfinite(bill.bill_total - old_total + new_total):
        raise BillValidationError("Item total is too large")
    return new_total


def _require_item(bill: Bill, item_id: str) -> BillItem:
    item = bill.get_item(item_id)
    if item is None:
        raise BillValidationError(f"Item {item_id} is not on this bill")
    return item


def new_bill_from_receipt(receipt: NormalizedReceipt) -> Bill:
    """
    Start a working bill from a normalized receipt.

    The running total starts at the sum of the item totals. The printed
    receipt total stays on the receipt for comparison.
    """
    items = [item.model_copy(deep=True) for item in receipt.items]
    bill_total = 0.0
    for item in items:
        bill_total += item.total_price
    return Bill(items=items, people=[], bill_total=bill_total)


# ============================================================================
# People
# ============================================================================


def add_person(bill: Bill, name: str, person_id: str | None = None) -> Bill:
    """
    Add a participant. The first person on an empty bill becomes the payer.

    Args:
        bill: Current bill
        name: Display name (surrounding whitespace is removed)
        person_id: Optional explicit id; a fresh one is generated otherwise

    Returns:
        New bill with the person appended
    """
    cleaned = _require_name(name, "person")
    person_id = person_id or _new_id()
    if bill.get_person(person_id) is not None:
        raise BillValidationError(f"Person {person_id} is already on this bill")

    updated = bill.model_copy(deep=True)
    updated.people.append(
        Person(
            id=person_id,
            name=cleaned,
            is_payer=not bill.people,
            color=AVATAR_COLORS[len(bill.people) % len(AVATAR_COLORS)],
        )
    )
    return updated


def remove_person(bill: Bill, person_id: str) -> Bill:
    """Remove a participant and drop them from every item's assignees."""
    updated = bill.model_copy(deep=True)
    updated.people = [p for p in updated.people if p.id != person_id]
    for item in updated.items:
        item.assigned_to = [pid for pid in item.assigned_to if pid != person_id]
    return updated


def set_payer(bill: Bill, person_id: str) -> Bill:
    """Make one person the payer and clear the flag on everyone else."""
    if bill.get_person(person_id) is None:
        raise BillValidationError(f"Person {person_id} is not on this bill")

    updated = bill.model_copy(deep=True)
    for person in updated.people:
        person.is_payer = person.id == person_id
    return updated


# ============================================================================
# Items
# ============================================================================


def add_item(
    bill: Bill,
    name: str,
    price: float,
    quantity: float = 1,
    item_id: str | None = None,
) -> Bill:
    """
    Add a manually entered item.

    Args:
        bill: Current bill
        name: Item name
        price: Unit price, must be positive
        quantity: Quantity, must be positive
        item_id: Optional explicit id; a fresh one is generated otherwise

    Returns:
        New bill with the item appended and the total increased
    """
    cleaned = _require_name(name, "item")
    price = _require_positive(price, "price")
    quantity = _require_positive(quantity, "quantity")
    total_price = _require_finite_total(bill, 0.0, price * quantity)
    item_id = item_id or f"item-{_new_id()}"
    if bill.get_item(item_id) is not None:
        raise BillValidationError(f"Item {item_id} is already on this bill")

    item = BillItem(
        id=item_id,
        name=cleaned,
        price=price,
        quantity=quantity,
        total_price=total_price,
        assigned_to=[],
    )
    updated = bill.model_copy(deep=True)
    updated.items.append(item)
    updated.bill_total += item.total_price
    return updated


def remove_item(bill: Bill, item_id: str) -> Bill:
    """Remove an item and take its total off the bill."""
    updated = bill.model_copy(deep=True)
    removed = updated.get_item(item_id)
    if removed is None:
        return updated

    updated.items = [item for item in updated.items if item.id != item_id]
    updated.bill_total -= removed.total_price
    return updated


def update_item_quantity(bill: Bill, item_id: str, quantity: float) -> Bill:
    """Change an item's quantity, recomputing its total and the bill total."""
    quantity = _require_positive(quantity, "quantity")
    current = _require_item(bill, item_id)
    new_total = _require_finite_total(bill, current.total_price, current.price * quantity)

    updated = bill.model_copy(deep=True)
    item = _require_item(updated, item_id)
    old_total = item.total_price
    item.quantity = quantity
    item.total_price = new_total
    updated.bill_total += new_total - old_total
    return updated


# ============================================================================
# Assignments
# ============================================================================


def assign_item(bill: Bill, item_id: str, person_id: str) -> Bill:
    """Add a person to an item's assignees. Re-assigning is a no-op."""
    _require_item(bill, item_id)
    if bill.get_person(person_id) is None:
        raise BillValidationError(f"Person {person_id} is not on this bill")

    updated = bill.model_copy(deep=True)
    item = _require_item(updated, item_id)
    if person_id not in item.assigned_to:
        item.assigned_to.append(person_id)
    return updated


def unassign_item(bill: Bill, item_id: str, person_id: str) -> Bill:
    """Remove a person from an item's assignees. Removing an absent id is a no-op."""
    _require_item(bill, item_id)

    updated = bill.model_copy(deep=True)
    item = _require_item(updated, item_id)
    item.assigned_to = [pid for pid in item.assigned_to if pid != person_id]
    return updated


def toggle_assignment(bill: Bill, item_id: str, person_id: str, assigned: bool) -> Bill:
    """Set whether a person shares an item."""
    if assigned:
        return assign_item(bill, item_id, person_id)
    return unassign_item(bill, item_id, person_id)
