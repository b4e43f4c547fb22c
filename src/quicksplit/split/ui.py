"""Interactive UI components for assigning items to people."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..models import Bill, BillItem, Person
from ..money import format_currency
from .bill import toggle_assignment

logger = logging.getLogger(__name__)

EVERYONE = "everyone"


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="al" matches "Alice"
        query="bb" matches "Bob B."
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class PersonCompleter(Completer):
    """Fuzzy search completer for a comma-separated list of people."""

    def __init__(self, people: list[Person]):
        """Initialize the completer with the bill's people."""
        self.people = people
        self.name_to_id = {person.name.lower(): person.id for person in people}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions for the name being typed."""
        current = document.text_before_cursor.split(",")[-1]
        query = current.strip().lower()

        candidates = [person.name for person in self.people] + [EVERYONE]
        for name in candidates:
            if not query or fuzzy_match(query, name.lower()):
                yield Completion(
                    text=name,
                    start_position=-len(current.lstrip()),
                    display=name,
                )

    def resolve(self, text: str) -> list[str] | None:
        """
        Map typed names back to person ids.

        Returns:
            Person ids (empty for "everyone"), or None if a name is unknown
        """
        names = [part.strip().lower() for part in text.split(",") if part.strip()]
        if names == [EVERYONE]:
            return []

        ids: list[str] = []
        for name in names:
            person_id = self.name_to_id.get(name)
            if person_id is None:
                return None
            if person_id not in ids:
                ids.append(person_id)
        return ids


def select_people_interactive(
    item: BillItem, people: list[Person], currency: str = "EUR"
) -> list[str] | None:
    """
    Ask who shared an item.

    Args:
        item: The item being assigned
        people: The bill's people
        currency: Display currency

    Returns:
        Selected person ids ([] means split across everyone), or None to
        leave the item unchanged
    """
    print(
        f"\n🧾 {item.name}: {item.quantity:g} x {format_currency(item.price, currency)}"
        f" = {format_currency(item.total_price, currency)}"
    )

    current = [p.name for p in people if p.id in item.assigned_to]
    if current:
        print(f"   Currently: {', '.join(current)}")

    print(
        f"   Type names separated by commas ('{EVERYONE}' to split equally), "
        "Enter to keep, Ctrl+C to skip\n"
    )

    completer = PersonCompleter(people)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt("Shared by: ", complete_while_typing=True)

            if not result.strip():
                return None

            person_ids = completer.resolve(result)
            if person_ids is not None:
                logger.info(f"Assigned '{item.name}' to {len(person_ids) or 'everyone'}")
                return person_ids

            print("❌ Unknown name. Please select from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None


def apply_selection(bill: Bill, item_id: str, person_ids: list[str]) -> Bill:
    """Replace an item's assignees with exactly the selected people."""
    item = bill.get_item(item_id)
    if item is None:
        return bill

    for person in bill.people:
        bill = toggle_assignment(bill, item_id, person.id, person.id in person_ids)
    return bill


def assign_items_interactive(bill: Bill, currency: str = "EUR") -> Bill:
    """Walk through every item and ask who shared it."""
    for item in list(bill.items):
        person_ids = select_people_interactive(item, bill.people, currency)
        if person_ids is None:
            continue
        bill = apply_selection(bill, item.id, person_ids)
    return bill


def confirm(message: str) -> bool:
    """Simple yes/no confirmation."""
    response = input(f"   {message} [y/N] ").strip().lower()
    return response in ("y", "yes")
