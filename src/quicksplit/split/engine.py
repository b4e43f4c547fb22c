"""Split engine: per-person totals and payer-directed settlements.

Rules:
1. Every person starts at zero.
2. An item with no (valid) assignees is split equally across everyone on the
   bill. An assigned item is split equally across its assignees only.
3. Every non-payer with a positive total owes that amount to the payer.
   There is no netting between non-payers.

All arithmetic is plain float arithmetic. Rounding is a display concern.
"""

import logging
from collections.abc import Sequence

from ..exceptions import SplitPreconditionError
from ..models import BillItem, PaymentSummary, Person, SplitResult

logger = logging.getLogger(__name__)


def effective_assignees(item: BillItem, person_ids: Sequence[str]) -> list[str]:
    """
    Unique assignees of an item that are still on the bill.

    Args:
        item: The bill item
        person_ids: Ids of the bill's current people

    Returns:
        Assignee ids in first-occurrence order, without duplicates or
        unknown ids
    """
    known = set(person_ids)
    result: list[str] = []
    for person_id in item.assigned_to:
        if person_id in known and person_id not in result:
            result.append(person_id)
    return result


def calculate_person_totals(
    items: Sequence[BillItem], people: Sequence[Person]
) -> dict[str, float]:
    """
    Compute how much of the bill each person consumed.

    Args:
        items: Bill items
        people: Bill participants

    Returns:
        Mapping of person id to total, in people order

    Raises:
        SplitPreconditionError: If an item must be split across everyone but
            the bill has no people
    """
    person_ids = [person.id for person in people]
    totals: dict[str, float] = {person_id: 0.0 for person_id in person_ids}

    for item in items:
        assignees = effective_assignees(item, person_ids)

        if not assignees:
            if not person_ids:
                raise SplitPreconditionError(
                    f"Cannot split '{item.name}': the bill has no people"
                )
            assignees = person_ids

        share = item.total_price / len(assignees)
        for person_id in assignees:
            totals[person_id] += share

    return totals


def calculate_payments(
    people: Sequence[Person],
    person_totals: dict[str, float],
    payer_id: str | None,
) -> list[PaymentSummary]:
    """
    Build one settlement per non-payer with a positive total.

    Args:
        people: Bill participants, which fix the settlement order
        person_totals: Output of ``calculate_person_totals``
        payer_id: The person who paid, or None

    Returns:
        Payments directed at the payer. Empty when no payer is designated.

    Raises:
        SplitPreconditionError: If the payer is not one of the people
    """
    if payer_id is None:
        logger.debug("No payer designated, no payments computed")
        return []

    if all(person.id != payer_id for person in people):
        raise SplitPreconditionError(f"Payer {payer_id} is not on this bill")

    payments = []
    for person in people:
        amount = person_totals.get(person.id, 0.0)
        if person.id != payer_id and amount > 0:
            payments.append(
                PaymentSummary(from_id=person.id, to_id=payer_id, amount=amount)
            )
    return payments


def find_payer_id(people: Sequence[Person]) -> str | None:
    """Return the id of the first person flagged as payer."""
    for person in people:
        if person.is_payer:
            return person.id
    return None


def calculate_split(
    items: Sequence[BillItem],
    people: Sequence[Person],
    payer_id: str | None = None,
) -> SplitResult:
    """
    Compute person totals and settlements for a bill.

    Args:
        items: Bill items
        people: Bill participants
        payer_id: Explicit payer; defaults to the person flagged ``is_payer``

    Returns:
        Split result with totals and payments

    Raises:
        SplitPreconditionError: If an explicit payer is not one of the people,
            or an item must be split across an empty people list
    """
    if payer_id is None:
        payer_id = find_payer_id(people)

    person_totals = calculate_person_totals(items, people)
    payments = calculate_payments(people, person_totals, payer_id)

    logger.debug(
        f"Split {len(items)} items across {len(people)} people, "
        f"{len(payments)} payments"
    )

    return SplitResult(person_totals=person_totals, payments=payments, payer_id=payer_id)
