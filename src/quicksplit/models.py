"""Pydantic domain models for QuickSplit."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# ============================================================================
# Bill Models
# ============================================================================


class Person(BaseModel):
    """A participant in a bill."""

    id: str
    name: str
    is_payer: bool = False
    color: str | None = None  # cosmetic only


class BillItem(BaseModel):
    """One receipt line."""

    id: str
    name: str
    price: float  # unit price
    quantity: float = 1.0
    total_price: float  # price * quantity
    assigned_to: list[str] = Field(default_factory=list)


class Bill(BaseModel):
    """The working set of items, people and running total being edited."""

    items: list[BillItem] = Field(default_factory=list)
    people: list[Person] = Field(default_factory=list)
    bill_total: float = 0.0

    @property
    def payer(self) -> Person | None:
        """The person who fronted the payment, if one is designated."""
        for person in self.people:
            if person.is_payer:
                return person
        return None

    def get_person(self, person_id: str) -> Person | None:
        for person in self.people:
            if person.id == person_id:
                return person
        return None

    def get_item(self, item_id: str) -> BillItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def get_person_name(self, person_id: str) -> str:
        """Get a display name for a person id, "Unknown" if not in the bill."""
        person = self.get_person(person_id)
        return person.name if person else "Unknown"


class SavedBill(Bill):
    """A persisted bill.

    Listings return metadata only, in which case items and people are empty.
    """

    id: str
    name: str
    date: datetime


# ============================================================================
# Split Models
# ============================================================================


class PaymentSummary(BaseModel):
    """A directed amount one person owes the payer."""

    from_id: str
    to_id: str
    amount: float = Field(ge=0.0)


class SplitResult(BaseModel):
    """Output of the split engine."""

    person_totals: dict[str, float]  # keyed by person id, in people order
    payments: list[PaymentSummary] = Field(default_factory=list)
    payer_id: str | None = None


# ============================================================================
# Receipt Models
# ============================================================================


class RawReceipt(BaseModel):
    """Loosely typed extraction output, exactly as the OCR service returned it."""

    items: list[Any] = Field(default_factory=list)
    total: Any = None


class NormalizedReceipt(BaseModel):
    """Canonical line items produced from a raw receipt."""

    items: list[BillItem] = Field(default_factory=list)
    total: float = 0.0
    dropped: int = 0  # malformed records skipped during normalization

    @property
    def nothing_detected(self) -> bool:
        return not self.items


# ============================================================================
# Sharing Models
# ============================================================================


class ShareOutcome(str, Enum):
    """How a summary reached the user."""

    DELIVERED = "delivered"
    COPIED_TO_CLIPBOARD = "copied_to_clipboard"
