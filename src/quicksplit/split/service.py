"""Service layer that composes the OCR, storage and sharing collaborators.

The split core (normalizer, engine, bill mutations, renderer) is pure; this
module is where it meets I/O. Every method takes the bill or bill id it works
on explicitly.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from ..clients.openai_client import ReceiptExtractor
from ..clients.share import ShareClient
from ..config import Settings
from ..db import Database
from ..exceptions import BillNotFoundError, NoItemsDetectedError
from ..models import Bill, NormalizedReceipt, SavedBill, ShareOutcome, SplitResult
from .engine import calculate_split
from .normalizer import normalize_receipt
from .renderer import (
    Platform,
    render_html_summary,
    render_social_text,
    render_text_summary,
    shareable_link,
)

logger = logging.getLogger(__name__)


class BillService:
    """Service for scanning, editing, splitting and sharing bills."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the bill service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Scanning
    # ========================================================================

    def scan_receipt(self, image_path: Path) -> NormalizedReceipt:
        """
        Extract and normalize the line items on a receipt photo.

        Args:
            image_path: Path to the receipt photo

        Returns:
            Normalized receipt with at least one item

        Raises:
            ConfigurationError: If no OpenAI key is configured
            OCRServiceError: If extraction fails
            NoItemsDetectedError: If the receipt yielded no usable items
        """
        extractor = ReceiptExtractor(
            api_key=self.settings.require_openai_api_key(),
            model=self.settings.ocr_model,
        )
        raw = extractor.extract(image_path)
        receipt = normalize_receipt(raw.items, raw.total)

        if receipt.nothing_detected:
            raise NoItemsDetectedError(dropped=receipt.dropped)

        logger.info(
            f"Scanned {len(receipt.items)} items from {image_path.name} "
            f"({receipt.dropped} dropped)"
        )
        return receipt

    # ========================================================================
    # Storage
    # ========================================================================

    def save_bill(self, name: str, bill: Bill) -> str:
        """Save a working bill under a name and return its id."""
        return self.db.save_bill(
            owner_id=self.settings.owner_id,
            name=name,
            bill_total=bill.bill_total,
            people=bill.people,
            items=bill.items,
        )

    def list_bills(self) -> list[SavedBill]:
        """List the owner's saved bills (metadata only), newest first."""
        return self.db.get_user_bills(self.settings.owner_id)

    def get_bill(self, bill_id: str) -> SavedBill:
        """Load a saved bill with all its details."""
        bill = self.db.get_bill_details(self.settings.owner_id, bill_id)
        if bill is None:
            raise BillNotFoundError(bill_id)
        return bill

    def update_bill(self, bill_id: str, bill: Bill) -> None:
        """Persist edits to a saved bill."""
        if not self.db.update_bill(self.settings.owner_id, bill_id, bill):
            raise BillNotFoundError(bill_id)

    def edit_bill(self, bill_id: str, edit: Callable[[SavedBill], Bill]) -> SavedBill:
        """
        Load a bill, apply a pure edit and save the result.

        Nothing is written if the edit raises.

        Args:
            bill_id: The saved bill
            edit: A bill mutation, e.g. ``lambda b: add_person(b, "Ana")``

        Returns:
            The edited bill
        """
        current = self.get_bill(bill_id)
        edited = edit(current)
        self.update_bill(bill_id, edited)
        return SavedBill(
            id=current.id,
            name=current.name,
            date=current.date,
            items=edited.items,
            people=edited.people,
            bill_total=edited.bill_total,
        )

    def delete_bill(self, bill_id: str) -> None:
        """Delete a saved bill."""
        if not self.db.delete_bill(self.settings.owner_id, bill_id):
            raise BillNotFoundError(bill_id)

    # ========================================================================
    # Summaries
    # ========================================================================

    def split(self, bill: Bill) -> SplitResult:
        """Compute person totals and payments for a bill."""
        return calculate_split(bill.items, bill.people)

    def text_summary(self, bill: Bill) -> str:
        """Render the plain-text summary of a bill."""
        return render_text_summary(bill, self.split(bill), self.settings.currency)

    def html_summary(self, bill: Bill) -> str:
        """Render the HTML summary of a bill."""
        return render_html_summary(bill, self.split(bill), self.settings.currency)

    def share_summary(
        self,
        bill: Bill,
        platform: Platform = "general",
        message: str | None = None,
        include_link: bool = False,
        bill_id: str | None = None,
    ) -> ShareOutcome:
        """
        Share a bill's summary.

        Args:
            bill: The bill to summarize
            platform: Target platform, which shapes the text
            message: Optional custom message
            include_link: Append a link to the saved bill
            bill_id: Saved bill id used for the link

        Returns:
            How the summary was shared

        Raises:
            ShareError: If the summary could not be delivered or copied
        """
        link = shareable_link(self.settings.share_base_url, bill_id) if include_link else None
        text = render_social_text(
            self.text_summary(bill), platform=platform, message=message, link=link
        )

        with ShareClient(self.settings.share_webhook_url) as client:
            outcome = client.share_text(text)

        logger.info(f"Shared summary via {outcome.value}")
        return outcome
