"""QuickSplit - Split restaurant bills from a photo of the receipt."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .models import (
    Bill,
    BillItem,
    NormalizedReceipt,
    PaymentSummary,
    Person,
    SavedBill,
    SplitResult,
)
from .money import format_currency
from .split.engine import calculate_split
from .split.normalizer import normalize_receipt
from .split.renderer import render_html_summary, render_text_summary
from .split.service import BillService

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Bill",
    "BillItem",
    "NormalizedReceipt",
    "PaymentSummary",
    "Person",
    "SavedBill",
    "SplitResult",
    "format_currency",
    "calculate_split",
    "normalize_receipt",
    "render_html_summary",
    "render_text_summary",
    "BillService",
]
