"""Custom exceptions for QuickSplit."""


class QuickSplitError(Exception):
    """Base exception for all QuickSplit errors."""

    pass


class ConfigurationError(QuickSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class BillValidationError(QuickSplitError):
    """Raised when a bill mutation is rejected before any state changes."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class SplitPreconditionError(QuickSplitError):
    """Raised when the split engine is called without the people it needs."""

    pass


class BillNotFoundError(QuickSplitError):
    """Raised when a saved bill does not exist for the current owner."""

    def __init__(self, bill_id: str, message: str | None = None):
        self.bill_id = bill_id
        super().__init__(message or f"Bill {bill_id} not found")


class PersistenceError(QuickSplitError):
    """Raised when the bill database cannot be read or written."""

    pass


class NoItemsDetectedError(QuickSplitError):
    """Raised when a receipt was read but no usable line items were found."""

    def __init__(self, dropped: int = 0):
        self.dropped = dropped
        message = "No items detected on the receipt"
        if dropped:
            message += f" ({dropped} unreadable entries skipped)"
        super().__init__(message)


class APIError(QuickSplitError):
    """Base class for API-related errors."""

    pass


class OCRServiceError(APIError):
    """Raised when the receipt extraction service fails."""

    pass


class ShareError(APIError):
    """Raised when a summary could neither be delivered nor copied."""

    pass
