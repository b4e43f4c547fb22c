"""Sharing client: webhook delivery with a clipboard fallback."""

import logging

import httpx
import pyperclip

from ..exceptions import ShareError
from ..models import ShareOutcome

logger = logging.getLogger(__name__)


class ShareClient:
    """Delivers summaries to a chat webhook, or copies them to the clipboard."""

    def __init__(self, webhook_url: str | None = None, timeout: float = 10.0):
        """Initialize the share client."""
        self.webhook_url = webhook_url
        self.client = httpx.Client(timeout=timeout)

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def deliver(self, text: str, title: str) -> None:
        """POST the summary to the configured webhook."""
        if not self.webhook_url:
            raise ShareError("No share webhook configured")
        response = self.client.post(
            self.webhook_url,
            json={"title": title, "text": text, "content": text},
        )
        response.raise_for_status()

    def copy_to_clipboard(self, text: str) -> None:
        """Copy the summary to the system clipboard."""
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ShareError(f"Could not share results: {e}") from e

    def share_text(self, text: str, title: str = "QuickSplit Summary") -> ShareOutcome:
        """
        Share a summary, falling back to the clipboard before giving up.

        Args:
            text: The rendered summary
            title: Title sent along with webhook deliveries

        Returns:
            How the summary was shared

        Raises:
            ShareError: If neither delivery nor clipboard copy succeeded
        """
        if self.webhook_url:
            try:
                self.deliver(text, title)
                logger.info("Summary delivered to share webhook")
                return ShareOutcome.DELIVERED
            except httpx.HTTPError as e:
                logger.warning(f"Error sharing results, copying to clipboard: {e}")

        self.copy_to_clipboard(text)
        logger.info("Summary copied to clipboard")
        return ShareOutcome.COPIED_TO_CLIPBOARD
