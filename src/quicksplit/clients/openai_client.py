"""OpenAI vision client for receipt extraction."""

import base64
import json
import logging
import mimetypes
import re
from pathlib import Path
from typing import Any

from openai import OpenAI, OpenAIError

from ..exceptions import OCRServiceError
from ..models import RawReceipt

logger = logging.getLogger(__name__)

# Outermost {...} block when the model wraps its JSON in prose or fences
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

SYSTEM_PROMPT = """You are an expert at analyzing restaurant receipts.

Carefully examine the receipt image and extract:
1. All individual menu items with their exact names, quantities, unit prices, and total prices
2. The total amount of the bill

Your response must be a JSON object with this exact structure:
{
  "items": [
    {"name": "Item Name 1", "quantity": 2, "unitPrice": 10.99, "totalPrice": 21.98},
    {"name": "Item Name 2", "quantity": 1, "unitPrice": 5.99, "totalPrice": 5.99}
  ],
  "total": 27.97
}

Be precise with item names, quantities, and prices. If you can't read something clearly, make your best guess.
For quantities, if not explicitly stated, assume 1.
For unit prices, divide the total price by the quantity.
For total prices, multiply the unit price by the quantity."""


def parse_receipt_response(content: str) -> dict[str, Any]:
    """
    Parse the model's reply into a JSON object.

    Tries the whole reply first, then the outermost ``{...}`` block.

    Raises:
        OCRServiceError: If no JSON object can be recovered
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.debug("Reply is not pure JSON, extracting object")
        match = _JSON_OBJECT.search(content)
        if not match:
            raise OCRServiceError("Could not extract valid JSON from AI response")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise OCRServiceError("Extracted text is not valid JSON") from e

    if not isinstance(data, dict):
        raise OCRServiceError("AI response is not a JSON object")
    return data


class ReceiptExtractor:
    """GPT-based line item extractor for receipt photos."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        """Initialize the extractor."""
        self.client = OpenAI(api_key=api_key)
        self.model = model

    def extract(self, image_path: Path) -> RawReceipt:
        """
        Extract raw line items and the total from a receipt photo.

        Args:
            image_path: Path to a JPEG/PNG/WebP receipt photo

        Returns:
            The raw, unvalidated extraction payload

        Raises:
            OCRServiceError: If the image cannot be read or the service fails
        """
        try:
            image_bytes = image_path.read_bytes()
        except OSError as e:
            raise OCRServiceError(f"Could not read image {image_path}: {e}") from e

        if not image_bytes:
            raise OCRServiceError("No image data provided")

        mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"
        return self.extract_bytes(image_bytes, mime_type)

    def extract_bytes(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> RawReceipt:
        """Extract a receipt from in-memory image data."""
        encoded = base64.b64encode(image_bytes).decode("ascii")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": "Extract the items from this receipt."},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime_type};base64,{encoded}"},
                            },
                        ],
                    },
                ],
                temperature=0.2,
                max_tokens=4000,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            raise OCRServiceError(f"Receipt extraction failed: {e}") from e

        if not response.choices:
            raise OCRServiceError("Invalid response format from OpenAI API")

        content = response.choices[0].message.content or ""
        data = parse_receipt_response(content)

        items = data.get("items")
        raw = RawReceipt(
            items=items if isinstance(items, list) else [],
            total=data.get("total"),
        )

        logger.info(f"Extracted {len(raw.items)} raw items, total: {raw.total!r}")
        return raw
