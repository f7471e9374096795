"""
Receipt Extraction Agent

DESIGN DECISION: Gemini reads the receipt photo and proposes line
items. It is a convenience for data entry, not a source of truth.

CRITICAL BOUNDARIES:
- CAN: Propose rows of {item, qty, unitCost, totalCost}
- CANNOT: Persist anything. Rows go to a review grid and are only
  committed when an admin confirms them
- CANNOT: Fill gaps. A response that is not exactly the declared
  shape is a failure, and the user falls back to manual entry

No retry and no timeout are applied: one request per scan, and a
failure is reported to the user as-is.
"""

import json
from decimal import Decimal
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from portal.config import GeminiSettings, get_settings


class ReceiptExtractionError(Exception):
    """The inference call failed or returned something we cannot use."""
    pass


EXTRACTION_PROMPT = """You are reading a photographed purchase receipt from a hardware or
building-supply store.

List every purchased line item. For each one return:
- item: the product name as printed
- qty: the quantity purchased (number)
- unitCost: the price per unit (number, no currency symbol)
- totalCost: the line total (number, no currency symbol)

Return ONLY a JSON object of the form {"items": [...]}.
Do not include subtotals, taxes, discounts or payment lines as items.
If no line items are legible, return {"items": []}."""


RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "item": {"type": "STRING"},
                    "qty": {"type": "NUMBER"},
                    "unitCost": {"type": "NUMBER"},
                    "totalCost": {"type": "NUMBER"},
                },
                "required": ["item", "qty", "unitCost", "totalCost"],
            },
        },
    },
    "required": ["items"],
}


class ExtractedReceiptItem(BaseModel):
    """One line item as returned by the model."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    item: str
    qty: Decimal
    unit_cost: Decimal = Field(alias="unitCost")
    total_cost: Decimal = Field(alias="totalCost")


def parse_extraction_response(text: str) -> list[ExtractedReceiptItem]:
    """
    Parse the model's JSON reply.

    Accepts only an object whose "items" key is a list of complete
    line items; surrounding prose or code fences are ignored.

    Raises:
        ReceiptExtractionError: For any other shape
    """
    text = (text or "").strip()
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ReceiptExtractionError("The response did not contain a JSON object")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ReceiptExtractionError(f"The response was not valid JSON: {e.msg}")

    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise ReceiptExtractionError("The response had no items list")

    try:
        return [ExtractedReceiptItem.model_validate(entry) for entry in data["items"]]
    except ValidationError as e:
        raise ReceiptExtractionError(f"An item in the response was incomplete: {e.errors()[0]['msg']}")


class ReceiptExtractionAgent:
    """
    Sends one receipt image to Gemini and returns the proposed items.

    RESPONSIBILITIES:
    - Build the request (image + fixed prompt + JSON schema)
    - Validate the response shape

    BOUNDARIES:
    - NEVER persists data
    - NEVER retries
    """

    def __init__(self, model=None, settings: Optional[GeminiSettings] = None):
        if model is not None:
            self._model = model
            return
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": RESPONSE_SCHEMA,
            },
        )

    async def extract(self, image_bytes: bytes, mime_type: str) -> list[ExtractedReceiptItem]:
        """
        Extract line items from a receipt photo.

        Raises:
            ReceiptExtractionError: If the call fails or the reply is malformed
        """
        try:
            response = await self._model.generate_content_async([
                EXTRACTION_PROMPT,
                {"mime_type": mime_type, "data": image_bytes},
            ])
            text = response.text
        except Exception as e:
            raise ReceiptExtractionError(f"The extraction service failed: {e}")

        return parse_extraction_response(text)
