"""AI Agents package."""

from portal.agents.receipt_agent import (
    EXTRACTION_PROMPT,
    RESPONSE_SCHEMA,
    ExtractedReceiptItem,
    ReceiptExtractionAgent,
    ReceiptExtractionError,
    parse_extraction_response,
)

__all__ = [
    "EXTRACTION_PROMPT",
    "RESPONSE_SCHEMA",
    "ExtractedReceiptItem",
    "ReceiptExtractionAgent",
    "ReceiptExtractionError",
    "parse_extraction_response",
]
