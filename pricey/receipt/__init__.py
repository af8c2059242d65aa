"""Receipt text parsing: raw OCR text -> ParsedReceipt."""

from pricey.receipt.known_stores import KnownStore, build_known_stores, default_known_stores
from pricey.receipt.ocr_result_parser import ReceiptParser, parse_receipt

__all__ = [
    "KnownStore",
    "ReceiptParser",
    "build_known_stores",
    "default_known_stores",
    "parse_receipt",
]
