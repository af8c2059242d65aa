"""pricey: receipt text -> normalized products -> price history -> shopping plans.

Stages (leaves first):
- pricey.receipt: parse OCR text into a ParsedReceipt
- pricey.normalize: resolve item descriptions to catalog products
- pricey.prices: record observations and compute trends
- pricey.shopping: rank stores and allocate a shopping list

pricey.runtime holds logging, paths, settings, rule loading and the
per-receipt pipeline.
"""

__version__ = "0.1.0"
