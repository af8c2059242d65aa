"""Small shared helpers."""

from .similarity import cosine_similarity, token_set_ratio
from .units import canonical_unit, to_base_quantity

__all__ = [
    "canonical_unit",
    "cosine_similarity",
    "to_base_quantity",
    "token_set_ratio",
]
