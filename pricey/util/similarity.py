"""String and vector similarity measures used by the normalization cascade."""

from __future__ import annotations

from collections.abc import Sequence
from difflib import SequenceMatcher

import numpy as np


def _ratio(a: str, b: str) -> float:
    if not a and not b:
        return 100.0
    return SequenceMatcher(None, a, b).ratio() * 100


def token_set_ratio(left: str, right: str) -> float:
    """Order- and duplicate-insensitive similarity on a 0-100 scale.

    Shared tokens are compared against each side's extra tokens, so
    "apple" vs "apple red" scores 100 and "red apple" vs "apple red" too.
    """
    left_tokens = set(left.split())
    right_tokens = set(right.split())
    if not left_tokens or not right_tokens:
        return 0.0

    intersection = " ".join(sorted(left_tokens & right_tokens))
    left_only = " ".join(sorted(left_tokens - right_tokens))
    right_only = " ".join(sorted(right_tokens - left_tokens))

    # One side is a subset of the other
    if intersection and (not left_only or not right_only):
        return 100.0

    combined_left = f"{intersection} {left_only}".strip()
    combined_right = f"{intersection} {right_only}".strip()
    scores = [_ratio(combined_left, combined_right)]
    if intersection:
        scores.append(_ratio(intersection, combined_left))
        scores.append(_ratio(intersection, combined_right))
    return max(scores)


def cosine_similarity(left: Sequence[float], right: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 for empty, zero or mismatched vectors."""
    a = np.asarray(left, dtype=float)
    b = np.asarray(right, dtype=float)
    if a.size == 0 or a.shape != b.shape:
        return 0.0
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    return float(np.dot(a, b) / denom)
