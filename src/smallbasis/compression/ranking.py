"""Whole-image ranking of basis directions.

Importance is the total absolute coefficient a direction receives over every
block and channel of an image.  Accumulation is a map (``|c|`` per chunk of
blocks) followed by a fold (sum of the partial totals), so chunks can be
processed independently before the single reduction that ranking needs.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Tuple

import numpy as np

DEFAULT_CHUNK = 4096


def _partial_totals(coefficients: np.ndarray, chunk: int) -> Iterable[np.ndarray]:
    for start in range(0, coefficients.shape[0], chunk):
        yield np.abs(coefficients[start:start + chunk]).sum(axis=0)


def accumulate_importance(coefficients: np.ndarray, chunk: int = DEFAULT_CHUNK) -> np.ndarray:
    """Sum ``|coefficient|`` per direction over all rows of ``coefficients``."""

    coefficients = np.asarray(coefficients, dtype=np.float64)
    if coefficients.ndim != 2:
        raise ValueError(f"expected a 2D coefficient array, got shape {coefficients.shape}")
    totals = np.zeros(coefficients.shape[1], dtype=np.float64)
    for partial in _partial_totals(coefficients, max(1, int(chunk))):
        totals += partial
    return totals


def rank_directions(importance: np.ndarray) -> List[Tuple[int, float]]:
    """Return ``(index, score)`` pairs ordered by descending score."""

    pairs = [(int(i), float(score)) for i, score in enumerate(np.asarray(importance))]
    pairs.sort(key=lambda pair: pair[1], reverse=True)
    return pairs


def retained_count(quality: float, size: int) -> int:
    """``quality * size`` rounded half up."""
    return int(math.floor(quality * size + 0.5))


def select_basis(importance: np.ndarray, quality: float) -> Tuple[int, ...]:
    """Pick the ``round(quality * N)`` most important directions, in ascending order."""

    ranked = rank_directions(importance)
    count = retained_count(quality, len(ranked))
    return tuple(sorted(index for index, _ in ranked[:count]))


__all__ = ["accumulate_importance", "rank_directions", "retained_count", "select_basis"]
