"""Basis matrices for block transforms.

Every builder returns a square ``(size, size)`` matrix whose columns are the
basis directions of the block space.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np

from ..errors import ConfigurationError

BASIS_KINDS = ("trig", "ortho")


def normalize_columns(matrix: np.ndarray) -> np.ndarray:
    """Return a copy of ``matrix`` with every column scaled to unit length."""

    matrix = np.array(matrix, dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=0)
    if np.any(norms == 0):
        raise ConfigurationError("cannot normalise a basis with a zero column")
    return matrix / norms


def basis_matrix(size: int) -> np.ndarray:
    """Trigonometric basis with a constant (DC) last column.

    Columns ``2i`` and ``2i + 1`` hold ``cos`` and ``sin`` sampled at frequency
    ``(i + 1) * 2 * pi / size``.  The last column is then replaced by ones and
    all columns are normalised.  For odd sizes the pairs stop at column
    ``size - 2``, so the same construction covers both parities.
    """

    size = int(size)
    if size <= 0:
        raise ConfigurationError(f"basis size must be positive, got {size}")

    res = np.zeros((size, size), dtype=np.float64)
    j = np.arange(size, dtype=np.float64)
    for i in range(size // 2):
        freq = (i + 1) * 2.0 * np.pi / size
        res[:, 2 * i] = np.cos(j * freq)
        if 2 * i + 1 < size:
            res[:, 2 * i + 1] = np.sin(j * freq)

    # the last sine is sin(j*pi) == 0 for even sizes; the basis needs the DC vector
    res[:, size - 1] = 1.0
    return normalize_columns(res)


@lru_cache(maxsize=None)
def _ortho_basis(size: int) -> np.ndarray:
    if size == 1:
        res = np.ones((1, 1), dtype=np.float64)
    else:
        half = size // 2
        sub = _ortho_basis(half)
        res = np.block([[sub, -sub], [sub, sub]])
    res.setflags(write=False)
    return res


def ortho_basis(size: int) -> np.ndarray:
    """Recursively orthogonal basis ``[[A, -A], [A, A]]`` with ``A = ortho_basis(size / 2)``.

    The columns are orthogonal but not normalised.  ``size`` must be a power of
    two; other sizes raise :class:`ConfigurationError`.
    """

    size = int(size)
    if size <= 0 or size & (size - 1) != 0:
        raise ConfigurationError(f"ortho basis size must be a power of two, got {size}")
    return _ortho_basis(size).copy()


def build_basis(kind: str, size: int) -> np.ndarray:
    """Build a named basis of the given size with unit-length columns."""

    kind = str(kind).lower()
    if kind == "trig":
        return basis_matrix(size)
    if kind == "ortho":
        return normalize_columns(ortho_basis(size))
    raise ConfigurationError(f"Unknown basis kind: {kind!r} (expected one of {BASIS_KINDS})")


__all__ = ["BASIS_KINDS", "basis_matrix", "ortho_basis", "normalize_columns", "build_basis"]
