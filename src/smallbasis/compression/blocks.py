"""Conversion between RGB images and serpentine-ordered block vectors.

An image is cut into ``block_size x block_size`` tiles (the last row and
column of tiles may hang over the image edge).  Each tile yields three
vectors of length ``block_size ** 2``, one per colour channel, laid out in
serpentine order: even rows left to right, odd rows right to left.  Pixels
outside the image contribute zeros.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ..errors import ConfigurationError
from ..utils.record_codec import block_grid


def serpentine_indices(block_size: int) -> np.ndarray:
    """Return a ``(block_size, block_size)`` map from ``[y, x]`` to vector position."""

    x = np.arange(block_size)
    idx = np.empty((block_size, block_size), dtype=np.intp)
    for y in range(block_size):
        row = x if y % 2 == 0 else block_size - (x + 1)
        idx[y] = y * block_size + row
    return idx


def to_unit_rgb(image) -> np.ndarray:
    """Return the RGB channels of ``image`` as float64 in ``[0, 1]``, shape ``(H, W, 3)``.

    ``uint16`` samples are divided by 65535 and ``uint8`` samples by 255; float
    images are clipped to ``[0, 1]`` with NaN read as 0.  Greyscale ``(H, W)``
    inputs are replicated across channels and any alpha channel is dropped.
    """

    arr = np.asarray(image)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"expected an (H, W), (H, W, 3) or (H, W, 4) image, got shape {arr.shape}")
    arr = arr[:, :, :3]

    if arr.dtype == np.uint16:
        return arr.astype(np.float64) / 0xFFFF
    if arr.dtype == np.uint8:
        return arr.astype(np.float64) / 0xFF
    if arr.dtype.kind == "f":
        return np.clip(np.nan_to_num(arr.astype(np.float64), nan=0.0), 0.0, 1.0)
    raise ValueError(f"unsupported image dtype: {arr.dtype}")


class BlockCodec:
    """Split images into block vectors and put them back together."""

    def __init__(self, block_size: int):
        block_size = int(block_size)
        if block_size <= 0:
            raise ConfigurationError(f"block_size must be positive, got {block_size}")
        self.block_size = block_size
        self.vector_size = block_size * block_size
        self._order = serpentine_indices(block_size).reshape(-1)

    def block_counts(self, width: int, height: int) -> Tuple[int, int]:
        """Number of block ``(rows, cols)`` needed to cover the image."""
        return block_grid(width, height, self.block_size)

    def extract(self, image) -> np.ndarray:
        """Return a ``(3 * rows * cols, N)`` array of block vectors.

        Blocks are in row-major order and each block contributes its R, G and B
        vectors consecutively.
        """

        rgb = to_unit_rgb(image)
        height, width = rgb.shape[:2]
        rows, cols = self.block_counts(width, height)
        bs = self.block_size

        padded = np.zeros((rows * bs, cols * bs, 3), dtype=np.float64)
        padded[:height, :width] = rgb

        # (rows, y, cols, x, c) -> (rows, cols, c, y, x)
        tiles = padded.reshape(rows, bs, cols, bs, 3).transpose(0, 2, 4, 1, 3)
        raster = tiles.reshape(rows * cols * 3, self.vector_size)

        vectors = np.empty_like(raster)
        vectors[:, self._order] = raster
        return vectors

    def assemble(self, width: int, height: int, vectors: np.ndarray) -> np.ndarray:
        """Inverse of :meth:`extract`; returns an opaque ``(H, W, 4)`` uint8 image."""

        rows, cols = self.block_counts(width, height)
        bs = self.block_size
        vectors = np.asarray(vectors, dtype=np.float64)
        if vectors.shape != (3 * rows * cols, self.vector_size):
            raise ValueError(
                f"expected {(3 * rows * cols, self.vector_size)} block vectors, got {vectors.shape}"
            )

        raster = vectors[:, self._order]
        tiles = raster.reshape(rows, cols, 3, bs, bs).transpose(0, 3, 1, 4, 2)
        padded = tiles.reshape(rows * bs, cols * bs, 3)

        rgb = np.nan_to_num(padded[:height, :width], nan=0.0, posinf=1.0, neginf=0.0)
        rgb = np.clip(rgb, 0.0, 1.0)
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[:, :, :3] = np.rint(rgb * 0xFF).astype(np.uint8)
        out[:, :, 3] = 0xFF
        return out

    def __repr__(self):
        return f"{self.__class__.__name__}(block_size={self.block_size})"


__all__ = ["BlockCodec", "serpentine_indices", "to_unit_rgb"]
