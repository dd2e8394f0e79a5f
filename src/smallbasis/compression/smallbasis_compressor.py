"""Block-basis image compressor.

Each ``block_size x block_size`` tile of each colour channel is written in a
square basis.  Directions that carry the least total weight over the whole
image are pruned, and every block is then re-projected (least squares) onto
the directions that remain.  Only the retained direction indices and the
projected coefficients are stored.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np

from .base import BaseCompressor
from .basis import build_basis
from .blocks import BlockCodec, to_unit_rgb
from .ranking import accumulate_importance, select_basis
from .solver import ExactSolver, ProjectionSolver, linear_combination
from ..config import CompressorConfig, DEFAULT_BLOCK_SIZE
from ..errors import ConfigurationError, DecodeError, ValidationError
from ..utils.logger import get_logger
from ..utils.record_codec import (
    MAX_IMAGE_PIXELS,
    CompressedImage,
    decode_compressed_image,
    encode_compressed_image,
)

logger = get_logger()


class SmallBasisCompressor(BaseCompressor):
    """Compress images by pruning little-used basis directions.

    Parameters
    ----------
    quality : float
        Fraction in ``[0, 1]`` of the basis directions kept unpruned.
    block_size : int
        Side length of the square blocks the image is cut into.
    basis : str | np.ndarray | None
        ``"trig"`` (default) or ``"ortho"``, or a custom square matrix of size
        ``block_size ** 2`` whose columns are the basis vectors.  Columns
        should be normalised but need not be orthogonal.
    coefficient_dtype : str
        Storage precision of the coefficients, ``"float64"`` or ``"float32"``.
    zlib_level : int
        Compression level of the record body.
    """

    name = "smallbasis"

    def __init__(
        self,
        quality: float = 0.5,
        block_size: int = DEFAULT_BLOCK_SIZE,
        basis: str | np.ndarray | None = None,
        coefficient_dtype: str = "float64",
        zlib_level: int = 3,
    ):
        super().__init__()
        quality = float(quality)
        if not 0.0 <= quality <= 1.0:
            raise ConfigurationError(f"quality must lie in [0, 1], got {quality}")
        self.quality = quality
        self.codec = BlockCodec(block_size)
        self.block_size = self.codec.block_size
        if coefficient_dtype not in ("float32", "float64"):
            raise ConfigurationError(f"Unsupported coefficient dtype: {coefficient_dtype!r}")
        self.coefficient_dtype = coefficient_dtype
        self.zlib_level = int(zlib_level)
        if not 0 <= self.zlib_level <= 9:
            raise ConfigurationError(f"zlib_level must lie in [0, 9], got {self.zlib_level}")

        size = self.codec.vector_size
        if basis is None or isinstance(basis, str):
            matrix = build_basis(basis or "trig", size)
        else:
            matrix = np.asarray(basis, dtype=np.float64)
            if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
                raise ConfigurationError(f"basis must be square, got shape {matrix.shape}")
            if matrix.shape[0] != size:
                raise ConfigurationError(
                    f"basis size {matrix.shape[0]} does not match block_size**2 = {size}"
                )

        self._solver = ExactSolver(matrix)
        self.basis = self._solver.basis
        logger.debug(f"Initialised {self!r}")

    @classmethod
    def from_config(cls, cfg: CompressorConfig) -> "SmallBasisCompressor":
        return cls(
            quality=cfg.quality,
            block_size=cfg.block_size,
            basis=cfg.basis,
            coefficient_dtype=cfg.coefficient_dtype,
            zlib_level=cfg.zlib_level,
        )

    @property
    def basis_size(self) -> int:
        return self._solver.size

    # ------------------------------------------------------------------
    # Compression
    # ------------------------------------------------------------------
    def compress_record(self, image: Any) -> CompressedImage:
        """Compress ``image`` into an in-memory :class:`CompressedImage`."""

        rgb = to_unit_rgb(image)
        height, width = rgb.shape[:2]
        blocks = self.codec.extract(rgb)

        full = self._solver.solve(blocks)
        importance = accumulate_importance(full)
        used_basis = select_basis(importance, self.quality)

        projector = ProjectionSolver(self.basis[:, list(used_basis)])
        coefficients = projector.project(blocks)

        logger.debug(
            f"compress {width}x{height}: {blocks.shape[0]} block vectors, "
            f"kept {len(used_basis)}/{self.basis_size} directions"
        )
        return CompressedImage(
            width=width,
            height=height,
            block_size=self.block_size,
            used_basis=used_basis,
            blocks=coefficients,
        )

    def compress(self, image: Any, **kwargs) -> bytes:
        record = self.compress_record(image)
        return encode_compressed_image(
            record,
            coefficient_dtype=kwargs.get("coefficient_dtype", self.coefficient_dtype),
            level=int(kwargs.get("zlib_level", self.zlib_level)),
        )

    # ------------------------------------------------------------------
    # Decompression
    # ------------------------------------------------------------------
    def validate_basis(self, used_basis: Sequence[int]) -> Tuple[int, ...]:
        """Check that ``used_basis`` is strictly ascending and inside the basis.

        The indices come from untrusted input and address basis columns
        directly, so nothing may be indexed before this passes.
        """

        indices = tuple(int(i) for i in used_basis)
        for prev, cur in zip(indices, indices[1:]):
            if cur <= prev:
                logger.warning(f"Rejected record: basis indices not strictly ascending ({prev}, {cur})")
                raise ValidationError("unsorted basis vectors in decoded image")
        for idx in indices:
            if idx < 0 or idx >= self.basis_size:
                logger.warning(f"Rejected record: basis index {idx} outside [0, {self.basis_size})")
                raise ValidationError("overflowing basis vectors in decoded image")
        return indices

    def decompress_record(self, record: CompressedImage) -> np.ndarray:
        """Reconstruct an ``(H, W, 4)`` uint8 image from ``record``."""

        if record.block_size != self.block_size:
            raise ValidationError(
                f"record block size {record.block_size} != compressor block size {self.block_size}"
            )
        rows, cols = self.codec.block_counts(record.width, record.height)
        if rows * cols * self.codec.vector_size > MAX_IMAGE_PIXELS:
            raise ValidationError(
                f"record claims a {record.width}x{record.height} image, "
                f"above the {MAX_IMAGE_PIXELS} pixel limit"
            )
        used_basis = self.validate_basis(record.used_basis)

        expected = (record.expected_block_count, len(used_basis))
        coefficients = np.asarray(record.blocks, dtype=np.float64)
        if used_basis and coefficients.shape != expected:
            raise ValidationError(f"expected coefficient array of shape {expected}, got {coefficients.shape}")
        if not used_basis:
            coefficients = np.zeros((expected[0], 0))

        vectors = linear_combination(self.basis[:, list(used_basis)], coefficients)
        return self.codec.assemble(record.width, record.height, vectors)

    def decompress(self, data: bytes, **kwargs) -> np.ndarray:
        try:
            record = decode_compressed_image(data, self.block_size)
        except DecodeError as exc:
            logger.warning(f"Rejected record: {exc}")
            raise
        return self.decompress_record(record)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(quality={self.quality}, "
            f"block_size={self.block_size}, basis_size={self.basis_size})"
        )


__all__ = ["SmallBasisCompressor"]
