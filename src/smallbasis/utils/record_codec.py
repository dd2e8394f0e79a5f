"""Binary serialisation of compressed-image records.

A record holds the image size, the block size, the ascending list of basis
directions that survived pruning and one coefficient vector per block and
colour channel.  The layout is a fixed little-endian header followed by a
``zlib`` body::

    magic        4s   b"SBC1"
    width        u32
    height       u32
    block_size   u32
    index_code   u8   itemsize of the index array (1, 2 or 4, unsigned)
    coeff_code   u8   itemsize of the coefficients (4 = float32, 8 = float64)
    retained     u32  number of retained basis directions (k)
    body         zlib(indices || coefficients)

The coefficient matrix has ``3 * rows * cols`` rows of length ``k`` where the
block grid is derived from the header, so the body size is fully determined
before it is inflated.  The index array is stored with the narrowest unsigned
dtype that holds the largest index.

Decoding only checks structure.  Whether the indices are ordered and in range
for a particular basis is left to the compressor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple
import struct
import zlib

import numpy as np

from ..errors import DecodeError

MAGIC = b"SBC1"
_HEADER = struct.Struct("<4sIIIBBI")

_INDEX_DTYPES = {
    1: np.dtype("<u1"),
    2: np.dtype("<u2"),
    4: np.dtype("<u4"),
}
_COEFF_DTYPES = {
    4: np.dtype("<f4"),
    8: np.dtype("<f8"),
}

# largest padded image (in pixels) a record may describe; reconstruction
# allocates 3 float64 samples per padded pixel
MAX_IMAGE_PIXELS = 1 << 26


def block_grid(width: int, height: int, block_size: int) -> Tuple[int, int]:
    """Return ``(rows, cols)`` of the block grid covering ``width x height``."""
    rows = -(-int(height) // block_size)
    cols = -(-int(width) // block_size)
    return rows, cols


@dataclass(frozen=True)
class CompressedImage:
    """Logical content of a compressed image."""

    width: int
    height: int
    block_size: int
    used_basis: Tuple[int, ...]
    blocks: np.ndarray = field(repr=False)

    @property
    def retained(self) -> int:
        return len(self.used_basis)

    @property
    def expected_block_count(self) -> int:
        rows, cols = block_grid(self.width, self.height, self.block_size)
        return 3 * rows * cols


def _select_index_dtype(max_val: int) -> np.dtype:
    """Return the narrowest unsigned dtype able to encode ``max_val``."""

    if max_val <= np.iinfo(np.uint8).max:
        return _INDEX_DTYPES[1]
    if max_val <= np.iinfo(np.uint16).max:
        return _INDEX_DTYPES[2]
    if max_val <= np.iinfo(np.uint32).max:
        return _INDEX_DTYPES[4]
    raise ValueError(f"basis index {max_val} does not fit in 32 bits")


def _coefficient_dtype(name: str) -> np.dtype:
    dtype = np.dtype(name).newbyteorder("<")
    if dtype.kind != "f" or dtype.itemsize not in _COEFF_DTYPES:
        raise ValueError(f"Unsupported coefficient dtype: {name}")
    return _COEFF_DTYPES[dtype.itemsize]


def encode_compressed_image(
    record: CompressedImage,
    coefficient_dtype: str = "float64",
    level: int = 3,
) -> bytes:
    """Serialise ``record`` to bytes."""

    indices = np.asarray(record.used_basis, dtype=np.int64).reshape(-1)
    if indices.size and int(indices.min()) < 0:
        raise ValueError("basis indices must be non-negative")
    index_dtype = _select_index_dtype(int(indices.max()) if indices.size else 0)
    coeff_dtype = _coefficient_dtype(coefficient_dtype)

    k = int(indices.size)
    if k:
        blocks = np.asarray(record.blocks, dtype=np.float64).reshape(-1, k)
    else:
        # nothing to store; any coefficients carried by the record are dropped
        blocks = np.zeros((record.expected_block_count, 0))
    if blocks.shape[0] != record.expected_block_count:
        raise ValueError(
            f"record has {blocks.shape[0]} coefficient vectors, "
            f"expected {record.expected_block_count}"
        )

    header = _HEADER.pack(
        MAGIC,
        int(record.width),
        int(record.height),
        int(record.block_size),
        index_dtype.itemsize,
        coeff_dtype.itemsize,
        k,
    )
    body = indices.astype(index_dtype).tobytes() + blocks.astype(coeff_dtype).tobytes()
    return header + zlib.compress(body, level=level)


def decode_compressed_image(data: bytes | bytearray | memoryview, block_size: int) -> CompressedImage:
    """Inverse of :func:`encode_compressed_image`.

    Raises:
        DecodeError: on a bad magic, a block size other than ``block_size``,
            unknown field codes, an image larger than ``MAX_IMAGE_PIXELS``,
            a truncated or oversized body, or a corrupt ``zlib`` stream.
    """

    data = bytes(data)
    if len(data) < _HEADER.size:
        raise DecodeError(f"record truncated: {len(data)} bytes, header needs {_HEADER.size}")

    magic, width, height, stored_block_size, index_code, coeff_code, k = _HEADER.unpack_from(data)
    if magic != MAGIC:
        raise DecodeError(f"bad magic {magic!r}")
    if stored_block_size != block_size:
        raise DecodeError(f"record block size {stored_block_size} != expected {block_size}")
    index_dtype = _INDEX_DTYPES.get(index_code)
    if index_dtype is None:
        raise DecodeError(f"unknown index dtype code {index_code}")
    coeff_dtype = _COEFF_DTYPES.get(coeff_code)
    if coeff_dtype is None:
        raise DecodeError(f"unknown coefficient dtype code {coeff_code}")

    rows, cols = block_grid(width, height, block_size)
    if rows * cols * block_size * block_size > MAX_IMAGE_PIXELS:
        raise DecodeError(
            f"record claims a {width}x{height} image, above the {MAX_IMAGE_PIXELS} pixel limit"
        )
    count = 3 * rows * cols
    index_bytes = k * index_dtype.itemsize
    expected = index_bytes + count * k * coeff_dtype.itemsize

    inflater = zlib.decompressobj()
    try:
        # cap the output one byte past the expected size so oversized bodies stop early
        body = inflater.decompress(data[_HEADER.size:], expected + 1)
    except zlib.error as exc:
        raise DecodeError(f"corrupt record body: {exc}") from exc
    if not inflater.eof:
        raise DecodeError("record body truncated or oversized")
    if inflater.unused_data:
        raise DecodeError("trailing bytes after record body")
    if len(body) != expected:
        raise DecodeError(f"record body has {len(body)} bytes, expected {expected}")

    if k == 0:
        return CompressedImage(int(width), int(height), int(stored_block_size), (), np.zeros((count, 0)))

    indices = np.frombuffer(body, dtype=index_dtype, count=k)
    if count:
        coefficients = np.frombuffer(body, dtype=coeff_dtype, offset=index_bytes)
        blocks = coefficients.astype(np.float64).reshape(count, k)
    else:
        blocks = np.zeros((0, k))
    return CompressedImage(
        width=int(width),
        height=int(height),
        block_size=int(stored_block_size),
        used_basis=tuple(int(i) for i in indices),
        blocks=blocks,
    )


__all__ = [
    "MAGIC",
    "MAX_IMAGE_PIXELS",
    "CompressedImage",
    "block_grid",
    "encode_compressed_image",
    "decode_compressed_image",
]
