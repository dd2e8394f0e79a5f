from __future__ import annotations
import numpy as np
from typing import Tuple


def compression_ratio(raw_bytes: int, compressed_bytes: int) -> float:
    """raw_bytes / compressed_bytes; larger is better."""
    return float(raw_bytes) / float(compressed_bytes) if compressed_bytes > 0 else float("inf")


def raw_image_bytes(image: np.ndarray) -> int:
    """Size of the uncompressed 8-bit RGB payload of ``image``."""
    arr = np.asarray(image)
    return int(arr.shape[0] * arr.shape[1] * 3)


def mse_psnr(original: np.ndarray, reconstructed: np.ndarray, peak: float = 255.0) -> Tuple[float, float]:
    """
    MSE/PSNR over the RGB channels of two 8-bit images of the same size.
    Alpha channels are ignored; zero MSE gives an infinite PSNR.
    """
    a = np.asarray(original)
    b = np.asarray(reconstructed)
    if a.ndim == 2:
        a = np.repeat(a[:, :, None], 3, axis=2)
    if b.ndim == 2:
        b = np.repeat(b[:, :, None], 3, axis=2)
    a = a[:, :, :3].astype(np.float64)
    b = b[:, :, :3].astype(np.float64)
    if a.shape != b.shape:
        raise ValueError(f"image shapes differ: {a.shape} vs {b.shape}")

    diff = a - b
    mse = float(np.mean(diff * diff)) if diff.size else 0.0
    if mse == 0.0:
        return mse, float("inf")
    psnr = 10.0 * np.log10(peak * peak / mse)
    return mse, float(psnr)
