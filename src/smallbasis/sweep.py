"""Quality sweeps for the block-basis compressor.

``sweep_runs`` compresses one image at a series of quality levels and yields
a result row per level so callers can report progress while it runs.
``collect_results`` turns the rows into a DataFrame and ``save_results``
writes that DataFrame to CSV.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Sequence

import numpy as np
import pandas as pd

from .compression import SmallBasisCompressor, retained_count
from .config import DEFAULT_BLOCK_SIZE
from .errors import SmallBasisError
from .evaluation import compression_ratio, mse_psnr, raw_image_bytes
from .utils.logger import get_logger


def sweep_runs(
    image: Any,
    qualities: Sequence[float],
    block_size: int = DEFAULT_BLOCK_SIZE,
    basis: str | np.ndarray | None = None,
    progress_callback: Optional[Callable[[int, int, float, str, Optional[str]], None]] = None,
    logger=None,
) -> Iterator[Dict]:
    """Compress ``image`` once per quality and yield a result row each time.

    Args:
        image:             Image accepted by :meth:`SmallBasisCompressor.compress`.
        qualities:         Quality levels to try, each in ``[0, 1]``.
        block_size:        Block side length shared by every run.
        basis:             Basis kind or custom matrix shared by every run.
        progress_callback: Optional callable invoked with
                           ``(index, total, quality, status, message)`` where
                           ``status`` is one of ``"start"``, ``"ok"`` or
                           ``"failed"``.
    Yields:
        Dictionaries with ``quality``, ``status`` and, for successful runs,
        ``retained``, ``compressed_bytes``, ``compression_ratio``, ``mse`` and
        ``psnr``.
    """

    logger = logger or get_logger()
    original = np.asarray(image)
    reference = SmallBasisCompressor(quality=1.0, block_size=block_size, basis=basis)
    # 8-bit view of the input so errors are measured on the output scale
    target = reference.codec.assemble(
        original.shape[1], original.shape[0], reference.codec.extract(original)
    )
    raw_bytes = raw_image_bytes(original)
    total = len(qualities)

    for step, quality in enumerate(qualities, start=1):
        quality = float(quality)
        if progress_callback:
            progress_callback(step, total, quality, "start", None)
        try:
            compressor = SmallBasisCompressor(
                quality=quality, block_size=block_size, basis=reference.basis
            )
            data = compressor.compress(original)
            restored = compressor.decompress(data)
        except SmallBasisError as exc:
            logger.warning(f"Sweep run quality={quality:g} failed: {exc}")
            if progress_callback:
                progress_callback(step, total, quality, "failed", str(exc))
            yield {"quality": quality, "status": "failed", "error": str(exc)}
            continue

        mse, psnr = mse_psnr(target, restored)
        row: Dict[str, object] = {
            "quality": quality,
            "status": "ok",
            "retained": retained_count(quality, compressor.basis_size),
            "compressed_bytes": len(data),
            "compression_ratio": compression_ratio(raw_bytes, len(data)),
            "mse": mse,
            "psnr": psnr,
        }
        logger.info(
            f"quality={quality:g}: ρ={row['compression_ratio']:.3f}, MSE={mse:.6e}, PSNR={psnr:.2f}"
        )
        if progress_callback:
            progress_callback(step, total, quality, "ok", None)
        yield row


def collect_results(rows: Iterable[Dict]) -> pd.DataFrame:
    """Create a DataFrame from the sweep rows."""

    return pd.DataFrame(list(rows))


def save_results(df: pd.DataFrame, output_path: str | Path) -> Path:
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(target, index=False)
    return target


__all__ = ["sweep_runs", "collect_results", "save_results"]
