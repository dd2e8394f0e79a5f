# src/smallbasis/evaluation/__init__.py
from .metrics import compression_ratio, mse_psnr, raw_image_bytes

__all__ = ["compression_ratio", "mse_psnr", "raw_image_bytes"]
