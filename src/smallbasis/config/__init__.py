# src/smallbasis/config/__init__.py
from .base_config import CompressorConfig, DEFAULT_BLOCK_SIZE

__all__ = ["CompressorConfig", "DEFAULT_BLOCK_SIZE"]
