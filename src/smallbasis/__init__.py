"""
smallbasis: block-basis image compression
"""

__version__ = "0.1.0"

# Export key components for convenience
from .errors import ConfigurationError, DecodeError, ValidationError, SmallBasisError
from .config import CompressorConfig, DEFAULT_BLOCK_SIZE
from .compression import SmallBasisCompressor, basis_matrix, ortho_basis
from .utils import CompressedImage, setup_logger
from .evaluation import compression_ratio, mse_psnr

__all__ = [
    "SmallBasisCompressor",
    "CompressorConfig",
    "CompressedImage",
    "DEFAULT_BLOCK_SIZE",
    "basis_matrix",
    "ortho_basis",
    "setup_logger",
    "compression_ratio",
    "mse_psnr",
    "SmallBasisError",
    "ConfigurationError",
    "DecodeError",
    "ValidationError",
]
