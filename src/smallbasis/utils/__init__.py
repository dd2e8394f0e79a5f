# src/smallbasis/utils/__init__.py
from .logger import setup_logger, get_logger
from .record_codec import CompressedImage, encode_compressed_image, decode_compressed_image

__all__ = [
    "setup_logger",
    "get_logger",
    "CompressedImage",
    "encode_compressed_image",
    "decode_compressed_image",
]
