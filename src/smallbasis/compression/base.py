from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any
import numpy as np


class BaseCompressor(ABC):
    """Abstract base class for image compressors."""

    name: str = "base"

    # ----------------------
    # 🔹 Core abstract methods
    # ----------------------
    @abstractmethod
    def compress(self, image: Any, **kwargs) -> bytes:
        """
        Compress an image and return its serialised representation.
        """
        raise NotImplementedError

    @abstractmethod
    def decompress(self, data: bytes, **kwargs) -> np.ndarray:
        """
        Reconstruct (approximate) an image from its serialised representation.
        """
        raise NotImplementedError
    # ----------------------
    # 🔹 Utility
    # ----------------------
    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name})"
