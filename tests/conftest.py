import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noisy_image(rng):
    """13x7 RGB image: not a multiple of the usual block sizes."""
    return rng.integers(0, 256, size=(7, 13, 3), dtype=np.uint8)


@pytest.fixture
def gradient_image():
    y, x = np.mgrid[0:16, 0:16]
    img = np.zeros((16, 16, 3), dtype=np.uint8)
    img[:, :, 0] = (x * 16).astype(np.uint8)
    img[:, :, 1] = (y * 16).astype(np.uint8)
    img[:, :, 2] = 128
    return img
