import logging
import struct
import zlib

import numpy as np
import pytest

from smallbasis import CompressorConfig, SmallBasisCompressor
from smallbasis.compression.ranking import retained_count
from smallbasis.compression.solver import ExactSolver
from smallbasis.errors import ConfigurationError, DecodeError, ValidationError
from smallbasis.utils.record_codec import MAGIC, CompressedImage, encode_compressed_image


def test_solid_red_2x2_round_trip():
    img = np.zeros((2, 2, 3), dtype=np.uint8)
    img[:, :, 0] = 255
    compressor = SmallBasisCompressor(quality=1.0, block_size=2)

    record = compressor.compress_record(img)
    assert record.used_basis == (0, 1, 2, 3)

    out = compressor.decompress(compressor.compress(img))
    assert out.shape == (2, 2, 4)
    assert np.all(out[:, :, 0] == 255)
    assert np.all(out[:, :, 1:3] == 0)
    assert np.all(out[:, :, 3] == 255)


@pytest.mark.parametrize("basis", ["trig", "ortho"])
def test_full_quality_is_lossless_to_8_bits(noisy_image, basis):
    compressor = SmallBasisCompressor(quality=1.0, block_size=4, basis=basis)
    out = compressor.decompress(compressor.compress(noisy_image))
    assert out.shape == (7, 13, 4)
    diff = np.abs(out[:, :, :3].astype(int) - noisy_image.astype(int))
    assert diff.max() <= 1


def test_full_quality_16_bit_input(rng):
    img = rng.integers(0, 0x10000, size=(5, 6, 3), dtype=np.uint16)
    compressor = SmallBasisCompressor(quality=1.0, block_size=4)
    out = compressor.decompress(compressor.compress(img))
    expected = np.rint(img.astype(np.float64) / 0xFFFF * 0xFF)
    assert np.abs(out[:, :, :3] - expected).max() <= 1


def test_float32_storage_stays_within_quantisation(noisy_image):
    compressor = SmallBasisCompressor(quality=1.0, block_size=4, coefficient_dtype="float32")
    out = compressor.decompress(compressor.compress(noisy_image))
    assert np.abs(out[:, :, :3].astype(int) - noisy_image.astype(int)).max() <= 1


def test_zero_quality_gives_opaque_black(noisy_image):
    compressor = SmallBasisCompressor(quality=0.0, block_size=4)
    record = compressor.compress_record(noisy_image)
    assert record.used_basis == ()
    assert record.blocks.shape == (3 * 2 * 4, 0)

    out = compressor.decompress(compressor.compress(noisy_image))
    assert np.all(out[:, :, :3] == 0)
    assert np.all(out[:, :, 3] == 255)


def test_empty_basis_ignores_stored_coefficients():
    compressor = SmallBasisCompressor(quality=0.0, block_size=4)
    record = CompressedImage(4, 4, 4, (), np.ones((3, 5)))
    out = compressor.decompress_record(record)
    assert np.all(out[:, :, :3] == 0)


@pytest.mark.parametrize("quality", [0.0, 0.1, 0.25, 0.5, 0.77, 1.0])
def test_retained_basis_is_sorted_sized_and_in_range(gradient_image, quality):
    compressor = SmallBasisCompressor(quality=quality, block_size=4)
    used = compressor.compress_record(gradient_image).used_basis
    assert len(used) == retained_count(quality, 16)
    assert all(a < b for a, b in zip(used, used[1:]))
    assert all(0 <= i < 16 for i in used)


def test_constant_image_keeps_only_the_dc_direction():
    img = np.full((8, 8, 3), 128, dtype=np.uint8)
    compressor = SmallBasisCompressor(quality=1 / 16, block_size=4)
    assert compressor.compress_record(img).used_basis == (15,)
    out = compressor.decompress(compressor.compress(img))
    assert np.all(out[:, :, :3] == 128)


def test_orthonormal_basis_projection_keeps_exact_coefficients(gradient_image):
    compressor = SmallBasisCompressor(quality=0.5, block_size=4, basis="ortho")
    record = compressor.compress_record(gradient_image)
    exact = ExactSolver(compressor.basis).solve(compressor.codec.extract(gradient_image))
    np.testing.assert_allclose(record.blocks, exact[:, list(record.used_basis)], atol=1e-10)


def test_pruning_degrades_gracefully(gradient_image):
    errors = []
    for quality in (0.25, 0.5, 1.0):
        compressor = SmallBasisCompressor(quality=quality, block_size=4)
        out = compressor.decompress(compressor.compress(gradient_image))
        errors.append(np.abs(out[:, :, :3].astype(int) - gradient_image.astype(int)).mean())
    assert errors[-1] <= 1
    assert errors[0] >= errors[-1]


def test_output_keeps_original_size():
    img = np.full((7, 10, 3), 200, dtype=np.uint8)
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    assert compressor.decompress(compressor.compress(img)).shape == (7, 10, 4)


@pytest.mark.parametrize("used_basis", [(3, 1), (2, 2)])
def test_unsorted_basis_is_rejected(used_basis):
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    record = CompressedImage(4, 4, 4, used_basis, np.zeros((3, 2)))
    with pytest.raises(ValidationError):
        compressor.decompress(encode_compressed_image(record))


@pytest.mark.parametrize("used_basis", [(16,), (-1,), (0, 5, 99)])
def test_out_of_range_basis_is_rejected(used_basis):
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    record = CompressedImage(4, 4, 4, used_basis, np.zeros((3, len(used_basis))))
    with pytest.raises(ValidationError):
        compressor.decompress_record(record)


def test_out_of_range_basis_from_bytes_is_rejected():
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    data = encode_compressed_image(CompressedImage(4, 4, 4, (16,), np.zeros((3, 1))))
    with pytest.raises(ValidationError):
        compressor.decompress(data)


def test_record_shape_mismatch_is_rejected():
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    with pytest.raises(ValidationError):
        compressor.decompress_record(CompressedImage(4, 4, 4, (0, 1), np.zeros((2, 2))))
    with pytest.raises(ValidationError):
        compressor.decompress_record(CompressedImage(4, 4, 2, (0, 1), np.zeros((12, 2))))


def test_malformed_bytes_raise_decode_error(noisy_image):
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    with pytest.raises(DecodeError):
        compressor.decompress(b"definitely not a record")
    other = SmallBasisCompressor(quality=0.5, block_size=2).compress(noisy_image)
    with pytest.raises(DecodeError):
        compressor.decompress(other)


def test_custom_basis_is_used():
    basis = np.eye(4)
    compressor = SmallBasisCompressor(quality=0.5, block_size=2, basis=basis)
    img = np.zeros((2, 2, 3), dtype=np.uint8)
    img[0, 0, 0] = 255
    img[1, 1, 1] = 128
    # identity basis: importance is just the per-position pixel mass
    assert compressor.compress_record(img).used_basis == (0, 2)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"quality": 1.5},
        {"quality": -0.1},
        {"block_size": 0},
        {"block_size": 3, "basis": "ortho"},
        {"block_size": 2, "basis": np.eye(9)},
        {"block_size": 2, "basis": np.ones((4, 3))},
        {"block_size": 2, "basis": np.zeros((4, 4))},
        {"coefficient_dtype": "int8"},
        {"zlib_level": 12},
    ],
)
def test_invalid_construction_raises_configuration_error(kwargs):
    with pytest.raises(ConfigurationError):
        SmallBasisCompressor(**kwargs)


def test_from_config_and_shared_state():
    cfg = CompressorConfig(quality=0.25, block_size=8, basis="ortho", coefficient_dtype="float32")
    compressor = SmallBasisCompressor.from_config(cfg)
    assert compressor.block_size == 8
    assert compressor.basis_size == 64
    assert compressor.coefficient_dtype == "float32"
    assert not compressor.basis.flags.writeable


def test_forged_huge_record_raises_decode_error():
    data = struct.pack("<4sIIIBBI", MAGIC, 2**31, 2**31, 4, 1, 8, 0) + zlib.compress(b"")
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    with pytest.raises(DecodeError):
        compressor.decompress(data)


def test_huge_in_memory_record_raises_validation_error():
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    with pytest.raises(ValidationError):
        compressor.decompress_record(CompressedImage(2**20, 2**20, 4, (), np.zeros((0, 0))))


def test_decode_failures_are_logged(caplog):
    compressor = SmallBasisCompressor(quality=0.5, block_size=4)
    with caplog.at_level(logging.WARNING, logger="smallbasis"):
        with pytest.raises(DecodeError):
            compressor.decompress(b"not a record at all, just bytes")
    assert any("Rejected record" in r.getMessage() for r in caplog.records)


def test_out_of_range_float_images_are_clipped():
    img = np.array([[[1.5, -0.5, np.nan], [0.25, 0.5, 0.75]]])
    compressor = SmallBasisCompressor(quality=1.0, block_size=2)
    vectors = compressor.codec.extract(img)
    assert vectors.min() >= 0.0 and vectors.max() <= 1.0
    out = compressor.decompress(compressor.compress(img))
    np.testing.assert_array_equal(out[0, 0, :3], [255, 0, 0])
