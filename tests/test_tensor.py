import numpy as np
import pytest

from core.events import DecodedImage
from core.tensor import TensorBuilder

LENGTH = 3 * 224 * 224


@pytest.mark.parametrize("height,width", [(1, 1), (48, 64), (224, 224), (480, 640), (1000, 3)])
def test_length_is_fixed_and_values_normalized(height, width):
    rng = np.random.default_rng(height * width)
    image = DecodedImage(rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8))

    flat = TensorBuilder().build(image)

    assert flat.shape == (LENGTH,)
    assert flat.dtype == np.float32
    assert flat.min() >= 0.0
    assert flat.max() <= 1.0


def test_layout_is_channel_major():
    pixels = np.zeros((224, 224, 3), dtype=np.uint8)
    pixels[..., 0] = 255   # red
    pixels[..., 1] = 51    # green
    pixels[..., 2] = 0     # blue

    flat = TensorBuilder().build(DecodedImage(pixels))
    plane = 224 * 224

    assert np.all(flat[:plane] == 1.0)
    assert np.allclose(flat[plane:2 * plane], 0.2)
    assert np.all(flat[2 * plane:] == 0.0)


def test_pixels_are_row_major_within_a_channel():
    pixels = np.zeros((224, 224, 3), dtype=np.uint8)
    pixels[0, 1, 0] = 255   # row 0, column 1
    pixels[1, 0, 2] = 255   # row 1, column 0

    flat = TensorBuilder().build(DecodedImage(pixels))

    assert flat[1] == 1.0
    assert flat[2 * 224 * 224 + 224] == 1.0
    assert flat.sum() == 2.0


def test_building_twice_is_bit_identical():
    rng = np.random.default_rng(11)
    image = DecodedImage(rng.integers(0, 256, size=(97, 131, 3), dtype=np.uint8))
    builder = TensorBuilder()

    first = builder.build(image)
    second = builder.build(image)

    assert first.tobytes() == second.tobytes()


def test_uniform_image_stays_uniform_after_resize():
    pixels = np.full((37, 53, 3), 102, dtype=np.uint8)

    flat = TensorBuilder().build(DecodedImage(pixels))

    assert np.allclose(flat, 0.4)


def test_batch_shape_and_custom_size():
    builder = TensorBuilder(input_size=32)
    flat = builder.build(DecodedImage(np.zeros((10, 10, 3), dtype=np.uint8)))

    assert builder.length == 3 * 32 * 32
    assert builder.batch(flat).shape == (1, 3, 32, 32)
