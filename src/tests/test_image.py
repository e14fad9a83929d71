import pickle

import numpy as np
import pytest

from tessera import GrayAlpha, Raster, RGB, RGBA, ShapeError
from tests._fixtures.rasters import ramp


def test_rgb_init():
    image = RGB(np.zeros((3, 5, 3), dtype=np.uint8))
    assert image.shape == (3, 5, 3)
    assert image.dtype == np.uint8
    assert image.height == 3
    assert image.width == 5
    assert image.channels == 3
    assert not image.alpha


def test_init_copies_data():
    data = np.zeros((2, 2, 3))
    image = RGB(data)
    data[0, 0, 0] = 9
    assert image.get_component((0, 0), 0) == 0


def test_init_type_error():
    with pytest.raises(TypeError):
        _ = RGB(np.zeros((2, 2, 3), dtype=bool))

    with pytest.raises(TypeError):
        _ = RGB([[[0, 0, 0]]])


def test_init_dim_error():
    with pytest.raises(ShapeError):
        _ = RGB(np.zeros((2, 2)))


@pytest.mark.parametrize("cls,channels", [(GrayAlpha, 3), (RGB, 4), (RGBA, 3)])
def test_init_channel_error(cls, channels):
    with pytest.raises(ShapeError):
        _ = cls(np.zeros((2, 2, channels)))


def test_init_empty_dimension_error():
    with pytest.raises(ShapeError):
        _ = RGB(np.zeros((0, 2, 3)))

    with pytest.raises(ShapeError):
        _ = RGB(np.zeros((2, 0, 3)))


def test_init_zero_channels_error():
    with pytest.raises(ShapeError, match="channel"):
        _ = Raster(np.zeros((2, 2, 0)))


def test_generic_raster_accepts_any_channels():
    image = Raster(np.zeros((2, 2, 5)))
    assert image.channels == 5
    assert not image.alpha


def test_empty_rgb():
    image = RGB.empty(4, 3)
    assert image.shape == (3, 4, 3)
    assert image.dtype == np.float32
    assert np.all(image.to_numpy() == 0)


@pytest.mark.parametrize("cls", [GrayAlpha, RGBA])
def test_empty_alpha_is_opaque(cls):
    image = cls.empty(4, 3, dtype=np.uint8)
    assert image.alpha
    assert np.all(image.get_layer(image.channels - 1) == 1)
    for component in range(image.channels - 1):
        assert np.all(image.get_layer(component) == 0)


def test_empty_generic_requires_channels():
    with pytest.raises(TypeError):
        _ = Raster.empty(2, 2)

    assert Raster.empty(2, 2, channels=1).shape == (2, 2, 1)


def test_empty_invalid_resolution():
    with pytest.raises(ShapeError):
        _ = RGB.empty(0, 3)

    with pytest.raises(ShapeError):
        _ = RGB.empty(3, -1)


def test_filled():
    image = RGBA.filled(3, 2, [1, 2, 3, 4])
    assert image.shape == (2, 3, 4)
    for y in range(2):
        for x in range(3):
            assert np.array_equal(image.get_pixel((x, y)), [1, 2, 3, 4])


def test_filled_dtype():
    image = RGB.filled(2, 2, [0.5, 0.25, 1.0], dtype=np.float32)
    assert image.dtype == np.float32


def test_filled_wrong_length():
    with pytest.raises(ShapeError):
        _ = RGB.filled(2, 2, [1, 2])


def test_from_layers():
    layers = [np.full((2, 3), value) for value in (1, 2, 3)]
    image = RGB.from_layers(layers)
    assert image.shape == (2, 3, 3)
    for component, layer in enumerate(layers):
        assert np.array_equal(image.get_layer(component), layer)
    assert np.array_equal(image.get_pixel((2, 1)), [1, 2, 3])


def test_from_layers_shape_mismatch():
    layers = [np.zeros((2, 3)), np.zeros((2, 3)), np.zeros((3, 2))]
    with pytest.raises(ShapeError):
        _ = RGB.from_layers(layers)


def test_from_layers_wrong_count():
    with pytest.raises(ShapeError):
        _ = RGBA.from_layers([np.zeros((2, 2))] * 3)


def test_from_layers_not_two_dimensional():
    with pytest.raises(ShapeError):
        _ = GrayAlpha.from_layers([np.zeros((2, 2, 1)), np.zeros((2, 2, 1))])


def test_set_get_pixel_roundtrip():
    image = RGBA.empty(4, 3, dtype=np.uint8)
    for y in range(3):
        for x in range(4):
            image.set_pixel((x, y), [x, y, x + y, 255])

    for y in range(3):
        for x in range(4):
            assert np.array_equal(image.get_pixel((x, y)), [x, y, x + y, 255])


def test_set_get_component():
    image = GrayAlpha.empty(2, 2)
    image.set_component((1, 0), 0, 0.5)
    assert image.get_component((1, 0), 0) == 0.5
    assert image.get_component((0, 1), 0) == 0


def test_coordinates_are_x_then_y():
    image = ramp(RGB, 4, 3)
    data = image.to_numpy()
    assert np.array_equal(image.get_pixel((3, 0)), data[0, 3])
    assert image.get_component((1, 2), 2) == data[2, 1, 2]


def test_out_of_bounds():
    image = RGB.empty(4, 3)

    with pytest.raises(IndexError):
        _ = image.get_pixel((4, 0))

    with pytest.raises(IndexError):
        _ = image.get_pixel((0, 3))

    with pytest.raises(IndexError):
        _ = image.get_pixel((-1, 0))

    with pytest.raises(IndexError):
        _ = image.get_component((0, 0), 3)

    with pytest.raises(IndexError):
        image.set_component((0, 0), 3, 1.0)

    with pytest.raises(IndexError):
        _ = image.get_layer(3)


def test_set_pixel_wrong_length():
    image = RGB.empty(2, 2)
    with pytest.raises(ShapeError):
        image.set_pixel((0, 0), [1, 2, 3, 4])
    assert np.all(image.to_numpy() == 0)


def test_accessors_return_copies():
    image = ramp(RGB, 3, 2)
    layer = image.get_layer(0)
    layer[:] = -1
    pixel = image.get_pixel((0, 0))
    pixel[:] = -1
    array = image.to_numpy()
    array[:] = -1
    assert image == ramp(RGB, 3, 2)


def test_getitem_copies():
    image = ramp(RGB, 3, 2)
    row = image[0]
    row[:] = -1
    assert np.array_equal(image[0, 1], [3, 4, 5])


def test_equality():
    assert ramp(RGB, 3, 2) == ramp(RGB, 3, 2)

    image = ramp(RGB, 3, 2)
    image.set_pixel((0, 0), [9, 9, 9])
    assert image != ramp(RGB, 3, 2)

    assert ramp(RGB, 3, 2) != Raster(ramp(RGB, 3, 2).to_numpy())
    assert ramp(RGB, 3, 2) != ramp(RGB, 2, 3)


def test_copy_is_independent():
    image = ramp(RGBA, 2, 2)
    other = image.copy()
    other.set_pixel((0, 0), [0, 0, 0, 0])
    assert image.get_component((0, 0), 3) == 3
    assert type(other) is RGBA


def test_content_key():
    a = RGB.filled(2, 2, [1, 2, 3], dtype=np.uint8)
    b = RGB.filled(2, 2, [1, 2, 3], dtype=np.uint8)
    c = RGB.filled(2, 2, [1, 2, 3], dtype=np.int16)
    assert a.content_key() == b.content_key()
    assert a.content_key() != c.content_key()


def test_pickle():
    image = ramp(GrayAlpha, 3, 2)
    restored = pickle.loads(pickle.dumps(image))
    assert restored == image
    assert type(restored) is GrayAlpha


def test_repr():
    assert repr(ramp(RGB, 4, 3)) == "RGB(h=3, w=4, c=3, dtype=int64)"


def test_to_tensor():
    torch = pytest.importorskip("torch")
    tensor = ramp(RGB, 4, 3).to_tensor()
    assert isinstance(tensor, torch.Tensor)
    assert tuple(tensor.shape) == (3, 4, 3)


def test_show():
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")

    ax = GrayAlpha.filled(4, 3, [0.5, 1.0]).show()
    image = ax.get_images()[0]
    assert image.get_array().shape == (3, 4, 4)
