import numpy as np
import pytest

from tessera import (
    GrayAlpha,
    Raster,
    RGB,
    ShapeError,
    TileFrequency,
    TileFrequencyIndex,
)
from tests._fixtures.rasters import ramp, tiled


def test_empty_gray_alpha_has_one_unique_tile():
    image = GrayAlpha.empty(4, 4)
    entries = image.unique_tiles((2, 2))

    assert len(entries) == 1
    assert entries[0].count == 4
    assert entries[0].tile == GrayAlpha.empty(2, 2)


def test_counts_sum_to_tile_count():
    values = [[0, 1, 0, 1], [1, 0, 1, 0]]
    image = tiled(RGB, values, tile_w=2, tile_h=3)
    entries = image.unique_tiles((2, 3))

    assert sum(entry.count for entry in entries) == 8
    assert [entry.count for entry in entries] == [4, 4]

    keys = {entry.tile.content_key() for entry in entries}
    assert len(keys) == len(entries)


def test_all_distinct_tiles():
    image = ramp(RGB, 6, 4)
    entries = image.unique_tiles((3, 2))

    assert len(entries) == 4
    assert all(entry.count == 1 for entry in entries)


def test_first_occurrence_order():
    values = [[3, 1, 3], [2, 1, 1]]
    image = tiled(GrayAlpha, values, tile_w=2, tile_h=2)
    entries = image.unique_tiles((2, 2))

    assert [entry.tile.get_component((0, 0), 0) for entry in entries] == [3, 1, 2]
    assert [entry.count for entry in entries] == [2, 3, 1]


def test_representative_is_first_tile_and_owned():
    values = [[5, 5]]
    image = tiled(RGB, values, tile_w=2, tile_h=2)
    entry = image.unique_tiles((2, 2))[0]

    assert entry.tile == image.extract_tile((2, 2), (0, 0))
    entry.tile.set_pixel((0, 0), [0, 0, 0])
    assert np.array_equal(image.get_pixel((0, 0)), [5, 5, 5])


def test_grouping_is_bit_exact():
    data = np.zeros((1, 2, 2))
    data[0, 1, 0] = -0.0
    data[0, 1, 1] = 0.0
    image = Raster(data)

    entries = image.unique_tiles((1, 1))
    assert len(entries) == 2


def test_entry_unpacking():
    tile, count = GrayAlpha.empty(2, 2).unique_tiles((1, 1))[0]
    assert isinstance(tile, GrayAlpha)
    assert count == 4


def test_index_from_view_grid():
    values = [[1, 2], [2, 2]]
    image = tiled(GrayAlpha, values, tile_w=1, tile_h=2)

    with image.view_tiles((1, 2)) as grid:
        index = TileFrequencyIndex(grid)

    assert len(index) == 2
    assert index.total == 4
    assert all(type(entry.tile) is GrayAlpha for entry in index)
    assert index[1].count == 3

    image.flip_vertical()


def test_most_common():
    values = [[1, 2, 2, 3, 2, 3]]
    image = tiled(RGB, values, tile_w=1, tile_h=1)
    index = TileFrequencyIndex(image.tiles((1, 1)))

    assert [entry.count for entry in index.most_common()] == [3, 2, 1]
    assert [entry.tile.get_component((0, 0), 0) for entry in index.most_common(2)] == [2, 3]


def test_most_common_ties_keep_first_occurrence():
    values = [[4, 7]]
    image = tiled(RGB, values, tile_w=1, tile_h=1)
    index = TileFrequencyIndex(image.tiles((1, 1)))

    assert [entry.tile.get_component((0, 0), 0) for entry in index.most_common()] == [4, 7]


def test_frequency_is_frozen():
    entry = TileFrequency(RGB.empty(1, 1), 1)
    with pytest.raises(AttributeError):
        entry.count = 2


def test_unique_tiles_non_exact_division():
    with pytest.raises(ShapeError):
        _ = GrayAlpha.empty(4, 4).unique_tiles((3, 2))
