# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np

from dataclasses import dataclass
from numpy.typing import DTypeLike, NDArray
from typing import Sequence

from tessera.error import ShapeError
from tessera.tile import TileFrequency, TileFrequencyIndex, TileGrid
from tessera.types import IndexKey, Numeric, Pair, Pixel
from tessera.view import Region, RegionLocks, View, as_pair


@dataclass(frozen=True)
class FormatConfig:
    """Fixed pixel layout of a raster format.

    Attributes
    ----------
    name : str
        Short format name.
    channels : int
        Number of components per pixel.
    alpha : bool
        If True, the last channel is opacity (0 transparent, 1 opaque).
    pil_mode : None | str
        Matching Pillow image mode, if any.
    """

    name: str
    channels: int
    alpha: bool = False
    pil_mode: None | str = None


class Raster:
    """A dense, row-major, channel-interleaved pixel buffer.

    Pixels are stored in a C-ordered array of shape (height, width, channels)
    so the components of pixel (x, y) are contiguous. Every coordinate pair
    accepted by a raster is ordered (x, y), i.e. (column, row); sizes are
    (width, height) and tile indices are (col, row).

    The raster owns its storage: the constructor copies ``data`` and every
    accessor returning an array returns a copy. Shared access goes through
    ``view``/``view_mut`` and the tile view accessors.

    Subclasses fix the channel count through ``config``. The base class
    accepts any positive channel count.

    Parameters
    ----------
    data : np.ndarray
        Integer or float array of shape (height, width, channels).

    Raises
    ------
    TypeError
        If ``data`` is not an integer or float np.ndarray.
    ShapeError
        If ``data`` is not 3-dimensional, is empty, or has the wrong number
        of channels for the format.
    """

    config: None | FormatConfig = None

    def __init__(self, data: NDArray[Numeric]):
        name = type(self).__name__
        if not isinstance(data, np.ndarray):
            raise TypeError(f"[{name}] 'data' must be of type np.ndarray.")

        dtype = data.dtype
        if not (np.issubdtype(dtype, np.integer) or np.issubdtype(dtype, np.floating)):
            raise TypeError(f"[{name}] 'data' must be integer or float type.")

        if data.ndim != 3:
            raise ShapeError(f"[{name}] 'data' must have 3 dimensions.")

        h, w, c = data.shape
        if h == 0 or w == 0:
            raise ShapeError(f"[{name}] 'data' must have non-zero height and width.")

        if c == 0:
            raise ShapeError(f"[{name}] 'data' must have at least one channel.")

        if self.config is not None and c != self.config.channels:
            raise ShapeError(
                f"[{name}] 'data' must have {self.config.channels} channels."
            )

        self._data = np.array(data, order="C", copy=True)
        self._locks = RegionLocks()

    def __repr__(self):
        h, w, c = self._data.shape
        return f"{type(self).__name__}(h={h}, w={w}, c={c}, dtype={self._data.dtype})"

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented

        return self._data.shape == other._data.shape and bool(
            np.array_equal(self._data, other._data)
        )

    __hash__ = None

    def __getstate__(self):
        """Handle state for multiprocess pickling."""
        return {"data": self.to_numpy()}

    def __setstate__(self, state):
        """Recover state for multiprocess pickling."""
        self.__init__(state["data"])

    def __getitem__(self, key: IndexKey) -> Numeric | NDArray[Numeric]:
        """Copy of a numpy-indexed selection of the storage.

        Parameters
        ----------
        key : IndexKey
            Any valid numpy index into (row, column, channel) storage.

        Returns
        -------
        Numeric | NDArray[Numeric]
            Selected components.
        """
        self._locks.check_read(self._full_region(), "__getitem__")
        return self._data[key].copy()

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def channels(self) -> int:
        return self._data.shape[2]

    @property
    def shape(self) -> tuple[int, int, int]:
        return self._data.shape

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def alpha(self) -> bool:
        """True if the last channel carries opacity."""
        return self.config is not None and self.config.alpha

    # Construction

    @classmethod
    def _resolve_channels(cls, channels: None | int, source: str) -> int:
        name = cls.__name__
        if cls.config is not None:
            if channels is not None and channels != cls.config.channels:
                raise ShapeError(
                    f"[{name}] '{source}' must provide {cls.config.channels} "
                    f"channels, got {channels}."
                )
            return cls.config.channels

        if channels is None:
            raise TypeError(f"[{name}] 'channels' is required for generic rasters.")

        if channels <= 0:
            raise ShapeError(f"[{name}] 'channels' must be positive.")

        return channels

    @classmethod
    def _check_resolution(cls, width: int, height: int) -> tuple[int, int]:
        width, height = as_pair((width, height), "width/height", cls.__name__)
        if width <= 0 or height <= 0:
            raise ShapeError(f"[{cls.__name__}] 'width' and 'height' must be positive.")
        return width, height

    @classmethod
    def empty(
        cls,
        width: int,
        height: int,
        dtype: DTypeLike = np.float32,
        channels: None | int = None,
    ) -> Raster:
        """Create a raster with every component set to zero.

        Alpha formats have their alpha channel set to one (fully opaque).

        Parameters
        ----------
        width : int
            Width in pixels.
        height : int
            Height in pixels.
        dtype : DTypeLike
            Component data type.
        channels : None | int
            Channel count, only required for the generic ``Raster``.

        Returns
        -------
        Raster
            A new raster of the calling format.
        """
        width, height = cls._check_resolution(width, height)
        channels = cls._resolve_channels(channels, "channels")

        data = np.zeros((height, width, channels), dtype=dtype)
        if cls.config is not None and cls.config.alpha:
            data[:, :, -1] = 1

        return cls(data)

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        pixel: Pixel,
        dtype: None | DTypeLike = None,
    ) -> Raster:
        """Create a raster with every pixel set to ``pixel``.

        Parameters
        ----------
        width : int
            Width in pixels.
        height : int
            Height in pixels.
        pixel : Pixel
            Component values of length equal to the channel count.
        dtype : None | DTypeLike
            Component data type. Inferred from ``pixel`` if not provided.

        Returns
        -------
        Raster
            A new raster of the calling format.
        """
        width, height = cls._check_resolution(width, height)
        pixel = np.asarray(pixel, dtype=dtype)
        if pixel.ndim != 1:
            raise ShapeError(f"[{cls.__name__}] 'pixel' must be one-dimensional.")

        channels = cls._resolve_channels(pixel.shape[0], "pixel")

        data = np.empty((height, width, channels), dtype=pixel.dtype)
        data[:] = pixel
        return cls(data)

    @classmethod
    def from_layers(cls, layers: Sequence[NDArray[Numeric]]) -> Raster:
        """Stack separate channel layers into one interleaved raster.

        Parameters
        ----------
        layers : Sequence[NDArray[Numeric]]
            One two-dimensional (height, width) array per channel.

        Returns
        -------
        Raster
            A new raster of the calling format.

        Raises
        ------
        ShapeError
            If the number of layers is wrong or the layers differ in shape.
        """
        name = cls.__name__
        layers = [np.asarray(layer) for layer in layers]
        cls._resolve_channels(len(layers), "layers")

        if any(layer.ndim != 2 for layer in layers):
            raise ShapeError(f"[{name}] every layer must be two-dimensional.")

        shape = layers[0].shape
        if any(layer.shape != shape for layer in layers):
            raise ShapeError(
                f"[{name}] all layers must share shape {shape}, got "
                f"{[layer.shape for layer in layers]}."
            )

        return cls(np.stack(layers, axis=2))

    # Accessors

    def _full_region(self) -> Region:
        return Region(0, 0, self.width, self.height)

    def _check_coords(self, coords: Pair) -> tuple[int, int]:
        x, y = as_pair(coords, "coords", type(self).__name__)
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"[{type(self).__name__}] 'coords' {(x, y)} out of bounds for "
                f"{self.width}x{self.height} raster."
            )
        return x, y

    def _check_component(self, component: int) -> int:
        if not 0 <= component < self.channels:
            raise IndexError(
                f"[{type(self).__name__}] 'component' must be less than "
                f"{self.channels}."
            )
        return component

    def _check_pixel(self, pixel: Pixel) -> NDArray[Numeric]:
        pixel = np.asarray(pixel)
        if pixel.shape != (self.channels,):
            raise ShapeError(
                f"[{type(self).__name__}] 'pixel' must have {self.channels} components."
            )
        return pixel

    def get_component(self, coords: Pair, component: int) -> Numeric:
        """Get one component of the pixel at (x, y)."""
        x, y = self._check_coords(coords)
        component = self._check_component(component)
        self._locks.check_read(Region(x, y, 1, 1), "get_component")
        return self._data[y, x, component]

    def set_component(self, coords: Pair, component: int, value: Numeric) -> None:
        """Set one component of the pixel at (x, y)."""
        x, y = self._check_coords(coords)
        component = self._check_component(component)
        self._locks.check_write(Region(x, y, 1, 1), "set_component")
        self._data[y, x, component] = value

    def get_pixel(self, coords: Pair) -> NDArray[Numeric]:
        """Get a copy of all components of the pixel at (x, y)."""
        x, y = self._check_coords(coords)
        self._locks.check_read(Region(x, y, 1, 1), "get_pixel")
        return self._data[y, x].copy()

    def set_pixel(self, coords: Pair, pixel: Pixel) -> None:
        """Set all components of the pixel at (x, y)."""
        x, y = self._check_coords(coords)
        pixel = self._check_pixel(pixel)
        self._locks.check_write(Region(x, y, 1, 1), "set_pixel")
        self._data[y, x] = pixel

    def get_layer(self, component: int) -> NDArray[Numeric]:
        """Get an owned (height, width) copy of a single channel.

        Parameters
        ----------
        component : int
            Channel index.

        Returns
        -------
        NDArray[Numeric]
            Two-dimensional channel values.
        """
        component = self._check_component(component)
        self._locks.check_read(self._full_region(), "get_layer")
        return self._data[:, :, component].copy()

    def to_numpy(self) -> NDArray[Numeric]:
        """Return an independent copy of the storage as a numpy array.

        Returns
        -------
        NDArray[Numeric]
            Pixels in (height, width, channels) format.
        """
        self._locks.check_read(self._full_region(), "to_numpy")
        return self._data.copy()

    def to_tensor(self):
        """Return the raster as a torch tensor (requires the torch extra).

        Returns
        -------
        torch.Tensor
            Pixels in (height, width, channels) format.
        """
        import torch

        return torch.from_numpy(self.to_numpy())

    def copy(self) -> Raster:
        self._locks.check_read(self._full_region(), "copy")
        return type(self)(self._data)

    def content_key(self) -> tuple[str, tuple[int, ...], bytes]:
        """Key identifying the exact component sequence of the raster.

        Two rasters share a key only if they have the same dtype, the same
        shape, and bit-identical components in row-major order.
        """
        self._locks.check_read(self._full_region(), "content_key")
        return (self._data.dtype.str, self._data.shape, self._data.tobytes())

    # Geometric transforms

    def _replace(self, data: NDArray[Numeric], operation: str) -> None:
        self._locks.check_write(self._full_region(), operation)
        self._data = np.ascontiguousarray(data)

    def transpose(self) -> None:
        """Swap rows and columns in place; height and width are exchanged."""
        self._replace(self._data.transpose(1, 0, 2), "transpose")

    def flip_vertical(self) -> None:
        """Reverse the row order in place."""
        self._replace(self._data[::-1], "flip_vertical")

    def flip_horizontal(self) -> None:
        """Reverse the column order in place."""
        self._replace(self._data[:, ::-1], "flip_horizontal")

    def rotate_clockwise(self) -> None:
        """Rotate 90 degrees clockwise in place."""
        self._replace(self._data.transpose(1, 0, 2)[:, ::-1], "rotate_clockwise")

    def rotate_anticlockwise(self) -> None:
        """Rotate 90 degrees anticlockwise in place."""
        self._replace(self._data.transpose(1, 0, 2)[::-1], "rotate_anticlockwise")

    def rotate_180(self) -> None:
        """Rotate 180 degrees in place."""
        self._replace(self._data[::-1, ::-1], "rotate_180")

    # Windowing

    def _check_window(self, start: Pair, size: Pair) -> tuple[int, int, int, int]:
        name = type(self).__name__
        x, y = as_pair(start, "start", name)
        w, h = as_pair(size, "size", name)

        if w <= 0 or h <= 0:
            raise ShapeError(f"[{name}] 'size' must be positive, got {(w, h)}.")

        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            raise IndexError(
                f"[{name}] window at {(x, y)} of size {(w, h)} exceeds "
                f"{self.width}x{self.height} raster."
            )

        return x, y, w, h

    def extract(self, start: Pair, size: Pair) -> Raster:
        """Copy a rectangular region into a new, independent raster.

        Parameters
        ----------
        start : Pair
            Offset (x, y) of the region.
        size : Pair
            Extent (width, height) of the region.

        Returns
        -------
        Raster
            A raster of the same format holding the region.
        """
        x, y, w, h = self._check_window(start, size)
        self._locks.check_read(Region(x, y, w, h), "extract")
        return type(self)(self._data[y : y + h, x : x + w])

    def view(self, start: Pair, size: Pair) -> View:
        """Create a read-only view of a rectangular region.

        Parameters
        ----------
        start : Pair
            Offset (x, y) of the region.
        size : Pair
            Extent (width, height) of the region.

        Returns
        -------
        View
            Read-only window sharing this raster's storage.

        Raises
        ------
        BorrowError
            If a live mutable view overlaps the region.
        """
        x, y, w, h = self._check_window(start, size)
        return View(self, (x, y), (w, h), writable=False)

    def view_mut(self, start: Pair, size: Pair) -> View:
        """Create an exclusive, writable view of a rectangular region.

        Raises
        ------
        BorrowError
            If any live view overlaps the region.
        """
        x, y, w, h = self._check_window(start, size)
        return View(self, (x, y), (w, h), writable=True)

    # Tiling

    def _check_tile_size(self, tile_size: Pair) -> tuple[int, int]:
        name = type(self).__name__
        tw, th = as_pair(tile_size, "tile_size", name)

        if tw <= 0 or th <= 0:
            raise ShapeError(f"[{name}] 'tile_size' must be positive, got {(tw, th)}.")

        if self.width % tw != 0 or self.height % th != 0:
            raise ShapeError(
                f"[{name}] 'tile_size' {(tw, th)} must evenly divide the "
                f"{self.width}x{self.height} raster."
            )

        return tw, th

    def _tile_window(self, tile_size: Pair, tile_index: Pair) -> tuple[Pair, Pair]:
        tw, th = self._check_tile_size(tile_size)
        col, row = as_pair(tile_index, "tile_index", type(self).__name__)

        cols, rows = self.width // tw, self.height // th
        if not (0 <= col < cols and 0 <= row < rows):
            raise IndexError(
                f"[{type(self).__name__}] 'tile_index' {(col, row)} out of bounds "
                f"for a {cols}x{rows} tile grid."
            )

        return (col * tw, row * th), (tw, th)

    def extract_tile(self, tile_size: Pair, tile_index: Pair) -> Raster:
        """Copy the tile at (col, row) into a new raster."""
        return self.extract(*self._tile_window(tile_size, tile_index))

    def view_tile(self, tile_size: Pair, tile_index: Pair) -> View:
        """Create a read-only view of the tile at (col, row)."""
        return self.view(*self._tile_window(tile_size, tile_index))

    def view_tile_mut(self, tile_size: Pair, tile_index: Pair) -> View:
        """Create an exclusive, writable view of the tile at (col, row)."""
        return self.view_mut(*self._tile_window(tile_size, tile_index))

    def tiles(self, tile_size: Pair, mode: str = "default") -> TileGrid:
        """Partition the raster into a grid of owned tile copies.

        Parameters
        ----------
        tile_size : Pair
            Tile (width, height). Must evenly divide the raster.
        mode : str
            Iteration mode of the returned grid (see ``TileGrid``).

        Returns
        -------
        TileGrid
            Grid of (height / tile_h) rows by (width / tile_w) columns.
            Unlike ``tile_index=(col, row)`` in ``extract_tile``, grid
            positions are indexed in storage order as ``grid[row, col]``.
        """
        tw, th = self._check_tile_size(tile_size)
        return TileGrid(self, tw, th, view=False, mode=mode)

    def view_tiles(self, tile_size: Pair, mode: str = "default") -> TileGrid:
        """Partition the raster into a grid of read-only tile views.

        Grid positions are ``grid[row, col]``, as in ``tiles``.
        """
        tw, th = self._check_tile_size(tile_size)
        return TileGrid(self, tw, th, view=True, mode=mode)

    def unique_tiles(self, tile_size: Pair) -> list[TileFrequency]:
        """Group the tiles of the raster by exact content.

        Parameters
        ----------
        tile_size : Pair
            Tile (width, height). Must evenly divide the raster.

        Returns
        -------
        list[TileFrequency]
            One entry per distinct tile content in first-occurrence
            (row-major) order. Counts sum to the total number of tiles.
        """
        return TileFrequencyIndex(self.tiles(tile_size)).entries

    # Display

    def _display_array(self) -> NDArray[Numeric]:
        data = self.to_numpy()
        match self.channels:
            case 1:
                return data[:, :, 0]
            case 2:
                gray, alpha = data[:, :, 0], data[:, :, 1]
                return np.stack([gray, gray, gray, alpha], axis=2)
            case 3 | 4:
                return data
            case _:
                raise ShapeError(
                    f"[{type(self).__name__}] cannot display {self.channels} channels."
                )

    def show(
        self,
        ax: None | plt.Axes = None,
        figsize: None | tuple[int, int] = None,
        hide_axes: bool = True,
    ) -> plt.Axes:
        """Visualize the raster.

        Parameters
        ----------
        ax : None | plt.Axes
            Optional matplot axes object.
        figsize : None | tuple[int, int]
            Option figure size.
        hide_axes : bool
            If True, then all x-axis, y-axis, and spines are removed.

        Returns
        -------
        plt.Axes
            Matplotlib axes object of raster.
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=figsize)

        display = self._display_array()
        if display.ndim == 2:
            ax.imshow(display, cmap="gray")
        else:
            ax.imshow(display)

        if hide_axes:
            ax.get_xaxis().set_visible(False)
            ax.get_yaxis().set_visible(False)
            for pos in ["left", "right", "top", "bottom"]:
                ax.spines[pos].set_visible(False)

        return ax
