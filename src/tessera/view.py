# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from __future__ import annotations

import numpy as np
import operator
import weakref

from dataclasses import dataclass
from numpy.typing import NDArray
from typing import TYPE_CHECKING, Iterator

from tessera.error import BorrowError
from tessera.types import IndexKey, Numeric, Pair, Pixel

if TYPE_CHECKING:
    from tessera.image import Raster


@dataclass(frozen=True)
class Region:
    """An axis-aligned pixel rectangle.

    Attributes
    ----------
    x : int
        Left-most column.
    y : int
        Top-most row.
    w : int
        Width in pixels.
    h : int
        Height in pixels.
    """

    x: int
    y: int
    w: int
    h: int

    def overlaps(self, other: Region) -> bool:
        return (
            self.x < other.x + other.w
            and self.x + self.w > other.x
            and self.y < other.y + other.h
            and self.y + self.h > other.y
        )


def as_pair(value: Pair, name: str, owner: str) -> tuple[int, int]:
    """Coerce an (x, y) style pair to two Python integers."""
    try:
        first, second = value
        return operator.index(first), operator.index(second)
    except (TypeError, ValueError):
        raise TypeError(f"[{owner}] '{name}' must be a pair of integers.") from None


class RegionLocks:
    """Registry of live views over a single raster.

    Read-only views hold shared locks and mutable views hold exclusive locks
    on their region. Views are tracked weakly, so a view that is garbage
    collected no longer holds its lock.
    """

    def __init__(self):
        self._views: weakref.WeakSet[View] = weakref.WeakSet()

    def __len__(self) -> int:
        return sum(1 for _ in self.live())

    def live(self) -> Iterator[View]:
        for view in list(self._views):
            if not view.released:
                yield view

    def acquire(self, view: View) -> None:
        for other in self.live():
            if not (view.writable or other.writable):
                continue
            if view.region.overlaps(other.region):
                kind = "mutable" if other.writable else "read-only"
                raise BorrowError(
                    f"[View] region {view.region} overlaps a live {kind} "
                    f"view at {other.region}."
                )
        self._views.add(view)

    def release(self, view: View) -> None:
        self._views.discard(view)

    def check_read(self, region: Region, operation: str) -> None:
        """Fail if a live mutable view overlaps ``region``."""
        for other in self.live():
            if other.writable and region.overlaps(other.region):
                raise BorrowError(
                    f"'{operation}' conflicts with a live mutable view at "
                    f"{other.region}."
                )

    def check_write(self, region: Region, operation: str) -> None:
        """Fail if any live view overlaps ``region``."""
        for other in self.live():
            if region.overlaps(other.region):
                raise BorrowError(
                    f"'{operation}' conflicts with a live view at {other.region}."
                )


class View:
    """A non-owning rectangular window into a raster's storage.

    Views are created through ``Raster.view``, ``Raster.view_mut`` and the
    tile accessors rather than directly. A read-only view may overlap other
    read-only views; a mutable view must be the only live view over its
    region. The view stays live until ``release`` is called, its ``with``
    block exits, or it is garbage collected.

    Parameters
    ----------
    parent : Raster
        The raster whose storage is windowed.
    start : Pair
        Offset (x, y) of the window.
    size : Pair
        Extent (width, height) of the window.
    writable : bool
        If True, the view grants exclusive write access to its region.

    Raises
    ------
    BorrowError
        If the window conflicts with a live view on the same raster.
    """

    def __init__(self, parent: Raster, start: Pair, size: Pair, writable: bool):
        x, y = start
        w, h = size
        self._parent = parent
        self._region = Region(x, y, w, h)
        self._writable = writable
        self._released = False

        parent._locks.acquire(self)

        array = parent._data[y : y + h, x : x + w]
        if not writable:
            array = array.view()
            array.flags.writeable = False

        self._array = array

    def __repr__(self):
        kind = "mut" if self._writable else "ref"
        return (
            f"View({kind}, x={self._region.x}, y={self._region.y}, "
            f"w={self._region.w}, h={self._region.h}, released={self._released})"
        )

    def __enter__(self) -> View:
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    @property
    def region(self) -> Region:
        return self._region

    @property
    def start(self) -> Pair:
        return (self._region.x, self._region.y)

    @property
    def size(self) -> Pair:
        return (self._region.w, self._region.h)

    @property
    def width(self) -> int:
        return self._region.w

    @property
    def height(self) -> int:
        return self._region.h

    @property
    def channels(self) -> int:
        return self._parent.channels

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self._region.h, self._region.w, self._parent.channels)

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Give up access to the windowed region. Safe to call twice."""
        if not self._released:
            self._released = True
            self._parent._locks.release(self)
            self._array = None

    def _live_array(self) -> NDArray[Numeric]:
        if self._released:
            raise BorrowError("[View] view has been released.")
        return self._array

    def _writable_array(self) -> NDArray[Numeric]:
        array = self._live_array()
        if not self._writable:
            raise BorrowError("[View] view is read-only.")
        return array

    def _check_coords(self, coords: Pair) -> tuple[int, int]:
        x, y = as_pair(coords, "coords", "View")
        if not (0 <= x < self._region.w and 0 <= y < self._region.h):
            raise IndexError(
                f"[View] 'coords' {(x, y)} out of bounds for "
                f"{self._region.w}x{self._region.h} view."
            )
        return x, y

    def _check_component(self, component: int) -> int:
        if not 0 <= component < self._parent.channels:
            raise IndexError(
                f"[View] 'component' must be less than {self._parent.channels}."
            )
        return component

    def __getitem__(self, key: IndexKey) -> Numeric | NDArray[Numeric]:
        """Copy of the indexed windowed storage (row, column, channel)."""
        return self._live_array()[key].copy()

    def __setitem__(self, key: IndexKey, value) -> None:
        self._writable_array()[key] = value

    def get_component(self, coords: Pair, component: int) -> Numeric:
        array = self._live_array()
        x, y = self._check_coords(coords)
        return array[y, x, self._check_component(component)]

    def set_component(self, coords: Pair, component: int, value: Numeric) -> None:
        array = self._writable_array()
        x, y = self._check_coords(coords)
        array[y, x, self._check_component(component)] = value

    def get_pixel(self, coords: Pair) -> NDArray[Numeric]:
        array = self._live_array()
        x, y = self._check_coords(coords)
        return array[y, x].copy()

    def set_pixel(self, coords: Pair, pixel: Pixel) -> None:
        array = self._writable_array()
        x, y = self._check_coords(coords)
        array[y, x] = self._parent._check_pixel(pixel)

    def get_layer(self, component: int) -> NDArray[Numeric]:
        array = self._live_array()
        return array[:, :, self._check_component(component)].copy()

    def fill(self, pixel: Pixel) -> None:
        """Set every pixel in the window to ``pixel``."""
        array = self._writable_array()
        array[:] = self._parent._check_pixel(pixel)

    def to_numpy(self) -> NDArray[Numeric]:
        """Return an independent copy of the windowed pixels."""
        return self._live_array().copy()

    def to_raster(self) -> Raster:
        """Return an owned raster of the parent's format holding the window."""
        return type(self._parent)(self._live_array())

    def content_key(self) -> tuple[str, tuple[int, ...], bytes]:
        array = self._live_array()
        return (array.dtype.str, array.shape, np.ascontiguousarray(array).tobytes())
