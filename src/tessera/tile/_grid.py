# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from __future__ import annotations

import logging
import matplotlib.pyplot as plt
import numpy as np

from typing import TYPE_CHECKING, Iterator

from tessera.error import BorrowError

if TYPE_CHECKING:
    from tessera.image import Raster
    from tessera.view import View

logger = logging.getLogger(__name__)

TILEGRID_MODES: set[str] = {"default", "coords", "enumerate", "enumerate+coords"}


class TileGrid(Iterator):
    """An exact partition of a raster into equally sized tiles.

    Tiles are collected eagerly at construction, either as owned raster
    copies or as read-only views, and are iterated in row-major order.

    Grid positions follow storage order: ``grid[row, col]`` and ``shape ==
    (rows, cols)``. The tile at ``grid[row, col]`` is the one that single-tile
    accessors such as ``Raster.extract_tile`` address with
    ``tile_index=(col, row)``.

    Parameters
    ----------
    image : Raster
        The raster to partition.
    tile_w : int
        Tile width in pixels. Must evenly divide the raster width.
    tile_h : int
        Tile height in pixels. Must evenly divide the raster height.
    view : bool
        If True, tiles are read-only views instead of owned copies.
    mode : str
        Determines what is returned during iteration:
        - "default": tile only
        - "coords": (coords, tile)
        - "enumerate": (index, tile)
        - "enumerate+coords": (index, coords, tile)

    Attributes
    ----------
    rows : int
        Number of tile rows (image height / tile height).
    cols : int
        Number of tile columns (image width / tile width).
    coordinates : list[tuple[int, int, int, int]]
        (x, y, w, h) of each tile in row-major order.
    """

    def __init__(
        self,
        image: Raster,
        tile_w: int,
        tile_h: int,
        view: bool = False,
        mode: str = "default",
    ):
        self.mode = mode.lower()
        if self.mode not in TILEGRID_MODES:
            raise ValueError(
                f"Invalid mode '{self.mode}'. Must be one of "
                "'default', 'coords', 'enumerate', 'enumerate+coords'."
            )

        tile_w, tile_h = image._check_tile_size((tile_w, tile_h))

        self.image_w = image.width
        self.image_h = image.height
        self.tile_w = tile_w
        self.tile_h = tile_h
        self.rows = image.height // tile_h
        self.cols = image.width // tile_w
        self.view = view
        self._raster_type = type(image)

        self.coordinates = [
            (x, y, tile_w, tile_h)
            for y in range(0, image.height, tile_h)
            for x in range(0, image.width, tile_w)
        ]

        tiles = []
        try:
            for x, y, w, h in self.coordinates:
                if view:
                    tiles.append(image.view((x, y), (w, h)))
                else:
                    tiles.append(image.extract((x, y), (w, h)))
        except BorrowError:
            if view:
                for tile in tiles:
                    tile.release()
            raise

        self._tiles: list[Raster | View] = tiles
        self.n_tiles = len(tiles)
        self._index = 0

        logger.debug(
            "Partitioned %dx%d raster into %dx%d grid of %dx%d %s.",
            self.image_w,
            self.image_h,
            self.cols,
            self.rows,
            tile_w,
            tile_h,
            "views" if view else "tiles",
        )

    def __repr__(self):
        return (
            f"TileGrid(rows={self.rows}, cols={self.cols}, "
            f"tile_w={self.tile_w}, tile_h={self.tile_h}, view={self.view})"
        )

    def __enter__(self) -> TileGrid:
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    @property
    def shape(self) -> tuple[int, int]:
        """Grid shape as (rows, cols)."""
        return (self.rows, self.cols)

    @property
    def tile_size(self) -> tuple[int, int]:
        """Tile size as (width, height)."""
        return (self.tile_w, self.tile_h)

    def __len__(self):
        return self.n_tiles

    def __getitem__(self, key: int | tuple[int, int]) -> Raster | View:
        """Tile at grid position (row, col), or at a flat row-major index."""
        if isinstance(key, tuple):
            row, col = key
            if not (0 <= row < self.rows and 0 <= col < self.cols):
                raise IndexError(
                    f"[TileGrid] position {(row, col)} out of bounds for "
                    f"{self.rows}x{self.cols} grid."
                )
            return self._tiles[row * self.cols + col]

        return self._tiles[key]

    def __iter__(self) -> Iterator:
        for idx in range(self.n_tiles):
            yield self._emit(idx)

    def __next__(self):
        if self._index >= self.n_tiles:
            raise StopIteration

        idx = self._index
        self._index += 1
        return self._emit(idx)

    def _emit(self, idx: int):
        coord = self.coordinates[idx]
        tile = self._tiles[idx]

        if self.mode == "default":
            return tile
        elif self.mode == "coords":
            return coord, tile
        elif self.mode == "enumerate":
            return idx, tile
        elif self.mode == "enumerate+coords":
            return idx, coord, tile

    def items(self) -> Iterator[tuple[tuple[int, int], Raster | View]]:
        """Yield ((row, col), tile) pairs in row-major order."""
        for idx, tile in enumerate(self._tiles):
            yield divmod(idx, self.cols), tile

    def to_list(self) -> list[list[Raster | View]]:
        """Return tiles as a nested list indexed [row][col]."""
        return [
            self._tiles[row * self.cols : (row + 1) * self.cols]
            for row in range(self.rows)
        ]

    def release(self) -> None:
        """Release every view tile. Owned tiles are unaffected."""
        if self.view:
            for tile in self._tiles:
                tile.release()

    def assemble(self) -> Raster:
        """Stitch the tiles back into a single raster.

        Returns
        -------
        Raster
            A new raster of the source format and the source dimensions.
        """
        rows = [
            np.concatenate([tile.to_numpy() for tile in row], axis=1)
            for row in self.to_list()
        ]
        return self._raster_type(np.concatenate(rows, axis=0))

    def show(
        self,
        ax: None | plt.Axes = None,
        figsize: None | tuple[int, int] = None,
        edgecolor: str | None = "black",
        facecolor: str | None = "green",
        linewidth: int | float = 1,
        alpha: int | float = 0.1,
        hide_axes: bool = True,
    ) -> plt.Axes:
        """Visualize tile boundaries overlaid on the assembled image.

        Parameters
        ----------
        ax : None | plt.Axes
            Optional matplot axes object.
        figsize : None | tuple[int, int]
            Option figure size.
        edgecolor : str | None
            Edge color around plotted tiles.
        facecolor : str | None
            Face color of plotted tiles.
        linewidth : int | float
            Edge line width around plotted tiles.
        alpha : int | float
            Alpha of tile colors.
        hide_axes : bool
            If True, then all x-axis, y-axis, and spines are removed.

        Returns
        -------
        plt.Axes
            Matplotlib axes object of the grid.
        """
        ax = self.assemble().show(ax=ax, figsize=figsize, hide_axes=hide_axes)

        for x, y, w, h in self.coordinates:
            # imshow places pixel centres on integer coordinates
            rect = plt.Rectangle(
                (x - 0.5, y - 0.5),
                w,
                h,
                edgecolor=edgecolor,
                facecolor=facecolor,
                linewidth=linewidth,
                alpha=alpha,
            )
            ax.add_patch(rect)

        return ax

