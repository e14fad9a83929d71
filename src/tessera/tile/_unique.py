# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from __future__ import annotations

import logging

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from tessera.image import Raster
    from tessera.tile._grid import TileGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileFrequency:
    """A distinct tile content and the number of tiles sharing it.

    Attributes
    ----------
    tile : Raster
        Owned copy of the first tile with this content.
    count : int
        Number of tiles in the grid with exactly this content.
    """

    tile: Raster
    count: int

    def __iter__(self):
        return iter((self.tile, self.count))


class TileFrequencyIndex:
    """Content-addressed grouping of the tiles of a grid.

    Tiles are visited in row-major grid order and keyed by their exact
    component sequence (dtype, shape, and raw bytes), so two tiles are grouped
    only if they are bit-identical. Entries keep first-occurrence order and
    each representative is the first tile seen with that content.

    Parameters
    ----------
    grid : TileGrid
        Grid of owned tiles or views. View tiles are copied into owned
        representatives.
    """

    def __init__(self, grid: TileGrid):
        representatives: dict[tuple, Raster] = {}
        counts: dict[tuple, int] = {}

        for _, tile in grid.items():
            key = tile.content_key()
            if key in counts:
                counts[key] += 1
            else:
                representatives[key] = tile.to_raster() if grid.view else tile
                counts[key] = 1

        self.entries: list[TileFrequency] = [
            TileFrequency(representatives[key], count) for key, count in counts.items()
        ]
        self.total = len(grid)

        logger.debug(
            "Found %d unique tiles among %d tiles.", len(self.entries), self.total
        )

    def __repr__(self):
        return f"TileFrequencyIndex(unique={len(self.entries)}, total={self.total})"

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TileFrequency]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> TileFrequency:
        return self.entries[index]

    def most_common(self, n: None | int = None) -> list[TileFrequency]:
        """Entries ordered by count, most frequent first.

        Ties keep first-occurrence order.

        Parameters
        ----------
        n : None | int
            If provided, only the ``n`` most frequent entries are returned.

        Returns
        -------
        list[TileFrequency]
            Sorted entries.
        """
        ordered = sorted(self.entries, key=lambda entry: entry.count, reverse=True)
        return ordered if n is None else ordered[:n]
