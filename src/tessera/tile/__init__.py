# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from ._grid import TileGrid
from ._unique import TileFrequency, TileFrequencyIndex

__all__ = ["TileGrid", "TileFrequency", "TileFrequencyIndex"]
