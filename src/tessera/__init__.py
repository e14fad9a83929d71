# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from .colour import ColourMap
from .error import BorrowError, ShapeError
from .image import GrayAlpha, Raster, RGB, RGBA
from .tile import TileFrequency, TileFrequencyIndex, TileGrid
from .view import View

__all__ = [
    "BorrowError",
    "ColourMap",
    "GrayAlpha",
    "Raster",
    "RGB",
    "RGBA",
    "ShapeError",
    "TileFrequency",
    "TileFrequencyIndex",
    "TileGrid",
    "View",
]
