# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from ._base import FormatConfig, Raster
from ._formats import (
    GRAY_ALPHA_CONFIG,
    RGB_CONFIG,
    RGBA_CONFIG,
    GrayAlpha,
    RGB,
    RGBA,
)

__all__ = [
    "FormatConfig",
    "Raster",
    "GrayAlpha",
    "RGB",
    "RGBA",
    "GRAY_ALPHA_CONFIG",
    "RGB_CONFIG",
    "RGBA_CONFIG",
]
