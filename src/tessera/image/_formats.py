# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

from tessera.image._base import FormatConfig, Raster

GRAY_ALPHA_CONFIG = FormatConfig(
    name="gray_alpha", channels=2, alpha=True, pil_mode="LA"
)

RGB_CONFIG = FormatConfig(name="rgb", channels=3, alpha=False, pil_mode="RGB")

RGBA_CONFIG = FormatConfig(name="rgba", channels=4, alpha=True, pil_mode="RGBA")


class GrayAlpha(Raster):
    """A grayscale raster with transparency.

    Channel 0 is intensity and channel 1 is opacity, where 0 means no
    coverage and 1 means full coverage. ``GrayAlpha.empty`` is opaque.
    """

    config = GRAY_ALPHA_CONFIG


class RGB(Raster):
    """An opaque colour raster with red, green, and blue channels."""

    config = RGB_CONFIG


class RGBA(Raster):
    """A colour raster with transparency.

    Channels are red, green, blue, and opacity. ``RGBA.empty`` is opaque
    black.
    """

    config = RGBA_CONFIG
