# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

import numpy as np

from numpy.typing import DTypeLike
from PIL import Image

from tessera.error import ShapeError
from tessera.image import GrayAlpha, Raster, RGB, RGBA

PIL_MODES: dict[str, type[Raster]] = {
    cls.config.pil_mode: cls for cls in (GrayAlpha, RGB, RGBA)
}


def to_float(raster: Raster, dtype: DTypeLike = np.float32) -> Raster:
    """Convert a raster to normalized floating point components.

    Parameters
    ----------
    raster : Raster
        Input raster. 8-bit components are scaled to [0, 1]; float components
        are cast without scaling.
    dtype : DTypeLike
        Output floating point type.

    Returns
    -------
    Raster
        A new raster of the same format and shape.
    """
    if not np.issubdtype(np.dtype(dtype), np.floating):
        raise TypeError("'dtype' must be a floating point type.")

    data = raster.to_numpy()
    if np.issubdtype(data.dtype, np.floating):
        return type(raster)(data.astype(dtype))

    if data.dtype != np.uint8:
        raise TypeError("'raster' must have uint8 or float components.")

    return type(raster)((data / 255.0).astype(dtype))


def to_u8(raster: Raster) -> Raster:
    """Convert a raster to 8-bit components.

    Float components are clipped to [0, 1], scaled to [0, 255], and rounded.
    Integer components are clipped to [0, 255].

    Parameters
    ----------
    raster : Raster
        Input raster.

    Returns
    -------
    Raster
        A new uint8 raster of the same format and shape.
    """
    data = raster.to_numpy()
    if np.issubdtype(data.dtype, np.floating):
        data = np.rint(np.clip(data, 0.0, 1.0) * 255.0)

    return type(raster)(np.clip(data, 0, 255).astype(np.uint8))


def to_pil(raster: Raster) -> Image.Image:
    """Return the raster as a Pillow image.

    Float rasters are converted with ``to_u8`` first.

    Parameters
    ----------
    raster : Raster
        A GrayAlpha, RGB, or RGBA raster.

    Returns
    -------
    Image.Image
        Image in 'LA', 'RGB', or 'RGBA' mode.
    """
    if raster.config is None or raster.config.pil_mode is None:
        raise ShapeError(
            f"'{type(raster).__name__}' has no matching Pillow mode. Must be one "
            f"of: {sorted(PIL_MODES)}."
        )

    if raster.dtype != np.uint8:
        raster = to_u8(raster)

    return Image.fromarray(raster.to_numpy())


def from_pil(image: Image.Image) -> Raster:
    """Create a uint8 raster from a Pillow image.

    Parameters
    ----------
    image : Image.Image
        Image in 'LA', 'RGB', or 'RGBA' mode.

    Returns
    -------
    Raster
        A GrayAlpha, RGB, or RGBA raster.
    """
    if not isinstance(image, Image.Image):
        raise TypeError("'image' must be of type PIL.Image.Image.")

    if image.mode not in PIL_MODES:
        raise ShapeError(
            f"Image mode '{image.mode}' is not supported. Must be one of: "
            f"{sorted(PIL_MODES)}."
        )

    return PIL_MODES[image.mode](np.asarray(image))
