# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License


class ShapeError(ValueError):
    """Raised when array dimensions, channels, or tile geometry are invalid."""


class BorrowError(RuntimeError):
    """Raised when a view or raster access conflicts with a live view."""
