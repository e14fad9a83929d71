# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

import numpy as np

from numpy.typing import ArrayLike, NDArray
from PIL import ImageColor
from typing import Sequence


def _parse_colour(colour: str | Sequence[float]) -> tuple[float, float, float, float]:
    """Parse a colour string or 3/4-component tuple into normalized RGBA."""
    if isinstance(colour, str):
        try:
            components = [c / 255.0 for c in ImageColor.getrgb(colour)]
        except ValueError:
            raise ValueError(f"'{colour}' is not a valid colour string.") from None
    else:
        components = [float(c) for c in colour]
        if any(c < 0.0 or c > 1.0 for c in components):
            raise ValueError("Colour components must lie in [0, 1].")

    if len(components) == 3:
        components.append(1.0)

    if len(components) != 4:
        raise ValueError("Colours must have 3 or 4 components.")

    return tuple(components)


class ColourMap:
    """Maps scalar positions to colours by interpolating between anchors.

    The anchor table is built once and never changes. Components are
    interpolated linearly and independently; no colour space conversion or
    gamma handling is applied.

    Parameters
    ----------
    colours : Sequence[str | Sequence[float]]
        Anchor colours as colour strings (e.g. '#FF0000') or RGB/RGBA tuples
        with components in [0, 1].
    positions : None | Sequence[float]
        Anchor positions in non-decreasing order. Evenly spaced on [0, 1] if
        not provided.

    Examples
    --------
    >>> cmap = ColourMap(["#FF0000", "#00FF00", "#0000FF"])
    >>> cmap.sample(0.25)
    array([0.5, 0.5, 0. , 1. ])
    """

    def __init__(
        self,
        colours: Sequence[str | Sequence[float]],
        positions: None | Sequence[float] = None,
    ):
        if len(colours) == 0:
            raise ValueError("'colours' must contain at least one anchor.")

        anchors = np.array([_parse_colour(c) for c in colours], dtype=np.float64)

        if positions is None:
            positions = np.linspace(0.0, 1.0, len(anchors))
        else:
            positions = np.array(positions, dtype=np.float64)

        if positions.shape != (len(anchors),):
            raise ValueError("'positions' must have one entry per colour.")

        if np.any(np.diff(positions) < 0):
            raise ValueError("'positions' must be sorted in non-decreasing order.")

        positions.flags.writeable = False
        anchors.flags.writeable = False
        self._positions = positions
        self._colours = anchors

    def __repr__(self):
        return f"ColourMap(anchors={len(self)})"

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def positions(self) -> NDArray[np.float64]:
        return self._positions

    @property
    def colours(self) -> NDArray[np.float64]:
        return self._colours

    def sample(self, x: ArrayLike) -> NDArray[np.float64]:
        """Sample the colour map.

        Parameters
        ----------
        x : ArrayLike
            A position or array of positions. Positions outside the anchor
            range are clamped to the first or last anchor colour.

        Returns
        -------
        NDArray[np.float64]
            RGBA components with shape ``np.shape(x) + (4,)``.
        """
        x = np.asarray(x, dtype=np.float64)
        return np.stack(
            [np.interp(x, self._positions, self._colours[:, i]) for i in range(4)],
            axis=-1,
        )
