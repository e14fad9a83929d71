# Copyright (c) 2025, Tom Ouellette
# Licensed under the GNU GPLv3 License

import numpy as np

from typing import Tuple, Any, Sequence
from types import EllipsisType

# A general numeric type for integer and floating point types
Numeric = int | float | np.integer[Any] | np.floating[Any]

# Type alias for a single element of an indexing key
IndexElement = int | slice | EllipsisType | None

# Type alias for single indices, slices, Ellipsis, and associated tuples.
IndexKey = IndexElement | Tuple[IndexElement, ...]

# An (x, y) coordinate, (width, height) size, or (col, row) tile index
Pair = Tuple[int, int]

# A pixel given as any sequence of components
Pixel = Sequence[Numeric] | np.ndarray
