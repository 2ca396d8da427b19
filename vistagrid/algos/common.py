from __future__ import annotations

import numpy as np
from numba import njit  # type: ignore


@njit(cache=True, nogil=True)
def is_novalue(value: float, novalue: float) -> bool:
    """Whether a value matches the no-data sentinel. NaN is always treated as no-data."""
    if np.isnan(value):
        return True
    return value == novalue


@njit(cache=True, nogil=True)
def cell_centre(
    col: int,
    row: int,
    x_origin: float,
    y_origin: float,
    x_res: float,
    y_res: float,
) -> tuple[float, float]:
    """World coordinates of a cell's centre. The origin is the upper-left corner and rows increase southwards."""
    return x_origin + (col + 0.5) * x_res, y_origin - (row + 0.5) * y_res


@njit(cache=True, nogil=True)
def cell_index(
    x: float,
    y: float,
    x_origin: float,
    y_origin: float,
    x_res: float,
    y_res: float,
) -> tuple[int, int]:
    """Column and row of the cell containing a world coordinate. May fall outside the grid."""
    col = int(np.floor((x - x_origin) / x_res))
    row = int(np.floor((y_origin - y) / y_res))
    return col, row
