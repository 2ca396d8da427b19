from __future__ import annotations

import numpy as np
import numpy.typing as npt
from numba import njit


@njit(cache=True)
def check_raster(values: npt.NDArray[np.float64], x_res: float, y_res: float):
    """Checks the integrity of an elevation raster."""
    # other checks - e.g. checking for single dimensional arrays, are tricky with numba
    if not values.ndim == 2:
        raise ValueError("The elevation raster must be a two dimensional array.")
    if values.shape[0] == 0 or values.shape[1] == 0:
        raise ValueError("Zero size elevation raster.")
    if not np.isfinite(x_res) or not np.isfinite(y_res) or x_res <= 0 or y_res <= 0:
        raise ValueError("Raster resolutions must be finite and greater than zero.")


@njit(cache=True)
def check_stations(
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    heights: npt.NDArray[np.float64],
):
    """
    Checks the integrity of station arrays.

    Notes
    -----
    STATIONS:
    xs - x coordinates
    ys - y coordinates
    heights - observer heights above the terrain

    """
    # catch zero length station maps
    if len(xs) == 0:
        raise ValueError("No stations provided.")
    if len(ys) != len(xs) or len(heights) != len(xs):
        raise ValueError("Station x, y and height arrays are not the same length.")
    if not np.all(np.isfinite(xs)) or not np.all(np.isfinite(ys)):
        raise ValueError("Non finite station coordinate encountered.")
    if not np.all(np.isfinite(heights)):
        raise ValueError("Non finite station height encountered.")
