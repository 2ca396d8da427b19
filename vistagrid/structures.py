"""
The `structures` module defines data structures used by the lower-level `vistagrid` API.

The data structures defined in this module are created automatically by the user-facing API, e.g. when reading a
DEM with [`io.read_dem`](/tools/io#read-dem) or when preparing stations from a `GeoDataFrame`. It is therefore not
necessary to create these structures directly unless interaction with the lower-level API is intentional.
"""
from __future__ import annotations

from typing import Any

import numpy as np
import numpy.typing as npt
from numba.core import types
from numba.experimental import jitclass  # type: ignore

from vistagrid.algos import checks, common

raster_grid_spec: list[tuple[str, Any]] = [
    ("values", types.float64[:, :]),
    ("novalue", types.float64),
    ("x_origin", types.float64),
    ("y_origin", types.float64),
    ("x_res", types.float64),
    ("y_res", types.float64),
]


@jitclass(raster_grid_spec)
class RasterGrid:
    """
    `RasterGrid` structure representing a single band raster on a regular, north-up grid.

    Values are indexed as `values[row, col]`. The origin is the upper-left corner of the grid: columns increase
    eastwards and rows increase southwards.
    """

    values: npt.NDArray[np.float64]
    """Cell values, e.g. elevations."""
    novalue: float
    """The no-data sentinel. Cells holding this value, or `NaN`, are excluded from computations."""
    x_origin: float
    """`x` coordinate of the upper-left corner."""
    y_origin: float
    """`y` coordinate of the upper-left corner."""
    x_res: float
    """Cell width."""
    y_res: float
    """Cell height, as a positive number."""

    def __init__(
        self,
        values: npt.NDArray[np.float64],
        novalue: float,
        x_origin: float,
        y_origin: float,
        x_res: float,
        y_res: float,
    ):
        """
        Instance a `RasterGrid`.

        Parameters
        ----------
        values: ndarray[float64]
            A two dimensional array of cell values.
        novalue: float
            The no-data sentinel.
        x_origin: float
            `x` coordinate of the upper-left corner.
        y_origin: float
            `y` coordinate of the upper-left corner.
        x_res: float
            Cell width.
        y_res: float
            Cell height, as a positive number.

        """
        self.values = values
        self.novalue = novalue
        self.x_origin = x_origin
        self.y_origin = y_origin
        self.x_res = x_res
        self.y_res = y_res

    @property
    def rows(self):
        """Number of rows."""
        return self.values.shape[0]

    @property
    def cols(self):
        """Number of columns."""
        return self.values.shape[1]

    def in_bounds(self, col: int, row: int) -> bool:
        """Whether a cell index falls within the grid."""
        return col >= 0 and col < self.values.shape[1] and row >= 0 and row < self.values.shape[0]

    def is_novalue(self, value: float) -> bool:
        """Whether a value is this grid's no-data sentinel."""
        return common.is_novalue(value, self.novalue)

    def get(self, col: int, row: int) -> float:
        """
        Return the value for a given cell, or the no-data sentinel if the cell is outside the grid.

        Parameters
        ----------
        col: int
            Column index.
        row: int
            Row index.

        Returns
        -------
        value: float
            The cell value.

        """
        if not self.in_bounds(col, row):
            return self.novalue
        return self.values[row, col]

    def cell_x_y(self, col: int, row: int) -> tuple[float, float]:
        """World coordinates for the centre of a cell."""
        return common.cell_centre(col, row, self.x_origin, self.y_origin, self.x_res, self.y_res)

    def col_row(self, x: float, y: float) -> tuple[int, int]:
        """Column and row for the cell containing a world coordinate."""
        return common.cell_index(x, y, self.x_origin, self.y_origin, self.x_res, self.y_res)

    def sample(self, x: float, y: float) -> float:
        """Value of the cell containing a world coordinate. No-data if the coordinate is outside the grid."""
        col, row = self.col_row(x, y)
        return self.get(col, row)

    def validate(self):
        """Validate this `RasterGrid` instance."""
        checks.check_raster(self.values, self.x_res, self.y_res)
        if not np.isfinite(self.x_origin) or not np.isfinite(self.y_origin):
            raise ValueError("Non finite raster origin encountered.")


station_map_spec: list[tuple[str, Any]] = [
    ("xs", types.float64[:]),
    ("ys", types.float64[:]),
    ("heights", types.float64[:]),
]


@jitclass(station_map_spec)
class StationMap:
    """
    `StationMap` structure representing observer stations.

    Each attribute contains a `numpy` array with indices corresponding to the input order of the stations.
    """

    xs: npt.NDArray[np.float64]
    """`x` coordinates."""
    ys: npt.NDArray[np.float64]
    """`y` coordinates."""
    heights: npt.NDArray[np.float64]
    """Observer heights above the terrain."""

    # Alternative to length dunder - which is not yet supported by jitclass.
    @property
    def count(self):
        """The number of stations represented by the instanced `StationMap`."""
        return len(self.xs)

    def __init__(self, stations_n: int):
        """
        Instance a `StationMap`.

        Parameters
        ----------
        stations_n: int
            The number of stations to be contained by this `StationMap` instance.

        """
        self.xs = np.full(stations_n, np.nan, dtype=np.float64)
        self.ys = np.full(stations_n, np.nan, dtype=np.float64)
        self.heights = np.full(stations_n, 0.0, dtype=np.float64)

    def set_station(self, station_idx: int, x: float, y: float, height: float):
        """Set the coordinates and observer height for a station."""
        self.xs[station_idx] = x
        self.ys[station_idx] = y
        self.heights[station_idx] = height

    def x_y(self, station_idx: int) -> npt.NDArray[np.float64]:
        """Return the `x` and `y` coordinates for a given station index."""
        return np.array([self.xs[station_idx], self.ys[station_idx]], dtype=np.float64)

    def validate(self):
        """Validate this `StationMap` instance."""
        checks.check_stations(self.xs, self.ys, self.heights)
