"""
A collection of functions for the generation of mock data.

This module is intended for project development and writing code tests, but may otherwise be useful for demonstration
and utility purposes.
"""
from __future__ import annotations

from typing import Any, Optional

import geopandas as gpd
import numpy as np
import numpy.typing as npt

from vistagrid import config, structures

# UTM zone 30N coordinates
MOCK_X_ORIGIN = 700000.0
MOCK_Y_ORIGIN = 5720000.0
MOCK_RES = 10.0


def mock_flat_grid(
    rows: int = 11,
    cols: int = 11,
    elevation: float = 0.0,
    res: float = MOCK_RES,
    novalue: float = config.DEFAULT_NOVALUE,
) -> structures.RasterGrid:
    """
    Generate a flat `RasterGrid` for testing or experimentation purposes.

    Parameters
    ----------
    rows: int
        Number of rows, by default 11.
    cols: int
        Number of columns, by default 11.
    elevation: float
        The elevation of every cell, by default 0.
    res: float
        The cell width and height, by default 10.
    novalue: float
        The no-data sentinel, by default `config.DEFAULT_NOVALUE`.

    Returns
    -------
    structures.RasterGrid
        A `RasterGrid` with its upper-left corner at `MOCK_X_ORIGIN`, `MOCK_Y_ORIGIN`.

    """
    values = np.full((rows, cols), elevation, dtype=np.float64)
    return structures.RasterGrid(values, novalue, MOCK_X_ORIGIN, MOCK_Y_ORIGIN, res, res)


def mock_peak_grid() -> structures.RasterGrid:
    """
    Generate a 7x7 flat `RasterGrid` with a single peak of 10 at its centre cell.

    Notes
    -----
    ```python
    # 0  0  0  0  0  0  0
    # 0  0  0  0  0  0  0
    # 0  0  0  0  0  0  0
    # 0  0  0 10  0  0  0
    # 0  0  0  0  0  0  0
    # 0  0  0  0  0  0  0
    # 0  0  0  0  0  0  0
    ```

    """
    values = np.zeros((7, 7), dtype=np.float64)
    values[3, 3] = 10.0
    return structures.RasterGrid(values, -9999.0, MOCK_X_ORIGIN, MOCK_Y_ORIGIN, MOCK_RES, MOCK_RES)


def mock_ridge_grid() -> structures.RasterGrid:
    """
    Generate an 11x11 flat `RasterGrid` crossed north to south by a wall of height 20 along column 7.

    Cells to the east of the wall are hidden from low stations to the west of it.
    """
    values = np.zeros((11, 11), dtype=np.float64)
    values[:, 7] = 20.0
    return structures.RasterGrid(values, config.DEFAULT_NOVALUE, MOCK_X_ORIGIN, MOCK_Y_ORIGIN, MOCK_RES, MOCK_RES)


def mock_random_grid(
    random_seed: int = 0,
    rows: int = 25,
    cols: int = 25,
    val_min: float = 0.0,
    val_max: float = 50.0,
    nodata_fraction: float = 0.0,
) -> structures.RasterGrid:
    """
    Generate a `RasterGrid` of random elevations for testing or experimentation purposes.

    Parameters
    ----------
    random_seed: int
        The random seed, by default 0.
    rows: int
        Number of rows, by default 25.
    cols: int
        Number of columns, by default 25.
    val_min: float
        The (inclusive) minimum elevation.
    val_max: float
        The (exclusive) maximum elevation.
    nodata_fraction: float
        The approximate fraction of cells to set to the no-data value, by default 0.

    Returns
    -------
    structures.RasterGrid
        A `RasterGrid` using `config.DEFAULT_NOVALUE` as its no-data sentinel.

    """
    if nodata_fraction < 0 or nodata_fraction >= 1:
        raise ValueError("The no-data fraction must be in the range [0, 1).")
    rng = np.random.default_rng(seed=random_seed)
    values: npt.NDArray[np.float64] = rng.uniform(val_min, val_max, size=(rows, cols))
    if nodata_fraction > 0:
        values[rng.random(size=(rows, cols)) < nodata_fraction] = config.DEFAULT_NOVALUE
    return structures.RasterGrid(values, config.DEFAULT_NOVALUE, MOCK_X_ORIGIN, MOCK_Y_ORIGIN, MOCK_RES, MOCK_RES)


def mock_station_map(
    raster_grid: structures.RasterGrid, cells: list[tuple[int, int]], height: float = 0.0
) -> structures.StationMap:
    """
    Generate a `StationMap` with stations placed at the centres of the given cells.

    Parameters
    ----------
    raster_grid: structures.RasterGrid
        The grid on which to place the stations.
    cells: list[tuple[int, int]]
        `(col, row)` cell indices, one per station.
    height: float
        The observer height applied to every station, by default 0.

    Returns
    -------
    structures.StationMap
        A `StationMap` with stations in the order of `cells`.

    """
    station_map = structures.StationMap(len(cells))
    for station_idx, (col, row) in enumerate(cells):
        x, y = raster_grid.cell_x_y(col, row)
        station_map.set_station(station_idx, x, y, height)
    return station_map


def mock_stations_gdf(
    raster_grid: structures.RasterGrid,
    cells: list[tuple[int, int]],
    height: float = 0.0,
    height_field: str = config.DEFAULT_HEIGHT_FIELD,
    crs: Optional[Any] = None,
) -> gpd.GeoDataFrame:
    """
    Generate a `GeoDataFrame` of station points placed at the centres of the given cells.

    Parameters
    ----------
    raster_grid: structures.RasterGrid
        The grid on which to place the stations.
    cells: list[tuple[int, int]]
        `(col, row)` cell indices, one per station.
    height: float
        The observer height assigned to every station, by default 0.
    height_field: str
        The name of the height column, by default "elev".
    crs: Any
        An optional coordinate reference system to assign.

    Returns
    -------
    GeoDataFrame
        A `GeoDataFrame` of points indexed by "station_key".

    """
    xs: list[float] = []
    ys: list[float] = []
    for col, row in cells:
        x, y = raster_grid.cell_x_y(col, row)
        xs.append(x)
        ys.append(y)
    stations_gdf = gpd.GeoDataFrame(
        {
            "station_key": np.arange(len(cells)),
            height_field: np.full(len(cells), height, dtype=np.float64),
            "geometry": gpd.points_from_xy(xs, ys),
        },
        crs=crs,
    )
    return stations_gdf.set_index("station_key")
