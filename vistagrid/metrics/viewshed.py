"""
Cumulative viewshed analysis.

Counts, for every cell of an elevation raster, the number of stations from which the cell is visible.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

import geopandas as gpd
import numpy as np
import numpy.typing as npt
from tqdm import tqdm

from vistagrid import config, structures
from vistagrid.algos import viewshed
from vistagrid.tools import io

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _counts_grid(raster_grid: structures.RasterGrid, counts: npt.NDArray[np.float64]) -> structures.RasterGrid:
    return structures.RasterGrid(
        counts,
        raster_grid.novalue,
        raster_grid.x_origin,
        raster_grid.y_origin,
        raster_grid.x_res,
        raster_grid.y_res,
    )


def _log_skipped(station_map: structures.StationMap, station_idx: int):
    logger.warning(
        f"Ignoring station {station_idx} at ({station_map.xs[station_idx]}, {station_map.ys[station_idx]}) "
        "since no elevation value is available."
    )


def compute_viewshed(
    raster_grid: structures.RasterGrid,
    station_map: structures.StationMap,
    cancel_event: Optional[threading.Event] = None,
    parallel: bool = False,
) -> structures.RasterGrid:
    """
    Compute a cumulative viewshed from a set of stations.

    Each station is placed on the terrain at its `x`, `y` coordinates, with the observer raised above the terrain by
    the station's height. Cells are counted once for every station from which they are visible. Terrain occlusion is
    resolved with an outward sweep from each station along the grid axes and the eight octants between them, which
    approximates sight lines by interpolating between already resolved cells.

    Parameters
    ----------
    raster_grid: structures.RasterGrid
        A [`structures.RasterGrid`](/structures#rastergrid) of terrain elevations.
    station_map: structures.StationMap
        A [`structures.StationMap`](/structures#stationmap) of observer stations. Stations falling outside the grid or
        on no-data cells are skipped with a warning.
    cancel_event: threading.Event
        An optional event checked before each station is processed. If set, the counts accumulated so far are
        returned. Not checked when `parallel` is `True`.
    parallel: bool
        Whether to process stations in parallel. Each station then produces its own visibility mask and the masks are
        summed afterwards, which requires memory for one mask per station.

    Returns
    -------
    structures.RasterGrid
        A `RasterGrid` with the same shape, origin and no-data value as `raster_grid`. Each cell holds the number of
        stations from which it is visible, or the no-data value if no station sees it.

    """
    if raster_grid is None:
        raise ValueError("An elevation RasterGrid is required.")
    if station_map is None or station_map.count == 0:
        raise ValueError("At least one station is required.")
    raster_grid.validate()
    station_map.validate()
    values = raster_grid.values
    novalue = raster_grid.novalue
    x_origin = raster_grid.x_origin
    y_origin = raster_grid.y_origin
    x_res = raster_grid.x_res
    y_res = raster_grid.y_res
    station_xs = station_map.xs
    station_ys = station_map.ys
    station_cols, station_rows, station_zs, valid = viewshed.resolve_stations(
        values, novalue, x_origin, y_origin, x_res, y_res, station_xs, station_ys, station_map.heights
    )
    valid_n = int(np.sum(valid))
    logger.info(f"Computing viewshed for {valid_n} of {station_map.count} stations.")
    if parallel:
        for station_idx in np.flatnonzero(~valid):
            _log_skipped(station_map, int(station_idx))
        masks = viewshed.station_visibility_masks(
            values,
            novalue,
            x_origin,
            y_origin,
            x_res,
            y_res,
            station_xs[valid],
            station_ys[valid],
            station_zs[valid],
            station_cols[valid],
            station_rows[valid],
        )
        counts = viewshed.sum_visibility_masks(masks, novalue)
    else:
        counts = np.full(values.shape, novalue, dtype=np.float64)
        for station_idx in tqdm(range(station_map.count), disable=config.QUIET_MODE):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"Viewshed cancelled before station {station_idx}, returning partial counts.")
                break
            if not valid[station_idx]:
                _log_skipped(station_map, station_idx)
                continue
            if config.DEBUG_MODE:
                logger.info(f"Station {station_idx} at col {station_cols[station_idx]}, row {station_rows[station_idx]}")
            viewshed.station_visibility(
                values,
                novalue,
                x_origin,
                y_origin,
                x_res,
                y_res,
                station_xs[station_idx],
                station_ys[station_idx],
                station_zs[station_idx],
                station_cols[station_idx],
                station_rows[station_idx],
                counts,
            )
    if valid_n == 0:
        logger.warning("No station has an elevation value: the viewshed is empty.")
    return _counts_grid(raster_grid, counts)


def compute_viewshed_from_gdf(
    stations_gdf: gpd.GeoDataFrame,
    raster_grid: structures.RasterGrid,
    height_field: str = config.DEFAULT_HEIGHT_FIELD,
    crs: Optional[Any] = None,
    cancel_event: Optional[threading.Event] = None,
    parallel: bool = False,
) -> structures.RasterGrid:
    """
    Compute a cumulative viewshed for stations provided as a `GeoDataFrame`.

    Parameters
    ----------
    stations_gdf: GeoDataFrame
        A [`GeoDataFrame`](https://geopandas.org/en/stable/docs/user_guide/data_structures.html#geodataframe) of point
        geometries in the same coordinate reference system as `raster_grid`.
    raster_grid: structures.RasterGrid
        A [`structures.RasterGrid`](/structures#rastergrid) of terrain elevations.
    height_field: str
        The column holding each station's height above the terrain. "elev" by default.
    crs: Any
        The coordinate reference system of `raster_grid`, if known. Stations in a different CRS raise a
        `ValueError`: reprojection is left to the caller.
    cancel_event: threading.Event
        See [`compute_viewshed`](#compute-viewshed).
    parallel: bool
        See [`compute_viewshed`](#compute-viewshed).

    Returns
    -------
    structures.RasterGrid
        The visibility counts.

    """
    station_map = io.station_map_from_gdf(stations_gdf, height_field=height_field, crs=crs)
    return compute_viewshed(raster_grid, station_map, cancel_event=cancel_event, parallel=parallel)


def viewshed_from_dem_file(
    dem_path: Union[str, Path],
    stations_gdf: gpd.GeoDataFrame,
    out_path: Union[str, Path],
    height_field: str = config.DEFAULT_HEIGHT_FIELD,
    parallel: bool = False,
) -> structures.RasterGrid:
    """
    Run a cumulative viewshed on a DEM file and write the visibility counts to a GeoTIFF.

    Parameters
    ----------
    dem_path: str | Path
        Path to a single band elevation raster readable by `rasterio`.
    stations_gdf: GeoDataFrame
        Station points with a `height_field` column.
    out_path: str | Path
        Output path for the visibility counts GeoTIFF. The parent directory must exist.
    height_field: str
        The column holding each station's height above the terrain. "elev" by default.
    parallel: bool
        See [`compute_viewshed`](#compute-viewshed).

    Returns
    -------
    structures.RasterGrid
        The visibility counts, as written to `out_path`.

    """
    raster_grid, crs = io.read_dem(dem_path)
    counts = compute_viewshed_from_gdf(stations_gdf, raster_grid, height_field=height_field, crs=crs, parallel=parallel)
    io.write_raster(out_path, counts, crs)
    return counts
