"""
Functions for reading and writing rasters and for preparing stations from `GeoDataFrames`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

import geopandas as gpd
import numpy as np
import numpy.typing as npt
import rasterio
from pyproj import CRS
from rasterio.transform import Affine

from vistagrid import config, structures

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _prepare_path(out_path: Union[str, Path]) -> Path:
    """
    Prepare an output path for writing TIFF data.
    """
    write_path = Path(out_path)
    if not write_path.parent.exists():
        raise ValueError(f"Directory {write_path.parent.resolve()} does not exist")
    if write_path.is_dir():
        raise IOError("Specified write path is a directory but should be a file name")
    return write_path.with_suffix(".tif")


def raster_grid_from_transform(
    values: npt.ArrayLike, transform: Affine, novalue: Optional[float] = None
) -> structures.RasterGrid:
    """
    Prepare a [`RasterGrid`](/structures#rastergrid) from an array and a `rasterio` affine transform.

    Parameters
    ----------
    values: ndarray
        A two dimensional array of cell values.
    transform: Affine
        A north-up `rasterio` / `affine` transform.
    novalue: float
        The no-data sentinel. `config.DEFAULT_NOVALUE` if `None`.

    Returns
    -------
    structures.RasterGrid
        A `RasterGrid` instance.

    """
    if transform.b != 0 or transform.d != 0:
        raise ValueError("Rotated or sheared raster transforms are not supported.")
    if transform.a <= 0 or transform.e >= 0:
        raise ValueError("Raster transforms must be north-up, with a positive cell width and a negative cell height.")
    if novalue is None:
        novalue = config.DEFAULT_NOVALUE
    values_arr = np.ascontiguousarray(values, dtype=np.float64)
    raster_grid = structures.RasterGrid(
        values_arr, float(novalue), float(transform.c), float(transform.f), float(transform.a), float(-transform.e)
    )
    raster_grid.validate()
    return raster_grid


def read_dem(dem_path: Union[str, Path], band: int = 1) -> tuple[structures.RasterGrid, Any]:
    """
    Read a digital elevation model.

    Parameters
    ----------
    dem_path: str | Path
        Path to a raster file readable by `rasterio`.
    band: int
        The band to read. 1 by default.

    Returns
    -------
    raster_grid: structures.RasterGrid
        The elevations. The raster's nodata value is used as the no-data sentinel, else `config.DEFAULT_NOVALUE`.
    crs: rasterio.crs.CRS
        The raster's coordinate reference system, or `None` if it has none.

    """
    with rasterio.open(str(dem_path)) as src:
        values = src.read(band)
        transform = src.transform
        crs = src.crs
        novalue = src.nodata
    if novalue is None:
        logger.info(f"No nodata value declared by {dem_path}, using {config.DEFAULT_NOVALUE}.")
    return raster_grid_from_transform(values, transform, novalue), crs


def write_raster(out_path: Union[str, Path], raster_grid: structures.RasterGrid, crs: Optional[Any] = None) -> Path:
    """
    Write a [`RasterGrid`](/structures#rastergrid) to a single band float64 GeoTIFF.

    Parameters
    ----------
    out_path: str | Path
        The output path. A `.tif` suffix is applied. The parent directory must exist.
    raster_grid: structures.RasterGrid
        The raster to write. Its no-data value is declared as the GeoTIFF's nodata value.
    crs: Any
        An optional coordinate reference system to assign.

    Returns
    -------
    Path
        The path written to.

    """
    write_path = _prepare_path(out_path)
    transform = Affine(raster_grid.x_res, 0.0, raster_grid.x_origin, 0.0, -raster_grid.y_res, raster_grid.y_origin)
    with rasterio.open(
        str(write_path.resolve()),
        "w",
        driver="GTiff",
        height=raster_grid.rows,
        width=raster_grid.cols,
        count=1,
        dtype=np.float64,
        crs=crs,
        transform=transform,
        nodata=raster_grid.novalue,
    ) as dst:
        dst.write(raster_grid.values, 1)
    return write_path


def station_map_from_gdf(
    stations_gdf: gpd.GeoDataFrame,
    height_field: str = config.DEFAULT_HEIGHT_FIELD,
    crs: Optional[Any] = None,
) -> structures.StationMap:
    """
    Prepare a [`StationMap`](/structures#stationmap) from a `GeoDataFrame` of station points.

    Parameters
    ----------
    stations_gdf: GeoDataFrame
        A [`GeoDataFrame`](https://geopandas.org/en/stable/docs/user_guide/data_structures.html#geodataframe) of
        point geometries.
    height_field: str
        The column holding each station's height above the terrain. "elev" by default.
    crs: Any
        The coordinate reference system the stations are expected in. If provided, and if `stations_gdf` declares a
        CRS, the two must match.

    Returns
    -------
    structures.StationMap
        A `StationMap` with one station per row of `stations_gdf`, in the same order.

    """
    if len(stations_gdf) == 0:
        raise ValueError("The stations GeoDataFrame is empty.")
    if height_field not in stations_gdf.columns:
        raise ValueError(f"Height field '{height_field}' not found in the stations GeoDataFrame.")
    if not np.all(stations_gdf.geometry.geom_type == "Point"):
        raise ValueError("Stations must be represented by Point geometries.")
    if crs is not None and stations_gdf.crs is not None:
        if not CRS.from_user_input(crs).equals(CRS.from_user_input(stations_gdf.crs), ignore_axis_order=True):
            raise ValueError(
                f"Stations CRS {stations_gdf.crs} does not match the raster CRS {crs}. Please reproject the stations."
            )
    station_map = structures.StationMap(len(stations_gdf))
    station_map.xs = np.array(stations_gdf.geometry.x, dtype=np.float64)
    station_map.ys = np.array(stations_gdf.geometry.y, dtype=np.float64)
    station_map.heights = np.array(stations_gdf[height_field], dtype=np.float64)
    station_map.validate()
    return station_map
