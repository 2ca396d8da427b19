"""
Cumulative viewshed kernels.

Visibility from a station is decided per cell by comparing the cell's view angle against the maximum view angle
encountered along the sight line from the station. The maximum view angles are propagated outwards from the station
along the four grid axes, and then through eight triangular octants between the axes, interpolating linearly between
the already resolved cells of the previous scan line. This replaces a ray per cell with a single outward sweep.

Octants are defined by the axis along which the scan lines advance and the direction in which each line grows away
from that axis. Columns increase eastwards and rows increase southwards.
"""
from __future__ import annotations

import numpy as np
import numpy.typing as npt
from numba import njit, prange  # type: ignore

from vistagrid import config
from vistagrid.algos import common

# (axis col step, axis row step, growth col step, growth row step)
OCTANTS: npt.NDArray[np.int_] = np.array(
    [
        [0, -1, 1, 0],  # north, growing east
        [0, -1, -1, 0],  # north, growing west
        [0, 1, -1, 0],  # south, growing west
        [0, 1, 1, 0],  # south, growing east
        [1, 0, 0, -1],  # east, growing north
        [1, 0, 0, 1],  # east, growing south
        [-1, 0, 0, 1],  # west, growing south
        [-1, 0, 0, -1],  # west, growing north
    ],
    dtype=np.int_,
)


@njit(cache=True, nogil=True)
def resolve_stations(
    values: npt.NDArray[np.float64],
    novalue: float,
    x_origin: float,
    y_origin: float,
    x_res: float,
    y_res: float,
    station_xs: npt.NDArray[np.float64],
    station_ys: npt.NDArray[np.float64],
    station_heights: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.int_], npt.NDArray[np.float64], npt.NDArray[np.bool_]]:
    """
    Locate stations on the grid and compute their observer elevations.

    A station is invalid where it falls outside the grid or on a no-data cell. Observer elevations are the sampled
    terrain elevation plus the station's height offset.
    """
    rows, cols = values.shape
    stations_n = len(station_xs)
    station_cols = np.full(stations_n, -1, dtype=np.int_)
    station_rows = np.full(stations_n, -1, dtype=np.int_)
    station_zs = np.full(stations_n, np.nan, dtype=np.float64)
    valid = np.full(stations_n, False, dtype=np.bool_)
    for station_idx in range(stations_n):
        col, row = common.cell_index(
            station_xs[station_idx], station_ys[station_idx], x_origin, y_origin, x_res, y_res
        )
        if col < 0 or col >= cols or row < 0 or row >= rows:
            continue
        elevation = values[row, col]
        if common.is_novalue(elevation, novalue):
            continue
        station_cols[station_idx] = col
        station_rows[station_idx] = row
        station_zs[station_idx] = elevation + station_heights[station_idx]
        valid[station_idx] = True
    return station_cols, station_rows, station_zs, valid


@njit(cache=True, nogil=True)
def view_angles(
    values: npt.NDArray[np.float64],
    novalue: float,
    x_origin: float,
    y_origin: float,
    x_res: float,
    y_res: float,
    station_x: float,
    station_y: float,
    station_z: float,
) -> npt.NDArray[np.float64]:
    """
    Compute the view angle from a station to every cell.

    The view angle is the elevation difference from the observer to the cell, divided by the horizontal distance
    between the station and the cell's centre, scaled by `config.ANGLE_SCALE`. No-data cells take the no-data value.
    A cell centred exactly on the station is level with the observer and takes a view angle of zero.
    """
    rows, cols = values.shape
    view_angle = np.full((rows, cols), novalue, dtype=np.float64)
    for row in range(rows):
        for col in range(cols):
            z = values[row, col]
            if common.is_novalue(z, novalue):
                continue
            cell_x, cell_y = common.cell_centre(col, row, x_origin, y_origin, x_res, y_res)
            dist = np.hypot(cell_x - station_x, cell_y - station_y)
            if dist == 0:
                view_angle[row, col] = 0.0
                continue
            view_angle[row, col] = (z - station_z) / dist * config.ANGLE_SCALE
    return view_angle


@njit(cache=True, nogil=True)
def axis_scan(
    view_angle: npt.NDArray[np.float64],
    max_view_angle: npt.NDArray[np.float64],
    novalue: float,
    station_col: int,
    station_row: int,
    col_step: int,
    row_step: int,
    col_end: int,
    row_end: int,
):
    """
    Propagate the running maximum view angle outwards along a grid axis, in place.

    The running maximum starts from the station's immediate neighbour in the direction of the scan. Cells from two
    steps away are then visited until the scan leaves the grid or reaches `col_end` / `row_end` (exclusive). No-data
    cells are neither written nor included in the running maximum.
    """
    rows, cols = view_angle.shape
    max_va = novalue
    next_col = station_col + col_step
    next_row = station_row + row_step
    if next_col >= 0 and next_col < cols and next_row >= 0 and next_row < rows:
        max_va = view_angle[next_row, next_col]
    col = station_col + 2 * col_step
    row = station_row + 2 * row_step
    while col >= 0 and col < col_end and row >= 0 and row < row_end:
        va = view_angle[row, col]
        if not common.is_novalue(va, novalue):
            if common.is_novalue(max_va, novalue) or va > max_va:
                max_va = va
            max_view_angle[row, col] = max_va
        col += col_step
        row += row_step


@njit(cache=True, nogil=True)
def octant_scan(
    view_angle: npt.NDArray[np.float64],
    max_view_angle: npt.NDArray[np.float64],
    novalue: float,
    station_col: int,
    station_row: int,
    axis_col: int,
    axis_row: int,
    grow_col: int,
    grow_row: int,
):
    """
    Propagate maximum view angles through a triangular octant, in place.

    Scan lines advance along the seed axis starting two steps from the station. On the line `vert_count` steps out,
    up to `vert_count` cells are visited moving away from the axis. Each valid cell's predicted horizon interpolates
    the maximum view angles of the two cells on the previous line bracketing its sight line, weighted by
    `horiz_count / vert_count`, where `horiz_count` counts the valid cells visited so far on the line. The cell on
    the diagonal takes the inner previous-line value directly. A line stops at the first cell outside the grid.
    """
    rows, cols = view_angle.shape
    vert_count = 2
    while True:
        line_col = station_col + vert_count * axis_col
        line_row = station_row + vert_count * axis_row
        if line_col < 0 or line_col >= cols or line_row < 0 or line_row >= rows:
            break
        horiz_count = 0
        for offset in range(1, vert_count + 1):
            col = line_col + offset * grow_col
            row = line_row + offset * grow_row
            if col < 0 or col >= cols or row < 0 or row >= rows:
                break
            va = view_angle[row, col]
            if common.is_novalue(va, novalue):
                continue
            horiz_count += 1
            # previous line: one step back towards the station along the axis
            behind_col = col - axis_col
            behind_row = row - axis_row
            inner = max_view_angle[behind_row - grow_row, behind_col - grow_col]
            if horiz_count == vert_count:
                tva = inner
            else:
                behind = max_view_angle[behind_row, behind_col]
                tva = behind + horiz_count / vert_count * (inner - behind)
            if tva > va:
                max_view_angle[row, col] = tva
            else:
                max_view_angle[row, col] = va
        vert_count += 1


@njit(cache=True, nogil=True)
def propagate_horizon(
    view_angle: npt.NDArray[np.float64],
    novalue: float,
    station_col: int,
    station_row: int,
) -> npt.NDArray[np.float64]:
    """
    Compute the maximum view angle field for a station.

    The 3x3 block around the station is seeded directly from the view angles. The running maximum is then swept
    outwards along the north, south, east and west axes, followed by the eight octants. The east axis scan stops
    short of the last column. Cells not reached by any scan keep the no-data value.
    """
    rows, cols = view_angle.shape
    max_view_angle = np.full((rows, cols), novalue, dtype=np.float64)
    for row in range(station_row - 1, station_row + 2):
        for col in range(station_col - 1, station_col + 2):
            if col >= 0 and col < cols and row >= 0 and row < rows:
                max_view_angle[row, col] = view_angle[row, col]
    # north, south, east, west
    axis_scan(view_angle, max_view_angle, novalue, station_col, station_row, 0, -1, cols, rows)
    axis_scan(view_angle, max_view_angle, novalue, station_col, station_row, 0, 1, cols, rows)
    axis_scan(view_angle, max_view_angle, novalue, station_col, station_row, 1, 0, cols - 1, rows)
    axis_scan(view_angle, max_view_angle, novalue, station_col, station_row, -1, 0, cols, rows)
    for octant_idx in range(OCTANTS.shape[0]):
        octant_scan(
            view_angle,
            max_view_angle,
            novalue,
            station_col,
            station_row,
            OCTANTS[octant_idx, 0],
            OCTANTS[octant_idx, 1],
            OCTANTS[octant_idx, 2],
            OCTANTS[octant_idx, 3],
        )
    return max_view_angle


@njit(cache=True, nogil=True)
def accumulate_visibility(
    view_angle: npt.NDArray[np.float64],
    max_view_angle: npt.NDArray[np.float64],
    counts: npt.NDArray[np.float64],
    novalue: float,
):
    """
    Increment the visibility counts, in place, for cells visible from a station.

    A cell is visible where its view angle is defined and at least as large as the maximum view angle propagated to
    it. Counts start from the no-data value and are set to zero before their first increment.
    """
    rows, cols = view_angle.shape
    for row in range(rows):
        for col in range(cols):
            va = view_angle[row, col]
            if common.is_novalue(va, novalue):
                continue
            if max_view_angle[row, col] <= va:
                if common.is_novalue(counts[row, col], novalue):
                    counts[row, col] = 0
                counts[row, col] += 1


@njit(cache=True, nogil=True)
def visibility_mask(
    view_angle: npt.NDArray[np.float64],
    max_view_angle: npt.NDArray[np.float64],
    novalue: float,
) -> npt.NDArray[np.uint8]:
    """Binary visibility for a single station: 1 where visible, otherwise 0."""
    rows, cols = view_angle.shape
    mask = np.zeros((rows, cols), dtype=np.uint8)
    for row in range(rows):
        for col in range(cols):
            va = view_angle[row, col]
            if common.is_novalue(va, novalue):
                continue
            if max_view_angle[row, col] <= va:
                mask[row, col] = 1
    return mask


@njit(cache=True, nogil=True)
def station_visibility(
    values: npt.NDArray[np.float64],
    novalue: float,
    x_origin: float,
    y_origin: float,
    x_res: float,
    y_res: float,
    station_x: float,
    station_y: float,
    station_z: float,
    station_col: int,
    station_row: int,
    counts: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Accumulate the visibility for a single station into `counts`.

    Returns the station's view angle and maximum view angle fields.
    """
    view_angle = view_angles(values, novalue, x_origin, y_origin, x_res, y_res, station_x, station_y, station_z)
    max_view_angle = propagate_horizon(view_angle, novalue, station_col, station_row)
    accumulate_visibility(view_angle, max_view_angle, counts, novalue)
    return view_angle, max_view_angle


@njit(cache=True, nogil=True, parallel=True)
def station_visibility_masks(
    values: npt.NDArray[np.float64],
    novalue: float,
    x_origin: float,
    y_origin: float,
    x_res: float,
    y_res: float,
    station_xs: npt.NDArray[np.float64],
    station_ys: npt.NDArray[np.float64],
    station_zs: npt.NDArray[np.float64],
    station_cols: npt.NDArray[np.int_],
    station_rows: npt.NDArray[np.int_],
) -> npt.NDArray[np.uint8]:
    """
    Compute a binary visibility mask per station, in parallel.

    Each station writes only to its own mask, so no shared state is mutated across threads. All stations are
    expected to be valid, see `resolve_stations`.
    """
    rows, cols = values.shape
    stations_n = len(station_xs)
    masks = np.zeros((stations_n, rows, cols), dtype=np.uint8)
    for station_idx in prange(stations_n):  # pylint: disable=not-an-iterable
        view_angle = view_angles(
            values,
            novalue,
            x_origin,
            y_origin,
            x_res,
            y_res,
            station_xs[station_idx],
            station_ys[station_idx],
            station_zs[station_idx],
        )
        max_view_angle = propagate_horizon(
            view_angle, novalue, station_cols[station_idx], station_rows[station_idx]
        )
        masks[station_idx] = visibility_mask(view_angle, max_view_angle, novalue)
    return masks


@njit(cache=True, nogil=True)
def sum_visibility_masks(masks: npt.NDArray[np.uint8], novalue: float) -> npt.NDArray[np.float64]:
    """Sum per-station masks into visibility counts. Cells never seen take the no-data value."""
    stations_n, rows, cols = masks.shape
    counts = np.full((rows, cols), novalue, dtype=np.float64)
    for row in range(rows):
        for col in range(cols):
            seen = 0
            for station_idx in range(stations_n):
                seen += masks[station_idx, row, col]
            if seen > 0:
                counts[row, col] = seen
    return counts
