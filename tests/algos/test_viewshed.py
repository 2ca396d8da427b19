# pyright: basic
from __future__ import annotations

import numpy as np
import pytest

from vistagrid import config
from vistagrid.algos import viewshed
from vistagrid.tools import mock

NOVALUE = -9999.0


def _run_station(raster_grid, col, row, height=0.0):
    x, y = raster_grid.cell_x_y(col, row)
    z = raster_grid.get(col, row) + height
    counts = np.full(raster_grid.values.shape, raster_grid.novalue, dtype=np.float64)
    view_angle, max_view_angle = viewshed.station_visibility(
        raster_grid.values,
        raster_grid.novalue,
        raster_grid.x_origin,
        raster_grid.y_origin,
        raster_grid.x_res,
        raster_grid.y_res,
        x,
        y,
        z,
        col,
        row,
        counts,
    )
    return view_angle, max_view_angle, counts


def test_resolve_stations(holey_grid):
    # find a no-data cell
    nodata_rows, nodata_cols = np.nonzero(holey_grid.values == holey_grid.novalue)
    assert len(nodata_rows) > 0
    cells = [(2, 3), (int(nodata_cols[0]), int(nodata_rows[0])), (0, 0)]
    station_map = mock.mock_station_map(holey_grid, cells, height=1.5)
    # push the last station off the grid
    xs = station_map.xs.copy()
    xs[2] = holey_grid.x_origin - 1
    station_map.xs = xs
    cols, rows, zs, valid = viewshed.resolve_stations(
        holey_grid.values,
        holey_grid.novalue,
        holey_grid.x_origin,
        holey_grid.y_origin,
        holey_grid.x_res,
        holey_grid.y_res,
        station_map.xs,
        station_map.ys,
        station_map.heights,
    )
    assert list(valid) == [holey_grid.values[3, 2] != holey_grid.novalue, False, False]
    if valid[0]:
        assert cols[0] == 2
        assert rows[0] == 3
        assert np.isclose(zs[0], holey_grid.values[3, 2] + 1.5, atol=config.ATOL, rtol=config.RTOL)
    assert cols[1] == -1 and rows[1] == -1
    assert np.isnan(zs[2])


def test_view_angles():
    # 3x3 grid of 10m cells, upper-left corner at 0, 30
    values = np.zeros((3, 3), dtype=np.float64)
    values[0, 1] = 10.0
    values[2, 2] = NOVALUE
    view_angle = viewshed.view_angles(values, NOVALUE, 0.0, 30.0, 10.0, 10.0, 15.0, 15.0, 5.0)
    # the station's own cell
    assert view_angle[1, 1] == 0
    # north neighbour is 5m above the observer at 10m
    assert np.isclose(view_angle[0, 1], 500.0, atol=config.ATOL, rtol=config.RTOL)
    assert np.isclose(view_angle[1, 0], -500.0, atol=config.ATOL, rtol=config.RTOL)
    assert np.isclose(view_angle[0, 0], -5 / np.sqrt(200) * 1000, atol=config.ATOL, rtol=config.RTOL)
    # no-data
    assert view_angle[2, 2] == NOVALUE
    # NaN no-data
    values[2, 2] = np.nan
    view_angle = viewshed.view_angles(values, np.nan, 0.0, 30.0, 10.0, 10.0, 15.0, 15.0, 5.0)
    assert np.isnan(view_angle[2, 2])
    assert np.isclose(view_angle[0, 1], 500.0, atol=config.ATOL, rtol=config.RTOL)


def test_axis_scan():
    view_angle = np.array([[0.0, 1.0, 0.5, 2.0, NOVALUE, 3.0]])
    # eastwards, stopping short of the last column
    max_view_angle = np.full(view_angle.shape, NOVALUE)
    viewshed.axis_scan(view_angle, max_view_angle, NOVALUE, 0, 0, 1, 0, 5, 1)
    # the immediate neighbour is left for the seed
    assert max_view_angle[0, 1] == NOVALUE
    assert max_view_angle[0, 2] == 1.0
    assert max_view_angle[0, 3] == 2.0
    # no-data cells are skipped
    assert max_view_angle[0, 4] == NOVALUE
    # end column is exclusive
    assert max_view_angle[0, 5] == NOVALUE
    # the full extent
    max_view_angle = np.full(view_angle.shape, NOVALUE)
    viewshed.axis_scan(view_angle, max_view_angle, NOVALUE, 0, 0, 1, 0, 6, 1)
    assert max_view_angle[0, 5] == 3.0
    # westwards, from a no-data neighbour
    max_view_angle = np.full(view_angle.shape, NOVALUE)
    viewshed.axis_scan(view_angle, max_view_angle, NOVALUE, 5, 0, -1, 0, 6, 1)
    assert list(max_view_angle[0, :4]) == [2.0, 2.0, 2.0, 2.0]
    # the station at the edge of the grid
    max_view_angle = np.full(view_angle.shape, NOVALUE)
    viewshed.axis_scan(view_angle, max_view_angle, NOVALUE, 0, 0, -1, 0, 6, 1)
    assert np.all(max_view_angle == NOVALUE)


def test_axis_scan_vertical():
    view_angle = np.array([[5.0], [1.0], [-1.0], [0.0]])
    max_view_angle = np.full(view_angle.shape, NOVALUE)
    # northwards from the last row
    viewshed.axis_scan(view_angle, max_view_angle, NOVALUE, 0, 3, 0, -1, 1, 4)
    assert max_view_angle[1, 0] == 1.0
    assert max_view_angle[0, 0] == 5.0
    assert max_view_angle[2, 0] == NOVALUE


def test_octant_scan():
    # north, growing east, from the south-west corner of a 4x4 grid
    view_angle = np.zeros((4, 4), dtype=np.float64)
    max_view_angle = np.full((4, 4), NOVALUE)
    max_view_angle[2, 0] = 1.0
    max_view_angle[2, 1] = 3.0
    max_view_angle[1, 0] = 1.0
    viewshed.octant_scan(view_angle, max_view_angle, NOVALUE, 0, 3, 0, -1, 1, 0)
    # second line: interpolated half way between the cells behind
    assert np.isclose(max_view_angle[1, 1], 2.0, atol=config.ATOL, rtol=config.RTOL)
    # the diagonal takes the inner cell directly
    assert np.isclose(max_view_angle[1, 2], 3.0, atol=config.ATOL, rtol=config.RTOL)
    # third line
    assert np.isclose(max_view_angle[0, 1], 2 + (1 / 3) * (1 - 2), atol=config.ATOL, rtol=config.RTOL)
    assert np.isclose(max_view_angle[0, 2], 3 + (2 / 3) * (2 - 3), atol=config.ATOL, rtol=config.RTOL)
    assert np.isclose(max_view_angle[0, 3], 3.0, atol=config.ATOL, rtol=config.RTOL)
    # the axis and the cells beyond the diagonal are not written
    assert max_view_angle[0, 0] == NOVALUE
    assert max_view_angle[2, 2] == NOVALUE
    assert max_view_angle[2, 3] == NOVALUE
    # a cell's own view angle wins where it is higher than the prediction
    view_angle[1, 1] = 10.0
    max_view_angle = np.full((4, 4), NOVALUE)
    max_view_angle[2, 0] = 1.0
    max_view_angle[2, 1] = 3.0
    max_view_angle[1, 0] = 1.0
    viewshed.octant_scan(view_angle, max_view_angle, NOVALUE, 0, 3, 0, -1, 1, 0)
    assert max_view_angle[1, 1] == 10.0
    assert np.isclose(max_view_angle[0, 1], 10 + (1 / 3) * (1 - 10), atol=config.ATOL, rtol=config.RTOL)


def test_octant_scan_novalue():
    view_angle = np.zeros((4, 4), dtype=np.float64)
    view_angle[1, 1] = NOVALUE
    max_view_angle = np.full((4, 4), NOVALUE)
    max_view_angle[2, 0] = 1.0
    max_view_angle[2, 1] = 3.0
    max_view_angle[1, 0] = 1.0
    viewshed.octant_scan(view_angle, max_view_angle, NOVALUE, 0, 3, 0, -1, 1, 0)
    # no-data cells are skipped
    assert max_view_angle[1, 1] == NOVALUE
    # and are not counted towards the position along the line, so the next cell is interpolated from an unset cell
    # and falls back to its own view angle
    assert max_view_angle[1, 2] == 0.0


@pytest.mark.parametrize("octant_idx", range(8))
def test_octant_scan_in_bounds(octant_idx):
    # every octant from every cell of a small grid, including corners and edges
    raster_grid = mock.mock_random_grid(random_seed=octant_idx, rows=6, cols=5)
    axis_col, axis_row, grow_col, grow_row = viewshed.OCTANTS[octant_idx]
    for row in range(raster_grid.rows):
        for col in range(raster_grid.cols):
            x, y = raster_grid.cell_x_y(col, row)
            view_angle = viewshed.view_angles(
                raster_grid.values,
                raster_grid.novalue,
                raster_grid.x_origin,
                raster_grid.y_origin,
                raster_grid.x_res,
                raster_grid.y_res,
                x,
                y,
                raster_grid.get(col, row),
            )
            max_view_angle = view_angle.copy()
            viewshed.octant_scan(
                view_angle, max_view_angle, raster_grid.novalue, col, row, axis_col, axis_row, grow_col, grow_row
            )
            # maximum view angles never fall below the cell's own
            assert np.all(max_view_angle >= view_angle)


def test_propagate_horizon(random_grid):
    _view_angle, _max_view_angle, counts = _run_station(random_grid, 12, 12, height=1.5)
    view_angle = viewshed.view_angles(
        random_grid.values,
        random_grid.novalue,
        random_grid.x_origin,
        random_grid.y_origin,
        random_grid.x_res,
        random_grid.y_res,
        *random_grid.cell_x_y(12, 12),
        random_grid.get(12, 12) + 1.5,
    )
    max_view_angle = viewshed.propagate_horizon(view_angle, random_grid.novalue, 12, 12)
    # the 3x3 block is seeded from the view angles
    assert np.array_equal(max_view_angle[11:14, 11:14], view_angle[11:14, 11:14])
    # every cell is reached on a grid without holes, except the last cell east of the station
    unreached = max_view_angle == random_grid.novalue
    assert np.array_equal(np.argwhere(unreached), [[12, random_grid.cols - 1]])
    # maximum view angles never fall below the cell's own
    assert np.all(max_view_angle[~unreached] >= view_angle[~unreached])
    # consistent with the station level function
    assert np.array_equal(max_view_angle, _max_view_angle)
    assert np.array_equal(view_angle, _view_angle)
    assert counts[12, 12] == 1


def test_propagate_horizon_isolated_station():
    # all cells no-data except the station's
    values = np.full((5, 5), NOVALUE)
    values[2, 2] = 3.0
    view_angle = viewshed.view_angles(values, NOVALUE, 0.0, 50.0, 10.0, 10.0, 25.0, 25.0, 3.0)
    max_view_angle = viewshed.propagate_horizon(view_angle, NOVALUE, 2, 2)
    expected = np.full((5, 5), NOVALUE)
    expected[2, 2] = 0.0
    assert np.array_equal(max_view_angle, expected)
    counts = np.full((5, 5), NOVALUE)
    viewshed.accumulate_visibility(view_angle, max_view_angle, counts, NOVALUE)
    expected[2, 2] = 1.0
    assert np.array_equal(counts, expected)


def test_propagate_horizon_boundaries(random_grid):
    # stations on, and one cell in from, the boundary
    last_col = random_grid.cols - 1
    last_row = random_grid.rows - 1
    cells = [
        (0, 0),
        (last_col, 0),
        (0, last_row),
        (last_col, last_row),
        (1, 1),
        (last_col - 1, last_row - 1),
        (0, 12),
        (12, 0),
        (last_col, 12),
        (12, last_row),
        (1, 12),
        (last_col - 1, 12),
    ]
    for col, row in cells:
        view_angle, max_view_angle, counts = _run_station(random_grid, col, row, height=1.5)
        # the station and its in-bounds neighbours are always visible
        for n_row in range(row - 1, row + 2):
            for n_col in range(col - 1, col + 2):
                if random_grid.in_bounds(n_col, n_row):
                    assert max_view_angle[n_row, n_col] == view_angle[n_row, n_col]
                    assert counts[n_row, n_col] == 1
        # counts are binary for a single station
        defined = counts[counts != random_grid.novalue]
        assert np.all(defined == 1)


def test_accumulate_visibility():
    view_angle = np.array([[1.0, 2.0], [NOVALUE, 0.0]])
    max_view_angle = np.array([[1.0, 3.0], [NOVALUE, NOVALUE]])
    counts = np.full((2, 2), NOVALUE)
    viewshed.accumulate_visibility(view_angle, max_view_angle, counts, NOVALUE)
    # ties are visible
    assert counts[0, 0] == 1
    # occluded cells are left unset
    assert counts[0, 1] == NOVALUE
    # no-data cells are never counted
    assert counts[1, 0] == NOVALUE
    # an unset numeric maximum is below every angle
    assert counts[1, 1] == 1
    # counts accumulate
    viewshed.accumulate_visibility(view_angle, max_view_angle, counts, NOVALUE)
    assert counts[0, 0] == 2
    assert counts[1, 1] == 2
    # an unset NaN maximum never compares as visible
    view_angle = np.array([[1.0, np.nan]])
    max_view_angle = np.array([[np.nan, np.nan]])
    counts = np.full((1, 2), np.nan)
    viewshed.accumulate_visibility(view_angle, max_view_angle, counts, np.nan)
    assert np.all(np.isnan(counts))


def test_visibility_mask():
    view_angle = np.array([[1.0, 2.0], [NOVALUE, 0.0]])
    max_view_angle = np.array([[1.0, 3.0], [NOVALUE, NOVALUE]])
    mask = viewshed.visibility_mask(view_angle, max_view_angle, NOVALUE)
    assert mask.dtype == np.uint8
    assert np.array_equal(mask, np.array([[1, 0], [0, 1]], dtype=np.uint8))


def test_station_visibility_masks(holey_grid):
    cells = [(3, 3), (20, 4), (12, 12), (0, 24), (24, 24), (7, 18)]
    station_map = mock.mock_station_map(holey_grid, cells, height=2.0)
    cols, rows, zs, valid = viewshed.resolve_stations(
        holey_grid.values,
        holey_grid.novalue,
        holey_grid.x_origin,
        holey_grid.y_origin,
        holey_grid.x_res,
        holey_grid.y_res,
        station_map.xs,
        station_map.ys,
        station_map.heights,
    )
    masks = viewshed.station_visibility_masks(
        holey_grid.values,
        holey_grid.novalue,
        holey_grid.x_origin,
        holey_grid.y_origin,
        holey_grid.x_res,
        holey_grid.y_res,
        station_map.xs[valid],
        station_map.ys[valid],
        zs[valid],
        cols[valid],
        rows[valid],
    )
    assert masks.shape == (int(np.sum(valid)), holey_grid.rows, holey_grid.cols)
    # the sequential accumulation
    counts = np.full(holey_grid.values.shape, holey_grid.novalue, dtype=np.float64)
    for station_idx in np.flatnonzero(valid):
        viewshed.station_visibility(
            holey_grid.values,
            holey_grid.novalue,
            holey_grid.x_origin,
            holey_grid.y_origin,
            holey_grid.x_res,
            holey_grid.y_res,
            station_map.xs[station_idx],
            station_map.ys[station_idx],
            zs[station_idx],
            cols[station_idx],
            rows[station_idx],
            counts,
        )
    summed = viewshed.sum_visibility_masks(masks, holey_grid.novalue)
    assert np.array_equal(summed, counts)
    # no-data cells are never visible
    assert np.all(masks[:, holey_grid.values == holey_grid.novalue] == 0)


def test_sum_visibility_masks():
    masks = np.array([[[1, 0], [0, 1]], [[1, 0], [0, 0]]], dtype=np.uint8)
    counts = viewshed.sum_visibility_masks(masks, NOVALUE)
    assert np.array_equal(counts, np.array([[2.0, NOVALUE], [NOVALUE, 1.0]]))
    # no stations
    counts = viewshed.sum_visibility_masks(np.zeros((0, 2, 2), dtype=np.uint8), NOVALUE)
    assert np.all(counts == NOVALUE)
