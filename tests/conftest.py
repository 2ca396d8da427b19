# pyright: basic
from __future__ import annotations

import pytest

from vistagrid import structures
from vistagrid.tools import mock


@pytest.fixture
def flat_grid() -> structures.RasterGrid:
    """
    Prepare a flat elevation grid for testing.

    Returns
    -------
    structures.RasterGrid
        An 11x11 `RasterGrid` of zero elevations.

    """
    return mock.mock_flat_grid()


@pytest.fixture
def peak_grid() -> structures.RasterGrid:
    """
    Prepare a 7x7 grid with a single central peak.

    Returns
    -------
    structures.RasterGrid
        A `RasterGrid` with a peak of 10 at column 3, row 3 and a no-data value of -9999.

    """
    return mock.mock_peak_grid()


@pytest.fixture
def ridge_grid() -> structures.RasterGrid:
    """
    Prepare an 11x11 grid crossed by a wall.

    Notes
    -----
    ```python
    # 0 0 0 0 0 0 0 20 0 0 0
    # ...
    # 0 0 0 S 0 0 0 20 0 0 0  <- row 5, station at column 3
    # ...
    # 0 0 0 0 0 0 0 20 0 0 0
    ```

    """
    return mock.mock_ridge_grid()


@pytest.fixture
def random_grid() -> structures.RasterGrid:
    return mock.mock_random_grid(random_seed=42)


@pytest.fixture
def holey_grid() -> structures.RasterGrid:
    """A random grid with roughly a tenth of its cells set to no-data."""
    return mock.mock_random_grid(random_seed=7, nodata_fraction=0.1)
