from __future__ import annotations

import os

import numpy as np

np.seterr(invalid="ignore")


def check_quiet() -> bool:
    """Check whether to enable quiet mode."""
    if "VISTAGRID_QUIET_MODE" in os.environ:
        if os.environ["VISTAGRID_QUIET_MODE"].lower() in ["true", "1"]:
            return True
    return False


QUIET_MODE = check_quiet()


def check_debug() -> bool:
    """Check whether to enable debug mode."""
    if "VISTAGRID_DEBUG_MODE" in os.environ:
        if os.environ["VISTAGRID_DEBUG_MODE"].lower() in ["true", "1"]:
            return True
    return False


DEBUG_MODE: bool = check_debug()


# view angles are elevation differences over distance, scaled
ANGLE_SCALE: float = 1000.0
# no-data sentinel used where a raster does not declare one
DEFAULT_NOVALUE: float = -9999.0
# attribute holding a station's height above the terrain
DEFAULT_HEIGHT_FIELD: str = "elev"
# for all_close equality checks
ATOL: float = 0.001
RTOL: float = 0.0001
