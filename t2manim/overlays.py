"""
Map furniture: coastlines, country boundaries, grid, ticks and border.

Boundary lines are read from Natural Earth shapefiles on local disk only:
the package's own ``data`` directory first, then cartopy's data
directories. Nothing is downloaded while a frame is drawn. The 10m
coastline is used when it is found; otherwise the coarse 110m set is
drawn. The choice is made once per run by ``probe_boundary_resolution``.
A layer whose shapefile is missing everywhere is skipped with a warning.
"""

import enum
import functools
import logging
import os

import cartopy
import cartopy.crs as crs
import numpy as np
from cartopy.feature import ShapelyFeature
from cartopy.io.shapereader import Reader
from cartopy.mpl.ticker import LatitudeFormatter, LongitudeFormatter
from matplotlib.ticker import MaxNLocator

logger = logging.getLogger(__name__)

HIGH_RES_SCALE = "10m"
COARSE_SCALE = "110m"
BUNDLED_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

_missing_layers = set()


class BoundaryResolution(enum.Enum):
    HIGH_RES = "high_res"
    COARSE_ONLY = "coarse_only"


def natural_earth_path(data_dir, category, scale, name):
    return os.path.join(
        data_dir, "shapefiles", "natural_earth", category, f"ne_{scale}_{name}.shp"
    )


def cartopy_data_dirs():
    dirs = []
    for key in ("pre_existing_data_dir", "data_dir"):
        value = cartopy.config.get(key)
        if value:
            dirs.append(value)
    return dirs


def boundary_data_dirs():
    return [BUNDLED_DATA_DIR] + cartopy_data_dirs()


def find_shapefile(category, scale, name, data_dirs=None):
    if data_dirs is None:
        data_dirs = boundary_data_dirs()
    for data_dir in data_dirs:
        path = natural_earth_path(data_dir, category, scale, name)
        if os.path.isfile(path):
            return path
    return None


def probe_boundary_resolution(data_dirs=None) -> BoundaryResolution:
    """Report whether the 10m Natural Earth coastline is available locally."""
    path = find_shapefile("physical", HIGH_RES_SCALE, "coastline", data_dirs)
    if path is not None:
        logger.debug("High-resolution coastline found: %s", path)
        return BoundaryResolution.HIGH_RES

    logger.info("High-resolution coastline not available; using %s", COARSE_SCALE)
    return BoundaryResolution.COARSE_ONLY


###############################################################################
# Drawing helpers
###############################################################################
@functools.lru_cache(maxsize=None)
def read_geometries(path):
    reader = Reader(path)
    try:
        return tuple(reader.geometries())
    finally:
        reader.close()


def add_shapefile_layer(ax, category, scale, name, edgecolor, linewidth, zorder=None):
    """Draw one Natural Earth layer as outlines; False if no local copy exists."""
    path = find_shapefile(category, scale, name)
    if path is None:
        if (scale, name) not in _missing_layers:
            _missing_layers.add((scale, name))
            logger.warning("No local ne_%s_%s shapefile; layer not drawn", scale, name)
        return False

    feature = ShapelyFeature(
        read_geometries(path),
        crs.PlateCarree(),
        facecolor="none",
        edgecolor=edgecolor,
        linewidth=linewidth,
        zorder=zorder,
    )
    ax.add_feature(feature)
    return True


def add_boundaries(ax, resolution: BoundaryResolution):
    drawn = False
    if resolution is BoundaryResolution.HIGH_RES:
        drawn = add_shapefile_layer(ax, "physical", HIGH_RES_SCALE, "coastline", "black", 0.5, 3)
    if not drawn:
        add_shapefile_layer(ax, "physical", COARSE_SCALE, "coastline", "black", 0.5, 3)
    add_shapefile_layer(ax, "cultural", COARSE_SCALE, "admin_0_countries", "0.3", 1.5, 3)


def add_reference_grid(ax):
    return ax.gridlines(
        crs=crs.PlateCarree(),
        draw_labels=False,
        linestyle=":",
        color="gray",
        linewidth=0.6,
    )


def _ticks_within(lower, upper, nbins=8):
    ticks = MaxNLocator(nbins=nbins).tick_values(lower, upper)
    return ticks[(ticks >= lower) & (ticks <= upper)]


def add_axis_ticks(ax, lons, lats, labelsize=6):
    ax.set_xticks(_ticks_within(np.nanmin(lons), np.nanmax(lons)), crs=crs.PlateCarree())
    ax.set_yticks(_ticks_within(np.nanmin(lats), np.nanmax(lats)), crs=crs.PlateCarree())
    ax.xaxis.set_major_formatter(LongitudeFormatter())
    ax.yaxis.set_major_formatter(LatitudeFormatter())
    ax.tick_params(labelsize=labelsize, length=3, pad=2)


def add_border(ax, linewidth=1.0):
    spine = ax.spines["geo"]
    spine.set_visible(True)
    spine.set_edgecolor("black")
    spine.set_linewidth(linewidth)
