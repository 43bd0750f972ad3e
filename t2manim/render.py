"""
Frame rendering: one time slice of the temperature field on a map.

Each frame is drawn from a ``RenderContext`` that is built once before the
first frame and only read afterwards, so frames can be rendered in any
order, repeatedly, or in separate processes.
"""

import io
import logging
from dataclasses import dataclass

import cartopy.crs as crs
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.cm import ScalarMappable
from matplotlib.ticker import MaxNLocator
from PIL import Image

from .colorscale import ColorScale, compute_color_scale
from .config import AnimationConfig
from .errors import AnimationError, EncodingError, FrameIndexError, RenderError
from .loader import TemperatureGrid
from .overlays import (
    BoundaryResolution,
    add_axis_ticks,
    add_border,
    add_boundaries,
    add_reference_grid,
    probe_boundary_resolution,
)

logger = logging.getLogger(__name__)

# Figure-fraction rectangles: [left, bottom, width, height]
MAP_AXES = [0.07, 0.12, 0.76, 0.78]
LEGEND_AXES = [0.88, 0.2, 0.02, 0.6]


@dataclass(frozen=True)
class RenderContext:
    grid: TemperatureGrid
    scale: ColorScale
    resolution: BoundaryResolution
    config: AnimationConfig


def build_render_context(grid: TemperatureGrid, config: AnimationConfig, resolution=None):
    """Compute the global colour scale and probe coastline data, once."""
    scale = compute_color_scale(grid.field, config.palette_size)
    if resolution is None:
        resolution = probe_boundary_resolution()
    return RenderContext(grid=grid, scale=scale, resolution=resolution, config=config)


def check_index(context: RenderContext, index) -> int:
    n_times = context.grid.n_times
    if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
        raise FrameIndexError(f"frame index must be an integer, got {index!r}")
    if not 1 <= index <= n_times:
        raise FrameIndexError(f"frame index {index} outside 1..{n_times}")
    return int(index)


def sort_latitudes(latitudes, field_slice):
    """
    Order latitudes south to north and permute the latitude axis (axis 1)
    of ``field_slice`` to match. Neither input is modified.
    """
    order = np.argsort(latitudes, kind="stable")
    return latitudes[order], field_slice[:, order]


def frame_title(context: RenderContext, index) -> str:
    index = check_index(context, index)
    valid_dt = context.grid.times[index - 1]
    return f"{context.config.title_prefix} at {valid_dt:%Y-%m-%d %H:%M} UTC"


###############################################################################
# Frame drawing
###############################################################################
def render_frame(context: RenderContext, index):
    """
    Draw frame ``index`` (1-based) and return the matplotlib figure.

    The caller owns the figure and must close it.
    """
    index = check_index(context, index)
    cfg = context.config
    grid = context.grid
    scale = context.scale

    valid_dt = grid.times[index - 1]
    logger.info("Plotting data: %s UTC", f"{valid_dt:%Y/%m/%d %H:%M:%S}")

    lons = grid.longitudes
    lats, temp_ordered = sort_latitudes(grid.latitudes, grid.field[:, :, index - 1])

    temp_map = scale.colormap(cfg.palette)
    temp_norm = scale.norm()

    fig = plt.figure(figsize=cfg.figsize, dpi=cfg.dpi)
    try:
        central_lon = float(np.nanmin(lons) + np.nanmax(lons)) / 2.0
        ax = fig.add_axes(MAP_AXES, projection=crs.PlateCarree(central_longitude=central_lon))
        ax.set_extent(
            [np.nanmin(lons), np.nanmax(lons), np.nanmin(lats), np.nanmax(lats)],
            crs=crs.PlateCarree(),
        )

        # Field slice is (lon, lat); pcolormesh wants (lat, lon)
        ax.pcolormesh(
            lons,
            lats,
            temp_ordered.T,
            cmap=temp_map,
            norm=temp_norm,
            shading="nearest",
            transform=crs.PlateCarree(),
        )

        ax.set_title(frame_title(context, index), fontsize=11)
        add_axis_ticks(ax, lons, lats)

        # Legend bar over the same breaks and palette as the map
        cax = fig.add_axes(LEGEND_AXES)
        cbar = fig.colorbar(
            ScalarMappable(norm=temp_norm, cmap=temp_map),
            cax=cax,
            boundaries=scale.breaks,
            ticks=MaxNLocator(nbins=8),
        )
        cbar.set_label(cfg.legend_label, fontsize=7, fontweight="bold")
        cbar.ax.tick_params(labelsize=7, length=2, pad=1)

        fig.text(
            MAP_AXES[0] + MAP_AXES[2],
            0.03,
            cfg.attribution,
            ha="right",
            va="bottom",
            fontsize=7,
            color="0.25",
        )

        add_boundaries(ax, context.resolution)
        add_reference_grid(ax)
        add_border(ax)
    except Exception:
        plt.close(fig)
        raise

    return fig


def figure_to_image(fig, width, height, dpi) -> Image.Image:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi)
    buf.seek(0)
    with Image.open(buf) as png:
        image = png.convert("RGB")
    if image.size != (width, height):
        # figsize * dpi can land a pixel short after float rounding
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    return image


def render_frame_image(context: RenderContext, index) -> Image.Image:
    """
    Render frame ``index`` to an RGB image of the configured pixel size.

    Drawing failures surface as RenderError naming the frame.
    """
    cfg = context.config
    try:
        fig = render_frame(context, index)
    except AnimationError:
        raise
    except Exception as exc:
        raise RenderError(f"frame {index}: {exc}") from exc

    try:
        return figure_to_image(fig, cfg.width, cfg.height, cfg.dpi)
    except Exception as exc:
        raise RenderError(f"frame {index}: {exc}") from exc
    finally:
        plt.close(fig)


def save_frame(context: RenderContext, index, path):
    """Write a single frame as PNG (used for previews)."""
    image = render_frame_image(context, index)
    try:
        image.save(path, format="PNG")
    except OSError as exc:
        raise EncodingError(f"cannot write preview {path}: {exc}") from exc
    return path
