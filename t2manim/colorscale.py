"""
Global colour scale shared by every frame of the animation.

The range is taken over the whole field (all times) so that a colour
means the same temperature in every frame.
"""

import logging
import math
from dataclasses import dataclass

import matplotlib
import numpy as np
from matplotlib.colors import BoundaryNorm, ListedColormap

from .errors import EmptyDataError

logger = logging.getLogger(__name__)

DEFAULT_PALETTE_SIZE = 64


@dataclass(frozen=True)
class ColorScale:
    vmin: float
    vmax: float
    breaks: np.ndarray
    palette_size: int

    def colormap(self, palette: str = "jet") -> ListedColormap:
        """``palette`` sampled to ``palette_size`` colours; missing cells transparent."""
        color_map_rgb = matplotlib.colormaps[palette](np.linspace(0.0, 1.0, self.palette_size))
        return ListedColormap(
            color_map_rgb, name=f"{palette}_{self.palette_size}"
        ).with_extremes(bad=(0.0, 0.0, 0.0, 0.0))

    def norm(self) -> BoundaryNorm:
        return BoundaryNorm(self.breaks, self.palette_size)


def compute_color_scale(field, palette_size: int = DEFAULT_PALETTE_SIZE) -> ColorScale:
    """
    Compute the global (min, max) of ``field`` ignoring missing values and
    split [floor(min), ceil(max)] evenly into ``palette_size`` bins.

    Raises EmptyDataError when no value is present.
    """
    if palette_size < 1:
        raise ValueError(f"palette_size must be >= 1, got {palette_size}")

    valid = np.ma.masked_invalid(field)
    if valid.count() == 0:
        raise EmptyDataError("temperature field has no valid values; colour scale undefined")

    vmin = float(valid.min())
    vmax = float(valid.max())

    lower = math.floor(vmin)
    upper = math.ceil(vmax)
    if upper <= lower:
        # Constant integer-valued field
        upper = lower + 1

    breaks = np.linspace(lower, upper, palette_size + 1)
    breaks.setflags(write=False)

    logger.info(
        "Colour scale: %.2f..%.2f degC, %d bins over [%d, %d]",
        vmin,
        vmax,
        palette_size,
        lower,
        upper,
    )
    return ColorScale(vmin=vmin, vmax=vmax, breaks=breaks, palette_size=palette_size)
