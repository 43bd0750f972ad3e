"""Animated maps of gridded 2 m temperature from netCDF files."""

from .colorscale import ColorScale, compute_color_scale
from .config import AnimationConfig, VariableNames
from .driver import animate, frame_indices, run
from .encoder import append_frame, begin_animation, finalize
from .errors import (
    AnimationError,
    DatasetOpenError,
    EmptyDataError,
    EncodingError,
    FileFormatError,
    FrameIndexError,
    RenderError,
)
from .loader import TemperatureGrid, load_temperature_grid
from .overlays import BoundaryResolution, probe_boundary_resolution
from .render import RenderContext, build_render_context, render_frame, render_frame_image

__version__ = "0.1.0"
