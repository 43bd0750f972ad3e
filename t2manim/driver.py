"""
Animation driver: load -> colour scale -> frames -> GIF.
"""

import logging
from concurrent.futures import ProcessPoolExecutor

import matplotlib

from .config import AnimationConfig
from .encoder import append_frame, begin_animation, finalize
from .loader import load_temperature_grid
from .render import build_render_context, render_frame_image, save_frame

logger = logging.getLogger(__name__)


def frame_indices(n_times, max_frames=None) -> range:
    """1-based frame indices, capped at ``max_frames`` when given."""
    count = n_times if max_frames is None else min(n_times, max_frames)
    return range(1, max(count, 0) + 1)


def _init_worker():
    # Workers may be started fresh rather than forked
    matplotlib.use("Agg")


def _render_indexed(args):
    context, index = args
    return render_frame_image(context, index)


def render_frames(context, indices):
    """
    Yield rendered frames in index order.

    With ``config.workers > 1`` the frames are drawn in a process pool;
    ``executor.map`` still hands them back in submission order.
    """
    workers = min(context.config.workers, len(indices))
    if workers <= 1:
        for index in indices:
            yield render_frame_image(context, index)
        return

    with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker) as executor:
        yield from executor.map(_render_indexed, [(context, index) for index in indices])


def animate(context, output_path):
    indices = frame_indices(context.grid.n_times, context.config.max_frames)
    logger.info(
        "Rendering %d of %d time steps to %s", len(indices), context.grid.n_times, output_path
    )

    handle = begin_animation(output_path, context.config)
    for image in render_frames(context, indices):
        append_frame(handle, image)
    return finalize(handle)


def run(input_path, output_path, config=None, preview_path=None):
    """Run the whole pipeline and return the path of the written GIF."""
    if config is None:
        config = AnimationConfig()

    grid = load_temperature_grid(input_path, config.names)
    context = build_render_context(grid, config)

    if preview_path is not None:
        save_frame(context, 1, preview_path)
        logger.info("Preview frame written: %s", preview_path)

    return animate(context, output_path)
