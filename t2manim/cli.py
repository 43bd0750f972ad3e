"""
Command-line entry point.

    t2m-animate data_stream-moda.nc -o temperature_animation_final.gif
"""

import argparse
import logging
import sys
import warnings

import matplotlib

matplotlib.use("Agg")

from .config import DEFAULT_INPUT, DEFAULT_OUTPUT, AnimationConfig, VariableNames  # noqa: E402
from .driver import run  # noqa: E402
from .errors import AnimationError  # noqa: E402

logger = logging.getLogger("t2manim")


def build_parser():
    defaults = AnimationConfig()
    parser = argparse.ArgumentParser(
        prog="t2m-animate",
        description="Animate a gridded 2 m temperature netCDF file as a GIF.",
    )
    parser.add_argument("input", nargs="?", default=DEFAULT_INPUT, help="netCDF input file")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="GIF output path")
    parser.add_argument(
        "--max-frames",
        type=int,
        default=defaults.max_frames,
        help="cap on the number of frames; 0 renders every time step",
    )
    parser.add_argument("--interval", type=float, default=defaults.frame_interval, help="seconds per frame")
    parser.add_argument("--width", type=int, default=defaults.width)
    parser.add_argument("--height", type=int, default=defaults.height)
    parser.add_argument("--dpi", type=int, default=defaults.dpi)
    parser.add_argument("--palette", default=defaults.palette, help="matplotlib colormap name")
    parser.add_argument("--palette-size", type=int, default=defaults.palette_size)
    parser.add_argument("--workers", type=int, default=defaults.workers, help="render processes")
    parser.add_argument("--field", help="temperature variable name (default t2m)")
    parser.add_argument("--time", dest="time_name", help="time variable name (default valid_time)")
    parser.add_argument("--preview", help="also write frame 1 as a PNG to this path")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def config_from_args(args) -> AnimationConfig:
    return AnimationConfig(
        frame_interval=args.interval,
        width=args.width,
        height=args.height,
        dpi=args.dpi,
        max_frames=args.max_frames or None,
        palette=args.palette,
        palette_size=args.palette_size,
        workers=args.workers,
        names=VariableNames.with_overrides(field_name=args.field, time_name=args.time_name),
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(levelname)s %(message)s")
    warnings.filterwarnings("ignore")

    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        gif_path = run(args.input, args.output, config, preview_path=args.preview)
    except AnimationError as exc:
        logger.error("%s failed: %s", exc.stage, exc)
        return exc.code

    logger.info("Animation written to %s", gif_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
