"""
Animated GIF output.

Frames are collected in memory in the order they are appended and written
in one go by ``finalize``. The GIF is first written to a temporary file in
the destination directory and renamed into place, so a failed run never
leaves a truncated animation behind.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from PIL import Image

from .errors import EncodingError

logger = logging.getLogger(__name__)


@dataclass
class GifAnimation:
    path: Path
    size: Tuple[int, int]
    duration_ms: int
    loop: int = 0
    frames: List[Image.Image] = field(default_factory=list)
    finalized: bool = False

    @property
    def frame_count(self) -> int:
        return len(self.frames)


def begin_animation(path, config) -> GifAnimation:
    return GifAnimation(
        path=Path(path),
        size=(config.width, config.height),
        duration_ms=config.frame_duration_ms,
        loop=config.loop,
    )


def append_frame(handle: GifAnimation, image: Image.Image):
    if handle.finalized:
        raise EncodingError(f"animation {handle.path} is already finalized")
    if image.size != handle.size:
        raise EncodingError(
            f"frame {handle.frame_count + 1} is {image.size[0]}x{image.size[1]}, "
            f"expected {handle.size[0]}x{handle.size[1]}"
        )
    handle.frames.append(image)


def finalize(handle: GifAnimation) -> Path:
    """Write the collected frames to ``handle.path`` and return it."""
    if handle.finalized:
        raise EncodingError(f"animation {handle.path} is already finalized")
    if not handle.frames:
        raise EncodingError(f"no frames to write to {handle.path}")

    directory = handle.path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{handle.path.stem}-", suffix=".gif", dir=directory
        )
    except OSError as exc:
        raise EncodingError(f"cannot write to {directory}: {exc}") from exc

    try:
        with os.fdopen(fd, "wb") as stream:
            handle.frames[0].save(
                stream,
                format="GIF",
                save_all=True,
                append_images=handle.frames[1:],
                duration=handle.duration_ms,
                loop=handle.loop,
            )
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, handle.path)
    except (OSError, ValueError) as exc:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise EncodingError(f"cannot write animation {handle.path}: {exc}") from exc

    handle.finalized = True
    logger.info("GIF generation complete: %s (%d frames)", handle.path, handle.frame_count)
    return handle.path
