"""
Error types for the temperature animation pipeline.

Each error carries the pipeline stage it belongs to ("load", "scale",
"render", "encode") and the process exit code the CLI returns for it.
"""


class AnimationError(Exception):
    stage = "run"
    code = 1


class DatasetOpenError(AnimationError, OSError):
    stage = "load"
    code = 2


class FileFormatError(AnimationError):
    stage = "load"
    code = 3


class EmptyDataError(AnimationError):
    stage = "scale"
    code = 4


class RenderError(AnimationError):
    stage = "render"
    code = 5


class FrameIndexError(RenderError, IndexError):
    pass


class EncodingError(AnimationError):
    stage = "encode"
    code = 6
