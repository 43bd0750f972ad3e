"""
Run configuration.

Defaults reproduce the reference animation: ERA5 monthly-mean 2 m
temperature, 64 colour bins, 1200x800 px frames at 150 dpi, 0.5 s per
frame, first 10 time steps.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import matplotlib

DEFAULT_INPUT = "data_stream-moda.nc"
DEFAULT_OUTPUT = "temperature_animation_final.gif"
ATTRIBUTION = "Data: Copernicus Climate Change Service (C3S)"


@dataclass(frozen=True)
class VariableNames:
    """netCDF variable names, first match wins."""

    longitude: Tuple[str, ...] = ("longitude", "lon")
    latitude: Tuple[str, ...] = ("latitude", "lat")
    time: Tuple[str, ...] = ("valid_time", "time")
    field: Tuple[str, ...] = ("t2m",)

    @classmethod
    def with_overrides(cls, field_name=None, time_name=None):
        kwargs = {}
        if field_name:
            kwargs["field"] = (field_name,)
        if time_name:
            kwargs["time"] = (time_name,)
        return replace(cls(), **kwargs)


@dataclass(frozen=True)
class AnimationConfig:
    frame_interval: float = 0.5  # seconds
    width: int = 1200  # pixels
    height: int = 800  # pixels
    dpi: int = 150
    max_frames: Optional[int] = 10
    palette_size: int = 64
    palette: str = "jet"
    title_prefix: str = "2m Temperature"
    legend_label: str = "Temperature (°C)"
    attribution: str = ATTRIBUTION
    workers: int = 1
    loop: int = 0
    names: VariableNames = field(default_factory=VariableNames)

    def __post_init__(self):
        if self.frame_interval <= 0:
            raise ValueError(f"frame_interval must be positive, got {self.frame_interval}")
        for attr in ("width", "height", "dpi", "palette_size", "workers"):
            if getattr(self, attr) < 1:
                raise ValueError(f"{attr} must be >= 1, got {getattr(self, attr)}")
        if self.max_frames is not None and self.max_frames < 1:
            raise ValueError(f"max_frames must be None or >= 1, got {self.max_frames}")
        if self.palette not in matplotlib.colormaps:
            raise ValueError(f"unknown colormap '{self.palette}'")

    @property
    def frame_duration_ms(self) -> int:
        return int(round(self.frame_interval * 1000))

    @property
    def figsize(self) -> Tuple[float, float]:
        return (self.width / self.dpi, self.height / self.dpi)
