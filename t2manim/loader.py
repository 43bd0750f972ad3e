"""
Read a gridded 2 m temperature field from a netCDF file.

The file is expected to carry 1-D longitude, latitude and time coordinate
variables and a temperature variable spanning those three dimensions, as
in an ERA5 monthly-means download:

    valid_time  (valid_time)                       seconds since 1970-01-01
    latitude    (latitude)                         often stored north->south
    longitude   (longitude)
    t2m         (valid_time, latitude, longitude)  K

The field is returned in (longitude, latitude, time) order, converted to
degrees Celsius, with missing cells masked.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Tuple

import numpy as np
import pint
from metpy.units import units
from netCDF4 import Dataset, num2date

from .config import VariableNames
from .errors import DatasetOpenError, FileFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemperatureGrid:
    longitudes: np.ndarray
    latitudes: np.ndarray
    times: Tuple[datetime, ...]
    field: np.ma.MaskedArray  # (lon, lat, time), degC

    @property
    def n_times(self) -> int:
        return len(self.times)


###############################################################################
# Helpers
###############################################################################
def _freeze(array):
    array.setflags(write=False)
    if isinstance(array, np.ma.MaskedArray):
        array.harden_mask()
    return array


def find_variable(ncfile: Dataset, candidates, role: str):
    for name in candidates:
        if name in ncfile.variables:
            return ncfile.variables[name]
    raise FileFormatError(
        f"no {role} variable found (tried {', '.join(candidates)}); "
        f"file has: {', '.join(ncfile.variables) or 'no variables'}"
    )


def read_coordinate(var) -> np.ndarray:
    values = np.ma.filled(np.ma.asarray(var[:], dtype=float), np.nan)
    if values.ndim != 1:
        raise FileFormatError(
            f"coordinate variable '{var.name}' must be 1-D, got shape {values.shape}"
        )
    return values


def decode_times(var) -> Tuple[datetime, ...]:
    """
    Convert a time variable to timezone-aware UTC datetimes.

    CF ``units``/``calendar`` attributes are honoured when present; a bare
    integer variable is taken as seconds since the Unix epoch.
    """
    values = var[:]
    if np.ndim(values) != 1:
        raise FileFormatError(f"time variable '{var.name}' must be 1-D")
    if np.ma.is_masked(values):
        raise FileFormatError(f"time variable '{var.name}' has missing entries")
    raw = np.ma.getdata(values)

    time_units = getattr(var, "units", None)
    if not time_units:
        try:
            return tuple(
                datetime.fromtimestamp(int(value), tz=timezone.utc) for value in raw
            )
        except (OverflowError, OSError, ValueError) as exc:
            raise FileFormatError(
                f"time variable '{var.name}' is not seconds since 1970-01-01: {exc}"
            ) from exc

    try:
        decoded = num2date(
            raw,
            units=time_units,
            calendar=getattr(var, "calendar", "standard"),
            only_use_cftime_datetimes=False,
            only_use_python_datetimes=True,
        )
    except ValueError as exc:
        raise FileFormatError(
            f"cannot decode time variable '{var.name}' ({time_units}): {exc}"
        ) from exc

    return tuple(
        datetime(d.year, d.month, d.day, d.hour, d.minute, d.second, tzinfo=timezone.utc)
        for d in np.atleast_1d(decoded)
    )


def arrange_field(var, lon_dim: str, lat_dim: str, time_dim: str) -> np.ma.MaskedArray:
    """Return ``var`` as a float masked array ordered (lon, lat, time)."""
    data = np.ma.masked_invalid(np.ma.array(var[:], dtype=float))
    dims = list(var.dimensions)

    for wanted in (lon_dim, lat_dim, time_dim):
        if wanted not in dims:
            raise FileFormatError(
                f"variable '{var.name}' has dimensions {tuple(dims)}; "
                f"expected one named '{wanted}'"
            )

    # Singleton extras such as ERA5's "expver" are dropped.
    for axis in reversed(range(len(dims))):
        if dims[axis] in (lon_dim, lat_dim, time_dim):
            continue
        if data.shape[axis] != 1:
            raise FileFormatError(
                f"variable '{var.name}' has extra dimension '{dims[axis]}' "
                f"of length {data.shape[axis]}"
            )
        data = data.squeeze(axis=axis)
        del dims[axis]

    return data.transpose([dims.index(lon_dim), dims.index(lat_dim), dims.index(time_dim)])


def to_celsius(data: np.ma.MaskedArray, source_units: str) -> np.ma.MaskedArray:
    try:
        celsius = (
            units.Quantity(data.filled(np.nan), source_units).to(units.degC).magnitude
        )
    except (pint.UndefinedUnitError, pint.DimensionalityError, ValueError) as exc:
        raise FileFormatError(
            f"temperature units '{source_units}' cannot be converted to degC"
        ) from exc
    return np.ma.masked_invalid(np.asarray(celsius, dtype=float))


###############################################################################
# Loader
###############################################################################
def load_temperature_grid(path, names: VariableNames = VariableNames()) -> TemperatureGrid:
    """
    Load coordinates, timestamps and the temperature field from ``path``.

    The netCDF handle is closed before returning, including on failure.

    Raises
    ------
    DatasetOpenError
        The file is missing or is not a readable netCDF file.
    FileFormatError
        A required variable is absent or has an unexpected layout.
    """
    try:
        ncfile = Dataset(os.fspath(path))
    except OSError as exc:
        raise DatasetOpenError(f"cannot open {path}: {exc}") from exc

    with ncfile:
        lon_var = find_variable(ncfile, names.longitude, "longitude")
        lat_var = find_variable(ncfile, names.latitude, "latitude")
        time_var = find_variable(ncfile, names.time, "time")
        field_var = find_variable(ncfile, names.field, "temperature")

        lons = read_coordinate(lon_var)
        lats = read_coordinate(lat_var)
        times = decode_times(time_var)

        field = arrange_field(
            field_var,
            lon_var.dimensions[0],
            lat_var.dimensions[0],
            time_var.dimensions[0],
        )
        source_units = getattr(field_var, "units", "K")

    expected = (lons.size, lats.size, len(times))
    if field.shape != expected:
        raise FileFormatError(
            f"temperature field shape {field.shape} does not match "
            f"coordinates (lon, lat, time) = {expected}"
        )

    field = to_celsius(field, source_units)
    logger.info(
        "Loaded %s: %d lon x %d lat x %d times (%s -> degC)",
        path,
        lons.size,
        lats.size,
        len(times),
        source_units,
    )

    return TemperatureGrid(
        longitudes=_freeze(lons),
        latitudes=_freeze(lats),
        times=times,
        field=_freeze(field),
    )
