import os
from datetime import datetime, timedelta, timezone

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pytest  # noqa: E402
import shapefile  # noqa: E402
from netCDF4 import Dataset  # noqa: E402

from t2manim import overlays, render  # noqa: E402
from t2manim.config import AnimationConfig  # noqa: E402
from t2manim.loader import TemperatureGrid  # noqa: E402
from t2manim.overlays import BoundaryResolution  # noqa: E402

EPOCH_2020 = 1577836800  # 2020-01-01T00:00:00Z
FILL = -32767.0


def write_temperature_file(
    path,
    field_lon_lat_time,
    lons=None,
    lats=None,
    times=None,
    units="K",
    time_units=None,
    field_name="t2m",
    expver=False,
    time_fill=None,
):
    """Write a small ERA5-style netCDF file; the field is given as (lon, lat, time)."""
    field = np.ma.asarray(field_lon_lat_time, dtype=float)
    n_lon, n_lat, n_time = field.shape
    if lons is None:
        lons = np.linspace(0.0, 10.0 * (n_lon - 1), n_lon)
    if lats is None:
        lats = np.linspace(10.0 * (n_lat - 1), 0.0, n_lat)  # north to south
    if times is None:
        times = EPOCH_2020 + 86400 * 31 * np.arange(n_time)

    with Dataset(path, "w") as nc:
        nc.createDimension("valid_time", n_time)
        nc.createDimension("latitude", n_lat)
        nc.createDimension("longitude", n_lon)
        dims = ("valid_time", "latitude", "longitude")
        if expver:
            nc.createDimension("expver", 1)
            dims = ("valid_time", "expver", "latitude", "longitude")

        time_var = nc.createVariable("valid_time", "i8", ("valid_time",), fill_value=time_fill)
        if time_units:
            time_var.units = time_units
        time_var[:] = times
        nc.createVariable("latitude", "f8", ("latitude",))[:] = lats
        nc.createVariable("longitude", "f8", ("longitude",))[:] = lons

        var = nc.createVariable(field_name, "f8", dims, fill_value=FILL)
        if units is not None:
            var.units = units
        data = np.ma.transpose(field, (2, 1, 0))
        if expver:
            data = data[:, np.newaxis, :, :]
        var[:] = data
    return path


def make_grid(n_times=3, n_lon=4, n_lat=3):
    lons = np.linspace(-20.0, 40.0, n_lon)
    lats = np.linspace(60.0, 30.0, n_lat)
    base = np.arange(n_lon * n_lat, dtype=float).reshape(n_lon, n_lat)
    field = np.ma.masked_invalid(
        np.stack([base + 5.0 * t for t in range(n_times)], axis=-1)
    )
    times = tuple(
        datetime(2020, 1, 1, tzinfo=timezone.utc) + timedelta(days=31 * t)
        for t in range(n_times)
    )
    for array in (lons, lats, field):
        array.setflags(write=False)
    return TemperatureGrid(longitudes=lons, latitudes=lats, times=times, field=field)


@pytest.fixture
def small_config():
    return AnimationConfig(width=300, height=200, dpi=100, palette_size=16)


@pytest.fixture
def boundary_calls(monkeypatch):
    """Record boundary drawing instead of reading shapefiles."""
    calls = []

    def fake_add_boundaries(ax, resolution):
        calls.append(resolution)

    monkeypatch.setattr(render, "add_boundaries", fake_add_boundaries)
    return calls


@pytest.fixture
def context(small_config, boundary_calls):
    return render.build_render_context(
        make_grid(), small_config, resolution=BoundaryResolution.COARSE_ONLY
    )


def write_lines_shapefile(data_dir, category, scale, name, lines):
    """Write a Natural Earth-named polyline shapefile under ``data_dir``."""
    path = overlays.natural_earth_path(str(data_dir), category, scale, name)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with shapefile.Writer(os.path.splitext(path)[0], shapeType=shapefile.POLYLINE) as w:
        w.field("name", "C")
        for i, line in enumerate(lines):
            w.line([line])
            w.record(f"line{i}")
    return path


@pytest.fixture
def boundary_dirs(tmp_path, monkeypatch):
    """Point every shapefile lookup at empty directories; returns the bundled one."""
    bundled = tmp_path / "bundled"
    bundled.mkdir()
    for key in ("pre_existing_data_dir", "data_dir"):
        empty = tmp_path / f"cartopy_{key}"
        empty.mkdir()
        monkeypatch.setitem(overlays.cartopy.config, key, str(empty))
    monkeypatch.setattr(overlays, "BUNDLED_DATA_DIR", str(bundled))
    return bundled
