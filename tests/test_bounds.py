from math import pi

import numpy as np
import pytest
from PIL import Image

from bounds import discover_bounds
from conftest import Degrees, Nowhere, gradient
from coords import LonLat
from helpers import InvalidBoundsError
from projections import PROJECTIONS, STANDARD_CRITICAL_POINTS, ProjProjection
from reproject import Reprojection
from surfaces import PillowSurfaces


def test_plate_carree_bounds():
    bounds = discover_bounds(ProjProjection('+proj=eqc'), STANDARD_CRITICAL_POINTS)
    assert bounds.width == pytest.approx(2 * pi)
    assert bounds.height == pytest.approx(pi)
    assert bounds.center == pytest.approx((0, 0))


def test_resets_projection_to_unit_scale():
    projection = ProjProjection('+proj=robin').fit(300, (12, 34))
    discover_bounds(projection, STANDARD_CRITICAL_POINTS)
    assert projection.scale == 1
    assert projection.translate == (0, 0)


def test_skips_undefined_points():
    # Mercator has nothing at the poles, the rest still make a box
    points = STANDARD_CRITICAL_POINTS + (LonLat(0, 60), LonLat(0, -60))
    bounds = discover_bounds(ProjProjection('+proj=merc'), points)
    assert bounds.width == pytest.approx(2 * pi)
    assert np.isfinite(bounds.height) and bounds.height > 0


def test_nothing_finite_is_invalid():
    with pytest.raises(InvalidBoundsError):
        discover_bounds(Nowhere(), STANDARD_CRITICAL_POINTS)


def test_zero_area_is_invalid():
    with pytest.raises(InvalidBoundsError):
        discover_bounds(Degrees(), [LonLat(-180, 0), LonLat(180, 0)])
    with pytest.raises(InvalidBoundsError):
        discover_bounds(Degrees(), [LonLat(10, 10)])


def test_no_points_is_invalid():
    with pytest.raises(InvalidBoundsError):
        discover_bounds(Degrees(), [])


@pytest.mark.parametrize('name', PROJECTIONS)
def test_fitted_sampling_points_fill_the_canvas(name):
    config = PROJECTIONS[name]
    job = Reprojection(
        Image.fromarray(gradient(40, 40)), config.create(),
        config.bounds_sampling_points, PillowSurfaces())

    xs, ys = job.projection.project(
        [p.lon for p in config.bounds_sampling_points],
        [p.lat for p in config.bounds_sampling_points])
    xs = xs[~np.isnan(xs)]
    ys = ys[~np.isnan(ys)]

    assert (xs.min() + xs.max()) / 2 == pytest.approx(job.width / 2, abs=1e-6)
    assert (ys.min() + ys.max()) / 2 == pytest.approx(job.height / 2, abs=1e-6)
    assert xs.max() - xs.min() == pytest.approx(job.width, abs=1e-6)
    assert job.height - 1 < ys.max() - ys.min() <= job.height + 1e-6


def test_peirce_quincuncial_needs_its_own_points():
    config = PROJECTIONS['Peirce Quincuncial']
    assert config.bounds_sampling_points != STANDARD_CRITICAL_POINTS

    custom = discover_bounds(config.create(), config.bounds_sampling_points)
    assert custom.width == pytest.approx(custom.height)
    assert custom.center == pytest.approx((0, 0), abs=1e-9)

    standard = discover_bounds(config.create(), STANDARD_CRITICAL_POINTS)
    assert standard.width != pytest.approx(custom.width)
