'''
Find how big a projection naturally is.

There is no generic way to ask a projection for its extent, so each projection names
a handful of points which, once projected, bracket it. Most are bounded by the poles
and the antimeridian; interrupted and polyhedral ones need their own.
'''

from dataclasses import dataclass
from math import inf, isfinite
from typing import Iterable

from coords import LonLat
from helpers import InvalidBoundsError
from projections import Projection


@dataclass(slots=True, frozen=True)
class Bounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self):
        return self.max_x - self.min_x

    @property
    def height(self):
        return self.max_y - self.min_y

    @property
    def center(self):
        return (self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2


def discover_bounds(projection: Projection, sampling_points: Iterable[LonLat]) -> Bounds:
    "Bounding box of the sampling points at unit scale. Leaves the projection at unit scale."
    projection.fit(1, (0, 0))

    min_x = min_y = inf
    max_x = max_y = -inf
    for point in sampling_points:
        p = projection.forward(point)
        if p is None or not (isfinite(p.x) and isfinite(p.y)):
            continue
        min_x = min(min_x, p.x)
        max_x = max(max_x, p.x)
        min_y = min(min_y, p.y)
        max_y = max(max_y, p.y)

    if not all(isfinite(v) for v in (min_x, max_x, min_y, max_y)):
        raise InvalidBoundsError(f'could not determine valid bounds for {projection!r}')

    bounds = Bounds(min_x, max_x, min_y, max_y)
    if not (bounds.width > 0 and bounds.height > 0):
        raise InvalidBoundsError(
            f'invalid natural dimensions for {projection!r}: {bounds.width} x {bounds.height}')
    return bounds
