'''
Reproject a Mercator image into any invertible projection.

For every destination pixel we ask the target projection where on Earth it is, ask the
Mercator source where that is in the source image, and blend the source pixels there.
The work is done a row at a time, and partial results are handed out every so often so
that the caller can show progress and cancel.
'''

import time
from dataclasses import dataclass
from math import ceil
from typing import Iterable, Iterator, Protocol

import numpy as np
from PIL import Image

from bounds import discover_bounds
from coords import LonLat
from helpers import ProjectionNotInvertibleError
from interpolation import bilinear_interpolate_many
from projections import Projection, source_mercator
from surfaces import PillowSurfaces

# Coarse, since some inverses (polyhedral ones in particular) are numerically noisy.
ROUND_TRIP_TOLERANCE = 1e-3
# Seconds between partial results.
YIELD_INTERVAL = 1.0


class Cancellation(Protocol):
    def is_set(self) -> bool: ...


@dataclass(slots=True)
class Chunk:
    surface: Image.Image
    pixels_done: int
    total_pixels: int

    @property
    def fraction(self):
        return self.pixels_done / self.total_pixels


class Reprojection:
    '''
    All the state of one reprojection: fitted projections, both buffers and a row cursor.

    Everything that can go wrong before the first pixel (a projection that cannot be
    inverted, bounds that make no sense, unusable surfaces) goes wrong in the constructor.
    '''

    def __init__(
        self,
        source_image: Image.Image,
        projection: Projection,
        bounds_sampling_points: Iterable[LonLat],
        surfaces: PillowSurfaces,
        longitude_offset: float = 0.0,
        tolerance: float = ROUND_TRIP_TOLERANCE,
    ):
        if not projection.can_invert:
            raise ProjectionNotInvertibleError(f'{projection!r} does not support inversion')

        bounds = discover_bounds(projection, bounds_sampling_points)

        self.source = surfaces.read_pixels(source_image)
        self.source_height, self.source_width = self.source.shape[:2]

        scale = self.source_width / bounds.width
        self.width = self.source_width
        self.height = ceil(bounds.height * scale)

        cx, cy = bounds.center
        self.projection = projection.fit(scale, (
            self.width / 2 - scale * cx,
            self.height / 2 - scale * cy,
        ))
        self.mercator = source_mercator(self.source_width, self.source_height, longitude_offset)

        self.surfaces = surfaces
        self.pixels = surfaces.blank_pixels(self.width, self.height)
        self.tolerance = tolerance
        self.row = 0

    @property
    def total_pixels(self):
        return self.width * self.height

    @property
    def pixels_done(self):
        return self.row * self.width

    @property
    def finished(self):
        return self.row >= self.height

    def step(self):
        "Compute the next row of the destination"
        y = self.row
        xs = np.arange(self.width, dtype=float)
        ys = np.full(self.width, float(y))

        lon, lat = self.projection.unproject(xs, ys)

        # Anything that does not come back to where it started is in a part of the
        # projection that wraps around and would show the same place twice.
        rx, ry = self.projection.project(lon, lat)
        keep = (np.abs(rx - xs) <= self.tolerance) & (np.abs(ry - ys) <= self.tolerance)

        # A cropped Mercator has nothing to offer at the poles.
        sx, sy = self.mercator.project(lon, lat)
        keep &= ~np.isnan(sx)

        # at most one wrap either way, introduced by the longitude offset
        sx = np.where(sx < 0, sx + self.source_width, sx)
        sx = np.where(sx >= self.source_width, sx - self.source_width, sx)

        self.pixels[y, keep] = bilinear_interpolate_many(self.source, sx[keep], sy[keep])
        self.row += 1

    def chunk(self) -> Chunk:
        return Chunk(self.surfaces.write_pixels(self.pixels), self.pixels_done, self.total_pixels)

    def chunks(self, cancelled: Cancellation, yield_interval: float = YIELD_INTERVAL) -> Iterator[Chunk]:
        '''
        Run to completion, yielding partial results at most every `yield_interval` seconds
        and always yielding the finished image. Stops silently once `cancelled` is set.
        '''
        last_yield = time.monotonic()
        while not self.finished:
            if cancelled.is_set():
                return
            self.step()

            now = time.monotonic()
            if now - last_yield >= yield_interval and not self.finished:
                yield self.chunk()
                last_yield = now

        if cancelled.is_set():
            return
        yield self.chunk()


def reproject(
    source_image: Image.Image,
    projection: Projection,
    bounds_sampling_points: Iterable[LonLat],
    surfaces: PillowSurfaces,
    cancelled: Cancellation,
    longitude_offset: float = 0.0,
    yield_interval: float = YIELD_INTERVAL,
    tolerance: float = ROUND_TRIP_TOLERANCE,
) -> Iterator[Chunk]:
    "Set up a reprojection (raising straight away if that is impossible) and run it lazily"
    job = Reprojection(
        source_image, projection, bounds_sampling_points, surfaces,
        longitude_offset=longitude_offset, tolerance=tolerance)
    return job.chunks(cancelled, yield_interval)
