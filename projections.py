'''
Map projections, as objects which turn longitude/latitude into pixels and back.

A projection works on a unit sphere and is then scaled and translated onto an image,
with y growing downwards. Anything a projection cannot represent comes back as NaN
(for arrays) or None (for single points).
'''

from dataclasses import dataclass, field
from math import pi
from typing import Callable

import numpy as np
from pyproj import Proj

from coords import LonLat, PixelCoordinate


class Projection:
    "Base class: subclasses provide the unit-sphere maths in raw_forward and raw_invert."

    can_invert = True

    def __init__(self):
        self.scale = 1.0
        self.translate = (0.0, 0.0)

    def fit(self, scale: float, translate: tuple[float, float]):
        self.scale = scale
        self.translate = translate
        return self

    def raw_forward(self, lon: np.ndarray, lat: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        "degrees -> unit-sphere plane, y up"
        raise NotImplementedError

    def raw_invert(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        "unit-sphere plane, y up -> degrees"
        raise NotImplementedError

    def project(self, lon, lat):
        lon = np.asarray(lon, dtype=float)
        lat = np.asarray(lat, dtype=float)
        with np.errstate(all='ignore'):
            x, y = self.raw_forward(lon, lat)
            tx, ty = self.translate
            x = tx + self.scale * np.asarray(x, dtype=float)
            y = ty - self.scale * np.asarray(y, dtype=float)
        return _undefined_as_nan(x, y)

    def unproject(self, x, y):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        tx, ty = self.translate
        with np.errstate(all='ignore'):
            lon, lat = self.raw_invert((x - tx) / self.scale, (ty - y) / self.scale)
        return _undefined_as_nan(np.asarray(lon, dtype=float), np.asarray(lat, dtype=float))

    def forward(self, lonlat: LonLat) -> PixelCoordinate | None:
        x, y = self.project(lonlat[0], lonlat[1])
        if np.isnan(x):
            return None
        return PixelCoordinate(float(x), float(y))

    def invert(self, point: PixelCoordinate) -> LonLat | None:
        lon, lat = self.unproject(point[0], point[1])
        if np.isnan(lon):
            return None
        return LonLat(float(lon), float(lat))


def _undefined_as_nan(a: np.ndarray, b: np.ndarray):
    bad = ~(np.isfinite(a) & np.isfinite(b))
    return np.where(bad, np.nan, a), np.where(bad, np.nan, b)


class ProjProjection(Projection):
    "Any projection PROJ knows, on a sphere of radius 1"

    def __init__(self, definition: str):
        super().__init__()
        self.definition = definition
        self.proj = Proj(f'{definition} +R=1')

    @property
    def can_invert(self):
        return self.proj.has_inverse

    def raw_forward(self, lon, lat):
        x, y = self.proj(np.atleast_1d(lon), np.atleast_1d(lat), errcheck=False)
        return np.reshape(x, np.shape(lon)), np.reshape(y, np.shape(lat))

    def raw_invert(self, x, y):
        lon, lat = self.proj(np.atleast_1d(x), np.atleast_1d(y), inverse=True, errcheck=False)
        return np.reshape(lon, np.shape(x)), np.reshape(lat, np.shape(y))

    def __repr__(self):
        return f'ProjProjection({self.definition!r})'


class MercatorProjection(Projection):
    '''
    Spherical Mercator. The poles themselves are undefined, as in PROJ;
    anything close to them lands far outside any real image.
    '''

    POLE_EPSILON = 1e-10

    def raw_forward(self, lon, lat):
        phi = np.radians(lat)
        y = np.log(np.tan(pi/4 + phi/2))
        y = np.where(np.abs(phi) >= pi/2 - self.POLE_EPSILON, np.nan, y)
        return np.radians(lon), y

    def raw_invert(self, x, y):
        lon = np.degrees(x)
        lat = np.degrees(2 * np.arctan(np.exp(y)) - pi/2)
        return np.where(np.abs(lon) > 180, np.nan, lon), lat


def source_mercator(width: int, height: int, longitude_offset: float = 0.0) -> MercatorProjection:
    "Mercator fitted to a whole-world source image of the given size"
    offset = longitude_offset * width / 360
    return MercatorProjection().fit(width / (2*pi), (width/2 - offset, height/2))


#% PROJECTION TABLE


STANDARD_CRITICAL_POINTS = (
    LonLat(0, 90),  # north pole
    LonLat(0, -90),  # south pole
    LonLat(-180, 0),  # antimeridian (west)
    LonLat(180, 0),  # antimeridian (east)
)


@dataclass(slots=True)
class ProjectionConfig:
    name: str
    create: Callable[[], Projection]
    bounds_sampling_points: tuple[LonLat, ...] = STANDARD_CRITICAL_POINTS
    longitude_offset: float = 0.0
    aliases: tuple[str, ...] = field(default_factory=tuple)


def _proj(definition):
    return lambda: ProjProjection(definition)


_CONFIGS = [
    ProjectionConfig('Eckert IV', _proj('+proj=eck4'), aliases=('eckert_iv',)),
    ProjectionConfig('Gall-Peters', _proj('+proj=cea +lat_ts=45')),
    ProjectionConfig('Goode Homolosine', _proj('+proj=igh')),
    ProjectionConfig('Hobo-Dyer', _proj('+proj=cea +lat_ts=37.5')),
    ProjectionConfig('Mollweide', _proj('+proj=moll')),
    # a square whose edge midpoints are on the equator
    ProjectionConfig('Peirce Quincuncial', _proj('+proj=peirce_q +shape=square'), (
        LonLat(0, 0), LonLat(90, 0), LonLat(180, 0), LonLat(-90, 0),
    )),
    ProjectionConfig('Plate Carrée (Equirectangular)', _proj('+proj=eqc'), aliases=('plate_carree', 'equirectangular')),
    ProjectionConfig('Robinson', _proj('+proj=robin')),
    ProjectionConfig('Van der Grinten', _proj('+proj=vandg')),
    ProjectionConfig('Winkel-Tripel', _proj('+proj=wintri')),
]

PROJECTIONS: dict[str, ProjectionConfig] = {c.name: c for c in _CONFIGS}


def slug(name: str) -> str:
    "'Plate Carrée (Equirectangular)' -> 'plate_carrée_equirectangular'"
    return '_'.join(''.join(ch if ch.isalnum() else ' ' for ch in name.lower()).split())


def lookup(name: str) -> ProjectionConfig:
    "Find a projection by its display name, its slug or an alias"
    if name in PROJECTIONS:
        return PROJECTIONS[name]
    for config in _CONFIGS:
        if slug(name) == slug(config.name) or name in config.aliases:
            return config
    raise KeyError(name)
