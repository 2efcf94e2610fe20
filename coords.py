'''
Coordinate types, and parsing of longitudes given on the command-line.
'''

import argparse
import re
from typing import NamedTuple


class LonLat(NamedTuple):
    "Geographic position in degrees"
    lon: float
    lat: float


class PixelCoordinate(NamedTuple):
    "Position in an image plane; may be fractional or out of bounds"
    x: float
    y: float


RGBA = tuple[int, int, int, int]

COORD = r'''
([-+]?)  # sign
(?:
    (\d+) \s* °  # degrees
\s* (\d+) \s* [′']  # minutes
\s* (?: (\d+ (?:\.\d+)?) \s* [″\"])?  # seconds
|
    (\d+ (?:\.\d+)?) \s* °?  # decimal
)
'''
LETTER = r'\s*([NSEW])?'

LONGITUDE = re.compile(rf'^\s*{COORD}{LETTER}\s*$', re.VERBOSE | re.IGNORECASE)


def _process_coord(sign: str, degrees: str | None, minutes: str | None, seconds: str | None, decimal: str | None, letter: str | None):
    if decimal is not None:
        result = float(decimal)
    else:
        result = int(degrees)
        result += int(minutes) / 60
        result += float(seconds or 0) / 3600

    letter = (letter or '').upper()
    if sign == '-' or (letter and letter in 'SW'):
        result *= -1

    return result, letter


def parse_longitude(text: str) -> float:
    """
    Parse eg '150E', '30°W', '12° 30′ W' or '-30' into degrees east.
    """
    match = LONGITUDE.match(text)
    if not match:
        raise ValueError(f'{text!r} is not a longitude')

    lon, letter = _process_coord(*match.groups())
    if letter in ('N', 'S'):
        raise ValueError('Invalid compass direction for a longitude')
    if not -180 <= lon <= 180:
        raise ValueError(f'Longitude {lon} is out of range')
    return lon


def longitude(text: str) -> float:
    "argparse type for longitudes"
    try:
        return parse_longitude(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def add_coordinate_options(parser: argparse.ArgumentParser):
    coords = parser.add_argument_group('coordinates', description='''\
    The source image is assumed to be a whole-world Mercator map, cropped near the poles
    at most. If it is not centred on the prime meridian, give its central meridian
    with --centre, eg `-c 150E` for a Pacific-centred map.
    ''')
    coords.add_argument('--centre', '-c', type=longitude, default=0.0, metavar='LON',
                        help='Longitude at the centre of the source image.')
    return coords
