import numpy as np
import pytest
from PIL import Image

from projections import Projection

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
YELLOW = (255, 255, 0, 255)
BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def make_pixels(width, height, ordered_pixels):
    "RGBA buffer from pixels in English reading order"
    return np.array(ordered_pixels, dtype=np.uint8).reshape((height, width, 4))


def gradient(width, height):
    "Red grows to the right, green grows downwards"
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = (np.arange(width) * 4)[None, :]
    pixels[..., 1] = (np.arange(height) * 4)[:, None]
    pixels[..., 3] = 255
    return pixels


class Degrees(Projection):
    "Plate carrée in degrees, with longitudes outside [-180, 180] wrapping on the way back"

    def raw_forward(self, lon, lat):
        return lon, lat

    def raw_invert(self, x, y):
        return (x + 180) % 360 - 180, y


class Nowhere(Projection):
    "Defined nowhere at all"

    def raw_forward(self, lon, lat):
        return np.full(np.shape(lon), np.inf), np.full(np.shape(lat), np.inf)

    def raw_invert(self, x, y):
        return np.full(np.shape(x), np.nan), np.full(np.shape(y), np.nan)


class OneWay(Degrees):
    can_invert = False


@pytest.fixture
def mercator_image():
    "A square, uncropped Mercator world (to about 85 degrees)"
    return Image.fromarray(gradient(64, 64))
