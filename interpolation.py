'''
Bilinear interpolation over RGBA pixel buffers.

Buffers are numpy arrays of shape (height, width, 4). Coordinates outside the buffer
are clamped, so the edge pixels are effectively repeated forever; there is no
wraparound and no transparent border.
'''

import numpy as np

from coords import PixelCoordinate, RGBA


def bilinear_interpolate_many(pixels: np.ndarray, xs, ys) -> np.ndarray:
    "Sample at each (xs[i], ys[i]); returns a uint8 array of shape (n, 4)"
    height, width = pixels.shape[:2]
    xs = np.asarray(xs, dtype=float).reshape(-1)
    ys = np.asarray(ys, dtype=float).reshape(-1)

    x0 = np.floor(xs)
    y0 = np.floor(ys)
    tx = (xs - x0)[:, None]
    ty = (ys - y0)[:, None]

    cx0 = np.clip(x0, 0, width - 1).astype(np.intp)
    cx1 = np.clip(x0 + 1, 0, width - 1).astype(np.intp)
    cy0 = np.clip(y0, 0, height - 1).astype(np.intp)
    cy1 = np.clip(y0 + 1, 0, height - 1).astype(np.intp)

    c00 = pixels[cy0, cx0].astype(float)
    c10 = pixels[cy0, cx1].astype(float)
    c01 = pixels[cy1, cx0].astype(float)
    c11 = pixels[cy1, cx1].astype(float)

    top = c00 * (1 - tx) + c10 * tx
    bottom = c01 * (1 - tx) + c11 * tx
    # round half up
    return np.floor(top * (1 - ty) + bottom * ty + 0.5).astype(np.uint8)


def bilinear_interpolate(pixels: np.ndarray, point: PixelCoordinate) -> RGBA:
    '''
    Blend the four pixels around a fractional coordinate.
    At integer coordinates this is exactly the pixel there.
    '''
    r, g, b, a = bilinear_interpolate_many(pixels, [point[0]], [point[1]])[0]
    return int(r), int(g), int(b), int(a)
