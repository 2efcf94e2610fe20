'''
Raster surfaces: Pillow images in, numpy RGBA buffers for the maths, Pillow images out.
'''

import hashlib
import os
from io import BytesIO
from pathlib import Path

import numpy as np
import requests
from PIL import Image

from helpers import SurfaceError

CACHE = os.path.expanduser(os.environ.get('XDG_CACHE_HOME', '~/.cache'))
STORAGE = CACHE + "/shmercator/{digest}{suffix}"


class PillowSurfaces:
    def __init__(self, user_agent: str | None = None, cache: bool = True):
        self.user_agent = user_agent
        self.cache = cache

    def create_surface(self, width: int, height: int) -> Image.Image:
        if width <= 0 or height <= 0:
            raise SurfaceError(f'cannot create a {width}x{height} surface')
        return Image.new('RGBA', (width, height))

    def grab_file(self, url: str, redownload=False) -> bytes:
        "Fetch a URL, keeping a copy in the cache folder"
        out = STORAGE.format(
            digest=hashlib.sha1(url.encode()).hexdigest(),
            suffix=Path(url.split('?')[0]).suffix)

        if self.cache and not redownload and os.path.isfile(out):
            with open(out, 'rb') as fin:
                return fin.read()

        headers = {}
        if self.user_agent:
            headers['User-Agent'] = self.user_agent
        r = requests.get(url, headers=headers)
        r.raise_for_status()

        if self.cache:
            folder, _ = os.path.split(out)
            os.makedirs(folder, exist_ok=True)
            with open(out, 'wb') as fout:
                fout.write(r.content)
        return r.content

    def load_image(self, source: str | os.PathLike) -> Image.Image:
        "Load an image from a path or an http(s) URL"
        if isinstance(source, str) and source.startswith(('http://', 'https://')):
            source = BytesIO(self.grab_file(source))
        try:
            image = Image.open(source)
            image.load()
        except OSError as e:
            raise SurfaceError(f'could not load image: {e}') from e
        return image

    def read_pixels(self, image: Image.Image) -> np.ndarray:
        "Draw an image onto a fresh surface and read it back as an RGBA buffer"
        surface = self.create_surface(image.width, image.height)
        surface.paste(image.convert('RGBA'))
        return np.array(surface, dtype=np.uint8)

    def blank_pixels(self, width: int, height: int) -> np.ndarray:
        "Fully transparent buffer"
        if width <= 0 or height <= 0:
            raise SurfaceError(f'cannot create a {width}x{height} buffer')
        return np.zeros((height, width, 4), dtype=np.uint8)

    def write_pixels(self, pixels: np.ndarray) -> Image.Image:
        "Snapshot a buffer as an image; later writes to the buffer do not show through"
        return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8).copy())

    def export(self, surface: Image.Image, out: str | os.PathLike):
        folder = os.path.dirname(os.fspath(out))
        if folder:
            os.makedirs(folder, exist_ok=True)
        surface.save(out)
