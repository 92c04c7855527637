"""
image_loader.py

Resolves textures given as file paths or URLs into numeric arrays.

Pillow decodes the image; http(s) URLs are fetched with requests. The loader
returns the raw pixels plus an optional colour map (palette images) and an
optional alpha channel, mirroring what the field state needs to build a
texture and its transparency mask.
"""
from __future__ import annotations

import io
import logging
import os
from typing import NamedTuple, Optional, Protocol, Union
from urllib.parse import urlparse

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from imagequiver.config import IMAGE_LOADER
from imagequiver.errors import ImageLoadError, ImageNotFoundError

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike]


class LoadedImage(NamedTuple):
    pixels: np.ndarray
    colormap: Optional[np.ndarray] = None
    alpha: Optional[np.ndarray] = None


class ImageLoader(Protocol):
    def load(self, source: Source) -> LoadedImage:
        ...


def is_url(source) -> bool:
    """True when ``source`` is a string with an http(s) scheme."""
    if not isinstance(source, str):
        return False
    return urlparse(source).scheme.lower() in IMAGE_LOADER['url_schemes']


def ind2rgb(indices, colormap) -> np.ndarray:
    """Expand an indexed image into float RGB using ``colormap`` (k x 3).

    Indices past the end of the map are clipped to the last entry.
    """
    cmap = np.asarray(colormap, dtype=float)
    idx = np.clip(np.asarray(indices).astype(int), 0, cmap.shape[0] - 1)
    return cmap[idx]


def _normalize_alpha(alpha: np.ndarray) -> np.ndarray:
    if np.issubdtype(alpha.dtype, np.integer):
        return alpha.astype(float) / float(np.iinfo(alpha.dtype).max)
    return alpha.astype(float)


def decode_image(img: Image.Image) -> LoadedImage:
    """Split a Pillow image into pixels, colour map and alpha channel."""
    mode = img.mode
    if mode == 'P':
        indices = np.asarray(img)
        palette = img.getpalette() or []
        cmap = np.asarray(palette, dtype=float).reshape(-1, 3) / 255.0
        alpha = None
        transparency = img.info.get('transparency')
        if isinstance(transparency, int):
            alpha = (indices != transparency).astype(float)
        elif isinstance(transparency, (bytes, bytearray)):
            table = np.frombuffer(bytes(transparency), dtype=np.uint8)
            lut = np.full(cmap.shape[0], 255, dtype=np.uint8)
            lut[:min(len(table), len(lut))] = table[:len(lut)]
            alpha = lut[np.clip(indices, 0, len(lut) - 1)].astype(float) / 255.0
        return LoadedImage(indices, cmap, alpha)

    if mode in ('L', 'I', 'F', 'RGB'):
        return LoadedImage(np.asarray(img))

    if mode in ('LA', 'RGBA'):
        arr = np.asarray(img)
        pixels = arr[:, :, 0] if mode == 'LA' else arr[:, :, :3]
        return LoadedImage(pixels, None, _normalize_alpha(arr[:, :, -1]))

    # everything else (CMYK, YCbCr, 1, I;16 ...) goes through RGB(A)
    has_alpha = 'A' in img.getbands() or 'transparency' in img.info
    return decode_image(img.convert('RGBA' if has_alpha else 'RGB'))


class PillowImageLoader:
    """Default image loader backed by Pillow and requests."""

    def __init__(self, timeout: float = IMAGE_LOADER['timeout'],
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session

    def load(self, source: Source) -> LoadedImage:
        if is_url(source):
            data = self._fetch(source)
            return self._decode(io.BytesIO(data), source)

        path = os.fspath(source)
        if not os.path.isfile(path):
            raise ImageNotFoundError(f"Image file does not exist: {path}")
        return self._decode(path, path)

    def _fetch(self, url: str) -> bytes:
        getter = self.session.get if self.session is not None else requests.get
        headers = {'User-Agent': IMAGE_LOADER['user_agent']}
        try:
            resp = getter(url, timeout=self.timeout, headers=headers)
        except requests.RequestException as e:
            raise ImageLoadError(f"Unable to fetch image {url}: {e}") from e
        if resp.status_code == 404:
            raise ImageNotFoundError(f"Image URL does not exist: {url}")
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise ImageLoadError(f"Unable to fetch image {url}: {e}") from e
        logger.debug('fetched %d bytes from %s', len(resp.content), url)
        return resp.content

    def _decode(self, fp, label) -> LoadedImage:
        try:
            with Image.open(fp) as img:
                img.load()
                return decode_image(img)
        except UnidentifiedImageError as e:
            raise ImageLoadError(f"Unable to decode image {label}: {e}") from e
        except OSError as e:
            raise ImageLoadError(f"Unable to read image {label}: {e}") from e
