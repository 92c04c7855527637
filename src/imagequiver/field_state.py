"""
field_state.py

Storage and validation for the raw vector field and its texture.

The field state never computes geometry. Setters validate their input, refuse
bad values without touching the stored state, and leave it to the owner to
decide when a refresh should run. Shape agreement between X, Y, U and V is
deliberately not enforced here so the four arrays can be updated one at a time.
"""
from __future__ import annotations

import logging
import numbers
import os
from typing import Optional, Tuple

import numpy as np

from imagequiver.config import QUIVER_DEFAULTS
from imagequiver.errors import InvalidFieldData, InvalidImageFormat, InvalidScaleFactor
from imagequiver.image_loader import ImageLoader, PillowImageLoader, ind2rgb

logger = logging.getLogger(__name__)

_NUMERIC_KINDS = 'iuf'


def _is_numeric(arr: np.ndarray) -> bool:
    return arr.dtype.kind in _NUMERIC_KINDS


def as_field_array(value, name: str) -> np.ndarray:
    """Validate ``value`` as numeric and return it as a float64 copy."""
    arr = np.asarray(value)
    if not _is_numeric(arr):
        raise InvalidFieldData(f"{name} must be numeric, got dtype {arr.dtype}")
    return np.array(arr, dtype=float)


def as_texture(value) -> np.ndarray:
    """Validate numeric image data: indexed (2-D) or RGB (M x N x 3).

    Scalars and 1-D arrays are promoted to a single-row indexed image.
    """
    img = np.asarray(value)
    if not _is_numeric(img):
        raise InvalidImageFormat(f"CData must be numeric, got dtype {img.dtype}")
    if img.ndim < 2:
        img = np.atleast_2d(img)
    if not (img.ndim == 2 or (img.ndim == 3 and img.shape[2] == 3)):
        raise InvalidImageFormat(
            f"CData must be either Indexed or RGB, got shape {img.shape}")
    if img.shape[0] == 0 or img.shape[1] == 0:
        raise InvalidImageFormat(f"CData must not be empty, got shape {img.shape}")
    return np.array(img)


def as_scale_factor(value) -> float:
    """Validate a real numeric scalar (bools are rejected)."""
    if isinstance(value, (bool, np.bool_)):
        raise InvalidScaleFactor("Scaling factor must be a numeric scalar")
    if isinstance(value, numbers.Real):
        return float(value)
    arr = np.asarray(value)
    if arr.size != 1 or not _is_numeric(arr):
        raise InvalidScaleFactor("Scaling factor must be a numeric scalar")
    return float(arr.reshape(()))


class FieldState:
    """Texture, transparency and vector field data of one image quiver.

    Attributes:
    - cdata: texture, indexed (M x N) or RGB (M x N x 3)
    - alpha_data: explicit transparency mask, or None to derive it from NaNs
    - xdata, ydata: sample positions
    - udata, vdata: sample displacements
    - auto_scale_factor: multiplier applied to every displacement magnitude
    """

    def __init__(self, loader: Optional[ImageLoader] = None):
        self.loader = loader if loader is not None else PillowImageLoader()
        self.cdata: Optional[np.ndarray] = None
        self.alpha_data: Optional[np.ndarray] = QUIVER_DEFAULTS['alpha_data']
        self.xdata = np.empty((0,))
        self.ydata = np.empty((0,))
        self.udata = np.empty((0,))
        self.vdata = np.empty((0,))
        self.auto_scale_factor = float(QUIVER_DEFAULTS['auto_scale_factor'])

    # -- texture -----------------------------------------------------------
    def set_texture(self, value) -> None:
        """Set the texture from numeric data, a file path or a URL.

        Images resolved through the loader are expanded to RGB when they come
        with a colour map, and their alpha channel (if any) replaces the
        transparency mask. A failed load leaves the state untouched.
        """
        alpha = None
        if isinstance(value, (str, os.PathLike)):
            loaded = self.loader.load(value)
            img = loaded.pixels
            if loaded.colormap is not None and np.ndim(img) == 2:
                img = ind2rgb(img, loaded.colormap)
            alpha = loaded.alpha
            logger.debug('loaded texture %s with shape %s', value, np.shape(img))
            value = img

        self.cdata = as_texture(value)
        if alpha is not None:
            self.alpha_data = np.asarray(alpha, dtype=float)

    # -- transparency ------------------------------------------------------
    def set_alpha_data(self, value) -> None:
        """Set an explicit transparency mask (numeric or boolean); None clears it."""
        if value is None:
            self.alpha_data = None
            return
        arr = np.asarray(value)
        if not (_is_numeric(arr) or arr.dtype.kind == 'b'):
            raise InvalidFieldData("AlphaData must be numeric")
        self.alpha_data = arr.astype(float)

    # -- vector field ------------------------------------------------------
    def set_xdata(self, value) -> None:
        self.xdata = as_field_array(value, 'XData')

    def set_ydata(self, value) -> None:
        self.ydata = as_field_array(value, 'YData')

    def set_udata(self, value) -> None:
        self.udata = as_field_array(value, 'UData')

    def set_vdata(self, value) -> None:
        self.vdata = as_field_array(value, 'VData')

    def set_auto_scale_factor(self, value) -> None:
        self.auto_scale_factor = as_scale_factor(value)

    # -- derived -----------------------------------------------------------
    @property
    def shape(self) -> Tuple[int, ...]:
        """Shape of the sample grid (the shape of XData)."""
        return self.xdata.shape

    @property
    def sample_count(self) -> int:
        return int(self.xdata.size)

    def shapes(self) -> Tuple[Tuple[int, ...], ...]:
        return (self.xdata.shape, self.ydata.shape,
                self.udata.shape, self.vdata.shape)

    def shapes_consistent(self) -> bool:
        """True when X, Y, U and V all have exactly the same shape."""
        ref = self.xdata.shape
        return all(s == ref for s in self.shapes())
