"""
geometry.py

Transform math that turns vector field samples into textured quad corners.
All functions are pure and vectorised over samples with numpy.

Public functions:
- `texture_aspect(cdata)` -> width / height of the texture
- `resolve_alpha(cdata, alpha_data)` -> per-pixel transparency
- `quad_template(aspect)` -> (xx, yy) unit quad
- `quad_corners(x, y, u, v, aspect, scale_factor)` -> (xs, ys), shape (n, 2, 2)

Corner arrays are indexed ``[sample, row, column]``. Rows follow the texture
rows and columns follow the texture columns, so a backend can map the image
onto the quad without further bookkeeping.
"""
from typing import Tuple
import numpy as np

from imagequiver.errors import InvalidImageFormat

# Template row anchored on the sample position (the tail of the vector).
BASE_ROW = 1
# Template row that lands on position + displacement (the tip of the vector).
TIP_ROW = 0


def texture_aspect(cdata) -> float:
    """Return ``columns / rows`` of the first two texture axes."""
    shape = np.shape(cdata)
    if len(shape) < 2:
        raise InvalidImageFormat(f"texture must have at least two dimensions, got shape {shape}")
    return float(shape[1]) / float(shape[0])


def resolve_alpha(cdata, alpha_data=None) -> np.ndarray:
    """Return the transparency used for display.

    An explicit ``alpha_data`` wins and is returned verbatim (as float).
    Otherwise NaN pixels of the first texture plane are transparent (0.0)
    and every other pixel is opaque (1.0).
    """
    if alpha_data is not None:
        return np.asarray(alpha_data, dtype=float)
    img = np.asarray(cdata)
    plane = img[:, :, 0] if img.ndim == 3 else img
    return (~np.isnan(plane.astype(float))).astype(float)


def quad_template(aspect: float) -> Tuple[np.ndarray, np.ndarray]:
    """Unit quad: columns at x = -aspect/2, +aspect/2; rows at y = 0, 1."""
    return np.meshgrid(np.array([-0.5, 0.5]) * aspect, np.array([0.0, 1.0]))


def orientations(u, v) -> np.ndarray:
    """Rotation angle of every sample's quad.

    The template's forward axis is Y, so a quarter turn is added to the
    displacement angle.
    """
    return np.arctan2(v, u) + np.pi / 2


def magnitudes(u, v, scale_factor: float = 1.0) -> np.ndarray:
    """Quad size of every sample: scale_factor * |(u, v)|."""
    return scale_factor * np.hypot(u, v)


def quad_corners(x, y, u, v, aspect: float,
                 scale_factor: float = 1.0) -> Tuple[np.ndarray, np.ndarray]:
    """Compute the corners of one quad per field sample.

    Parameters:
    - x, y: sample positions (any shape, flattened in C order)
    - u, v: displacements, same number of elements as x
    - aspect: texture width / height
    - scale_factor: multiplier applied to every displacement magnitude

    Returns: (xs, ys), each of shape (n, 2, 2).
    """
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    u = np.asarray(u, dtype=float).ravel()
    v = np.asarray(v, dtype=float).ravel()

    thetas = orientations(u, v)[:, None, None]
    scales = magnitudes(u, v, scale_factor)[:, None, None]

    xx, yy = quad_template(aspect)
    xx = xx[None, :, :] * scales
    yy = yy[None, :, :] * scales

    cosine = np.cos(thetas)
    sine = np.sin(thetas)

    # rotate every corner
    xs = xx * cosine - yy * sine
    ys = xx * sine + yy * cosine

    # shift so the base edge midpoint sits on the sample position
    bx, by = edge_midpoint(xs, ys, BASE_ROW)
    xs += (x - bx)[:, None, None]
    ys += (y - by)[:, None, None]
    return xs, ys


def edge_midpoint(xs: np.ndarray, ys: np.ndarray,
                  row: int) -> Tuple[np.ndarray, np.ndarray]:
    """Midpoint of one template row of every quad, as (mx, my) arrays."""
    return xs[..., row, :].mean(axis=-1), ys[..., row, :].mean(axis=-1)


def quad_area(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Signed area of each (parallelogram) quad, used to spot degenerate ones."""
    ax = xs[..., 0, 1] - xs[..., 0, 0]
    ay = ys[..., 0, 1] - ys[..., 0, 0]
    bx = xs[..., 1, 0] - xs[..., 0, 0]
    by = ys[..., 1, 0] - ys[..., 0, 0]
    return ax * by - ay * bx


def quad_affine(xs: np.ndarray, ys: np.ndarray,
                width: float = 1.0,
                height: float = 1.0) -> np.ndarray:
    """Affine matrix mapping image coordinates onto one quad.

    Image coordinates are ``(col, row)`` with the origin at the outer corner
    of texture row 0 / column 0, ``col`` in [0, width] and ``row`` in
    [0, height]. Returns a 3x3 matrix acting on column vectors.
    """
    x00, y00 = xs[0, 0], ys[0, 0]
    m = np.eye(3)
    m[0, 0] = (xs[0, 1] - x00) / width
    m[1, 0] = (ys[0, 1] - y00) / width
    m[0, 1] = (xs[1, 0] - x00) / height
    m[1, 1] = (ys[1, 0] - y00) / height
    m[0, 2] = x00
    m[1, 2] = y00
    return m
