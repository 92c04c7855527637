"""
backends/base.py

Contract between the layout engine and whatever draws the textured quads.

A backend manages three kinds of objects:
- parents (axes, view boxes ...) that own groups and carry alpha limits
- groups, containers holding all the quads of one quiver
- surfaces, one textured quad each

Handles are opaque to the engine. Backends must tolerate the engine asking
about handles that have been destroyed behind its back (`is_valid` returns
False for them).
"""
from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DestroyCallback = Callable[[Any], None]


class RenderBackend(ABC):
    """Abstract rendering backend.

    Subclasses implement surface and group management. The destruction
    subscription registry lives here so every backend notifies observers the
    same way: each callback fires once, when its group goes away.
    """

    def __init__(self):
        self._subscriptions: Dict[int, Tuple[Any, DestroyCallback]] = {}
        self._tokens = itertools.count(1)

    # -- surfaces ----------------------------------------------------------
    @abstractmethod
    def create_surface(self, parent) -> Any:
        """Create an empty textured quad inside ``parent`` (a group)."""

    @abstractmethod
    def destroy(self, handle) -> None:
        """Destroy a surface. Destroying an invalid handle is a no-op."""

    @abstractmethod
    def is_valid(self, handle) -> bool:
        """True while ``handle`` refers to a live surface."""

    @abstractmethod
    def set_geometry(self, handle, xs: np.ndarray, ys: np.ndarray,
                     zs: np.ndarray) -> None:
        """Place a surface on the 2x2 corner grid (rows follow texture rows)."""

    @abstractmethod
    def set_attributes(self, handles: Iterable, **attrs) -> None:
        """Apply shared display attributes to many surfaces at once.

        Recognised keys: texture, alpha, visible, face_mode, edge_mode.
        """

    # -- groups ------------------------------------------------------------
    @abstractmethod
    def create_group(self, parent) -> Any:
        ...

    @abstractmethod
    def _remove_group(self, group) -> None:
        """Tear down ``group`` and every surface it holds."""

    @abstractmethod
    def is_group_valid(self, group) -> bool:
        ...

    @abstractmethod
    def set_group_property(self, group, name: str, value) -> None:
        """Forward a container property. Unknown names raise AttributeError."""

    @abstractmethod
    def get_group_property(self, group, name: str) -> Any:
        ...

    # -- parents -----------------------------------------------------------
    @abstractmethod
    def set_alpha_limits(self, parent, limits: Tuple[float, float]) -> None:
        ...

    @abstractmethod
    def default_parent(self) -> Any:
        """Parent used when the caller does not provide one."""

    # -- destruction notification -------------------------------------------
    def destroy_group(self, group) -> None:
        """Destroy ``group`` and notify its observers."""
        if not self.is_group_valid(group):
            return
        self._remove_group(group)
        self._notify_destroyed(group)

    def subscribe_destroyed(self, group, callback: DestroyCallback) -> int:
        """Call ``callback(group)`` once ``group`` is destroyed. Returns a token."""
        token = next(self._tokens)
        self._subscriptions[token] = (group, callback)
        return token

    def unsubscribe(self, token: int) -> None:
        self._subscriptions.pop(token, None)

    def _notify_destroyed(self, group) -> None:
        fired = [(tok, cb) for tok, (grp, cb) in self._subscriptions.items()
                 if grp is group]
        for tok, cb in fired:
            # drop first so a callback that unsubscribes is harmless
            self._subscriptions.pop(tok, None)
            logger.debug('group %r destroyed, notifying subscriber %d', group, tok)
            cb(group)


def as_display_rgb(texture: np.ndarray) -> np.ndarray:
    """RGB data a raster backend accepts: uint8, or float in [0, 1] without NaN."""
    if texture.dtype == np.uint8:
        return texture
    if np.issubdtype(texture.dtype, np.integer):
        return np.clip(texture, 0, 255).astype(np.uint8)
    return np.clip(np.nan_to_num(texture.astype(float)), 0.0, 1.0)


def normalize_alpha(alpha, limits: Tuple[float, float]):
    """Map alpha data through the parent's alpha limits onto [0, 1]."""
    lo, hi = float(limits[0]), float(limits[1])
    span = hi - lo if hi > lo else 1.0
    scaled = np.clip((np.asarray(alpha, dtype=float) - lo) / span, 0.0, 1.0)
    if scaled.ndim == 0:
        return float(scaled)
    return scaled


def fit_alpha(alpha, shape: Tuple[int, int]):
    """Resample a per-pixel alpha grid onto a texture of ``shape`` (rows, cols).

    Transparency is mapped over the whole quad independently of the texture
    size, so a mask on a different grid is stretched with nearest-neighbour
    index scaling. Scalars pass through unchanged; an empty mask is opaque.
    """
    a = np.asarray(alpha, dtype=float)
    if a.ndim == 0:
        return float(a)
    if a.size == 0:
        return 1.0
    a = np.atleast_2d(a)
    if a.ndim > 2:
        a = a.reshape(a.shape[0], a.shape[1], -1)[:, :, 0]
    rows, cols = int(shape[0]), int(shape[1])
    if a.shape == (rows, cols):
        return a
    r = (np.arange(rows) * a.shape[0]) // rows
    c = (np.arange(cols) * a.shape[1]) // cols
    return a[r[:, None], c[None, :]]
