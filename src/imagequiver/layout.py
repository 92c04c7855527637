"""
layout.py

Turns a FieldState into positioned quads and keeps the pool of backend
surfaces in step with the number of field samples.

Every refresh is a full recompute: all corners are rebuilt in one vectorised
pass, the pool is grown or shrunk to the sample count, and each surface gets
its new corners before the shared texture/transparency attributes are pushed
in one batch.
"""
from __future__ import annotations

import logging
import warnings
from typing import Any, List

import numpy as np

from imagequiver import geometry
from imagequiver.config import ALPHA_LIMITS, SURFACE_STYLE
from imagequiver.errors import DimensionMismatchWarning
from imagequiver.field_state import FieldState

logger = logging.getLogger(__name__)


class QuadLayoutEngine:
    """Owns the surface pool of one quiver.

    `surfaces` is index-aligned with the flattened (C order) field samples.
    Slots may hold handles that the backend has since destroyed; those are
    detected and reallocated on the next refresh.
    """

    def __init__(self, backend, parent, group):
        self.backend = backend
        self.parent = parent
        self.group = group
        self.surfaces: List[Any] = []

    def refresh(self, state: FieldState) -> bool:
        """Recompute every quad and push it to the backend.

        Returns False when the refresh was abandoned because X, Y, U and V
        do not share a shape; the existing surfaces are hidden, not destroyed.
        """
        if state.cdata is None:
            logger.debug('no texture yet, nothing to draw')
            return False

        if not state.shapes_consistent():
            xs, ys, us, vs = state.shapes()
            warnings.warn(
                DimensionMismatchWarning(
                    'Unable to render due to dimension mismatch '
                    f'(XData {xs}, YData {ys}, UData {us}, VData {vs})'),
                stacklevel=2)
            logger.debug('dimension mismatch, hiding %d surfaces', len(self.surfaces))
            self.hide()
            return False

        alpha = geometry.resolve_alpha(state.cdata, state.alpha_data)
        aspect = geometry.texture_aspect(state.cdata)
        xs, ys = geometry.quad_corners(state.xdata, state.ydata,
                                       state.udata, state.vdata,
                                       aspect, state.auto_scale_factor)

        stale = self._reconcile(state.sample_count)
        zs = np.zeros((2, 2))
        for k in range(xs.shape[0]):
            if stale[k]:
                if self.surfaces[k] is not None:
                    # destroyed out-of-band; let the backend drop its bookkeeping
                    self.backend.destroy(self.surfaces[k])
                self.surfaces[k] = self.backend.create_surface(self.group)
            self.backend.set_geometry(self.surfaces[k], xs[k], ys[k], zs)

        self.backend.set_attributes(
            self.surfaces,
            texture=state.cdata,
            alpha=alpha,
            visible=True,
            face_mode=SURFACE_STYLE['face_mode'],
            edge_mode=SURFACE_STYLE['edge_mode'])

        self.backend.set_alpha_limits(self.parent, ALPHA_LIMITS)
        logger.debug('refreshed %d quads (%d allocated)', len(self.surfaces), int(np.sum(stale)))
        return True

    def _reconcile(self, n: int) -> np.ndarray:
        """Resize the pool to ``n`` slots; return a mask of slots to (re)allocate."""
        missing = n - len(self.surfaces)
        if missing > 0:
            self.surfaces.extend([None] * missing)
        elif missing < 0:
            for handle in self.surfaces[n:]:
                self.backend.destroy(handle)
            del self.surfaces[n:]

        return np.array([h is None or not self.backend.is_valid(h)
                         for h in self.surfaces], dtype=bool)

    def live_surfaces(self) -> List[Any]:
        return [h for h in self.surfaces if h is not None and self.backend.is_valid(h)]

    def hide(self) -> None:
        live = self.live_surfaces()
        if live:
            self.backend.set_attributes(live, visible=False)

    def release(self) -> None:
        """Destroy every surface in the pool and empty it."""
        for handle in self.surfaces:
            if handle is not None:
                self.backend.destroy(handle)
        self.surfaces = []
