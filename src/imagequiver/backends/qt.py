"""
backends/qt.py

pyqtgraph rendering backend (install with the ``qt`` extra).

Every quad is a `pg.ImageItem` (row-major) parented to a `pg.ItemGroup`
that lives in a PlotItem or ViewBox. The image is placed with a QTransform
built from the quad corners, so the texture is drawn once per quad and moved
by Qt rather than resampled by us. Transparency is baked into an RGBA ubyte
image because ImageItem has no separate alpha channel.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pyqtgraph as pg
from pyqtgraph.Qt import QtGui, isQObjectAlive

from imagequiver import geometry
from imagequiver.backends.base import RenderBackend, as_display_rgb, fit_alpha, normalize_alpha
from imagequiver.config import ALPHA_LIMITS

logger = logging.getLogger(__name__)

GROUP_PROPERTIES = {
    'visible': True,
    'tag': '',
    'display_name': '',
    'user_data': None,
    'hit_test': True,
    'button_down_fcn': None,
    'delete_fcn': None,
    'zorder': 0.0,
}

_DEGENERATE_AREA = 1e-300


class _SurfaceState:
    __slots__ = ('group', 'corners', 'shape', 'texture', 'alpha', 'visible', 'degenerate')

    def __init__(self, group):
        self.group = group
        self.corners: Optional[Tuple[np.ndarray, np.ndarray]] = None
        self.shape: Optional[Tuple[int, int]] = None
        self.texture = None
        self.alpha = None
        self.visible = False
        self.degenerate = True


def texture_to_rgba(texture, alpha, limits, colormap) -> np.ndarray:
    """Build an RGBA ubyte image from indexed/RGB texture data and alpha."""
    tex = np.asarray(texture)
    if tex.ndim == 2:
        vals = tex.astype(float)
        finite = np.isfinite(vals)
        lo = np.min(vals[finite]) if finite.any() else 0.0
        hi = np.max(vals[finite]) if finite.any() else 1.0
        span = hi - lo if hi > lo else 1.0
        scaled = np.where(finite, (vals - lo) / span, 0.0)
        rgba = colormap.map(scaled, mode='byte')
    else:
        rgb = as_display_rgb(tex)
        if rgb.dtype != np.uint8:
            rgb = np.round(rgb * 255).astype(np.uint8)
        rgba = np.empty(rgb.shape[:2] + (4,), dtype=np.uint8)
        rgba[:, :, :3] = rgb
    a = fit_alpha(normalize_alpha(alpha if alpha is not None else 1.0, limits), rgba.shape[:2])
    rgba[:, :, 3] = np.round(np.broadcast_to(a, rgba.shape[:2]) * 255).astype(np.uint8)
    return rgba


class PyQtGraphBackend(RenderBackend):
    def __init__(self, colormap: str = 'viridis'):
        super().__init__()
        self.colormap = pg.colormap.get(colormap)
        self._surfaces: Dict[Any, _SurfaceState] = {}
        self._groups: Dict[Any, Dict[str, Any]] = {}
        self._alpha_limits: Dict[int, Tuple[float, float]] = {}
        self._widgets: List[Any] = []

    # -- parents -------------------------------------------------------------
    def default_parent(self):
        pg.mkQApp()
        widget = pg.PlotWidget()
        widget.getPlotItem().setAspectLocked(True)
        # keep a reference so the widget outlives this call
        self._widgets.append(widget)
        return widget.getPlotItem()

    def set_alpha_limits(self, parent, limits) -> None:
        limits = (float(limits[0]), float(limits[1]))
        if self._alpha_limits.get(id(parent)) == limits:
            return
        self._alpha_limits[id(parent)] = limits
        for im, st in self._surfaces.items():
            if self._groups.get(st.group, {}).get('parent') is parent:
                self._render(im, st)

    # -- groups --------------------------------------------------------------
    def create_group(self, parent):
        group = pg.ItemGroup()
        parent.addItem(group)
        self._groups[group] = {'parent': parent, 'properties': dict(GROUP_PROPERTIES)}
        parent.destroyed.connect(lambda *args, g=group: self._on_parent_destroyed(g))
        return group

    def _on_parent_destroyed(self, group) -> None:
        # Qt has already deleted the items; only our bookkeeping is left
        if group not in self._groups:
            return
        self._remove_group(group)
        self._notify_destroyed(group)

    def is_group_valid(self, group) -> bool:
        return group in self._groups and isQObjectAlive(group)

    def _remove_group(self, group) -> None:
        for im in [h for h, st in self._surfaces.items() if st.group is group]:
            self.destroy(im)
        info = self._groups.pop(group)
        if isQObjectAlive(group) and group.scene() is not None:
            parent = info['parent']
            if isQObjectAlive(parent):
                parent.removeItem(group)
            else:
                group.scene().removeItem(group)

    def set_group_property(self, group, name: str, value) -> None:
        props = self._groups[group]['properties']
        if name not in props:
            raise AttributeError(f"ItemGroup has no property {name!r}")
        props[name] = value
        if name == 'visible':
            group.setVisible(bool(value))
        elif name == 'zorder':
            group.setZValue(float(value))
        elif name == 'tag':
            group.setObjectName(str(value))

    def get_group_property(self, group, name: str):
        props = self._groups[group]['properties']
        if name not in props:
            raise AttributeError(f"ItemGroup has no property {name!r}")
        return props[name]

    # -- surfaces ------------------------------------------------------------
    def create_surface(self, parent):
        im = pg.ImageItem(axisOrder='row-major')
        im.setParentItem(parent)
        im.setVisible(False)
        self._surfaces[im] = _SurfaceState(parent)
        return im

    def destroy(self, handle) -> None:
        st = self._surfaces.pop(handle, None) if handle is not None else None
        if st is None or not isQObjectAlive(handle):
            return
        scene = handle.scene()
        if scene is not None:
            scene.removeItem(handle)
        else:
            handle.setParentItem(None)

    def is_valid(self, handle) -> bool:
        st = self._surfaces.get(handle) if handle is not None else None
        if st is None or not isQObjectAlive(handle):
            return False
        return handle.parentItem() is st.group

    def set_geometry(self, handle, xs, ys, zs) -> None:
        st = self._surfaces[handle]
        st.corners = (np.asarray(xs, dtype=float), np.asarray(ys, dtype=float))
        st.degenerate = abs(geometry.quad_area(*st.corners)) < _DEGENERATE_AREA
        self._place(handle, st)

    def set_attributes(self, handles, **attrs) -> None:
        for im in handles:
            if not self.is_valid(im):
                continue
            st = self._surfaces[im]
            if 'texture' in attrs:
                st.texture = attrs['texture']
            if 'alpha' in attrs:
                st.alpha = attrs['alpha']
            if 'texture' in attrs or 'alpha' in attrs:
                self._render(im, st)
            if 'visible' in attrs:
                st.visible = bool(attrs['visible'])
                self._place(im, st)

    def _render(self, im, st: _SurfaceState) -> None:
        if st.texture is None:
            return
        parent = self._groups[st.group]['parent']
        limits = self._alpha_limits.get(id(parent), ALPHA_LIMITS)
        rgba = texture_to_rgba(st.texture, st.alpha, limits, self.colormap)
        im.setImage(rgba, autoLevels=False)
        st.shape = rgba.shape[:2]
        self._place(im, st)

    def _place(self, im, st: _SurfaceState) -> None:
        ready = st.corners is not None and st.shape is not None and not st.degenerate
        if ready:
            h, w = st.shape
            m = geometry.quad_affine(st.corners[0], st.corners[1], w, h)
            im.setTransform(QtGui.QTransform(m[0, 0], m[1, 0], m[0, 1], m[1, 1],
                                             m[0, 2], m[1, 2]))
        im.setVisible(bool(ready and st.visible))
