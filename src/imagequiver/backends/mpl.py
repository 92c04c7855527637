"""
backends/mpl.py

Matplotlib rendering backend.

Each quad is an `AxesImage` whose unit extent is mapped onto the quad corners
with an `Affine2D` chained in front of the axes data transform. A group is a
light container that tracks the images of one quiver and relays a handful of
artist properties to them. Closing the figure destroys its groups, which is
how a quiver learns that its container went away.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from matplotlib.image import AxesImage
from matplotlib.transforms import Affine2D

from imagequiver import geometry
from imagequiver.backends.base import RenderBackend, as_display_rgb, fit_alpha, normalize_alpha
from imagequiver.config import ALPHA_LIMITS

logger = logging.getLogger(__name__)

# Container properties and their defaults
GROUP_PROPERTIES = {
    'visible': True,
    'tag': '',
    'display_name': '',
    'user_data': None,
    'hit_test': True,
    'button_down_fcn': None,
    'delete_fcn': None,
    'zorder': 1.0,
    'clip_on': True,
}

_DEGENERATE_AREA = 1e-300


class QuadGroup:
    """All images of one quiver inside one matplotlib Axes."""

    def __init__(self, axes):
        self.axes = axes
        self.images: List[AxesImage] = []
        self.properties: Dict[str, Any] = dict(GROUP_PROPERTIES)
        self.valid = True
        self.cids: List[int] = []

    def __repr__(self):
        return f"QuadGroup(images={len(self.images)}, valid={self.valid})"


class _SurfaceState:
    __slots__ = ('group', 'visible', 'degenerate', 'alpha')

    def __init__(self, group: QuadGroup):
        self.group = group
        self.visible = False
        self.degenerate = True
        self.alpha = None


class MatplotlibBackend(RenderBackend):
    def __init__(self, interpolation: str = 'nearest'):
        super().__init__()
        self.interpolation = interpolation
        self._surfaces: Dict[AxesImage, _SurfaceState] = {}
        self._alpha_limits: Dict[Any, Tuple[float, float]] = {}
        self._groups: Dict[Any, List[QuadGroup]] = {}

    # -- parents -------------------------------------------------------------
    def default_parent(self):
        import matplotlib.pyplot as plt
        return plt.gca()

    def set_alpha_limits(self, parent, limits) -> None:
        limits = (float(limits[0]), float(limits[1]))
        if self._alpha_limits.get(parent) == limits:
            return
        self._alpha_limits[parent] = limits
        for im, st in self._surfaces.items():
            if im.axes is parent and st.alpha is not None:
                self._apply_alpha(im, st)

    def destroy_axes(self, axes) -> None:
        """Remove an axes from its figure together with every quiver group on it."""
        for group in list(self._groups.get(axes, [])):
            self.destroy_group(group)
        self._groups.pop(axes, None)
        self._alpha_limits.pop(axes, None)
        axes.remove()

    # -- groups --------------------------------------------------------------
    def create_group(self, parent) -> QuadGroup:
        group = QuadGroup(parent)
        self._groups.setdefault(parent, []).append(group)

        canvas = parent.figure.canvas
        group.cids.append(canvas.mpl_connect(
            'close_event', lambda event: self.destroy_group(group)))
        group.cids.append(canvas.mpl_connect(
            'pick_event', lambda event: self._on_pick(group, event)))
        return group

    def is_group_valid(self, group) -> bool:
        return isinstance(group, QuadGroup) and group.valid

    def _remove_group(self, group: QuadGroup) -> None:
        for im in list(group.images):
            self.destroy(im)
        canvas = group.axes.figure.canvas if group.axes.figure is not None else None
        if canvas is not None:
            for cid in group.cids:
                canvas.mpl_disconnect(cid)
        group.cids = []
        group.valid = False
        groups = self._groups.get(group.axes, [])
        if group in groups:
            groups.remove(group)

    def set_group_property(self, group: QuadGroup, name: str, value) -> None:
        if name not in group.properties:
            raise AttributeError(f"QuadGroup has no property {name!r}")
        group.properties[name] = value
        for im in group.images:
            self._apply_group_properties(im, group)

    def get_group_property(self, group: QuadGroup, name: str):
        if name not in group.properties:
            raise AttributeError(f"QuadGroup has no property {name!r}")
        return group.properties[name]

    def _apply_group_properties(self, im: AxesImage, group: QuadGroup) -> None:
        props = group.properties
        im.set_zorder(props['zorder'])
        im.set_gid(props['tag'] or None)
        im.set_label(props['display_name'] or '_nolegend_')
        im.set_clip_on(props['clip_on'])
        pickable = props['hit_test'] and props['button_down_fcn'] is not None
        im.set_picker(True if pickable else None)
        self._apply_visibility(im, self._surfaces[im])

    def _on_pick(self, group: QuadGroup, event) -> None:
        fcn = group.properties['button_down_fcn']
        if callable(fcn) and event.artist in group.images:
            fcn(group, event)

    # -- surfaces ------------------------------------------------------------
    def create_surface(self, parent: QuadGroup) -> AxesImage:
        ax = parent.axes
        im = AxesImage(ax, interpolation=self.interpolation, origin='lower',
                       extent=(0.0, 1.0, 0.0, 1.0))
        im.set_data(np.full((1, 1), np.nan))
        ax.add_image(im)
        parent.images.append(im)
        self._surfaces[im] = _SurfaceState(parent)
        self._apply_group_properties(im, parent)
        return im

    def destroy(self, handle) -> None:
        st = self._surfaces.pop(handle, None) if handle is not None else None
        if st is None:
            return
        if handle in st.group.images:
            st.group.images.remove(handle)
        if handle.axes is not None:
            handle.remove()

    def is_valid(self, handle) -> bool:
        if handle is None or handle not in self._surfaces:
            return False
        # remove() and cla() both detach the image from its axes
        return handle.axes is not None

    def set_geometry(self, handle: AxesImage, xs, ys, zs) -> None:
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        st = self._surfaces[handle]
        st.degenerate = abs(geometry.quad_area(xs, ys)) < _DEGENERATE_AREA
        ax = handle.axes
        if not st.degenerate:
            handle.set_transform(Affine2D(geometry.quad_affine(xs, ys)) + ax.transData)
        ax.update_datalim(np.column_stack([xs.ravel(), ys.ravel()]))
        self._apply_visibility(handle, st)

    def set_attributes(self, handles, **attrs) -> None:
        touched = set()
        for im in handles:
            if not self.is_valid(im):
                continue
            st = self._surfaces[im]
            if 'texture' in attrs:
                tex = np.asarray(attrs['texture'])
                im.set_data(as_display_rgb(tex) if tex.ndim == 3 else tex.astype(float))
            if 'alpha' in attrs:
                st.alpha = attrs['alpha']
                self._apply_alpha(im, st)
            if 'visible' in attrs:
                st.visible = bool(attrs['visible'])
                self._apply_visibility(im, st)
            touched.add(im.axes)

        for ax in touched:
            ax.autoscale_view()
            ax.figure.canvas.draw_idle()

    def _apply_alpha(self, im: AxesImage, st: _SurfaceState) -> None:
        limits = self._alpha_limits.get(im.axes, ALPHA_LIMITS)
        alpha = fit_alpha(normalize_alpha(st.alpha, limits), im.get_array().shape[:2])
        im.set_alpha(alpha)

    def _apply_visibility(self, im: AxesImage, st: Optional[_SurfaceState]) -> None:
        if st is None:
            return
        im.set_visible(st.visible and not st.degenerate
                       and bool(st.group.properties['visible']))
