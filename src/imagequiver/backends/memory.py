"""Headless in-memory backend.

Keeps a tiny scene graph (axes -> groups -> surfaces) in plain Python objects
so quivers can be built, inspected and tested without a GUI. Counters record
how many surfaces were created and destroyed.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from imagequiver.backends.base import RenderBackend

logger = logging.getLogger(__name__)

# Container properties understood by a memory group.
GROUP_PROPERTIES = {
    'visible': True,
    'tag': '',
    'display_name': '',
    'user_data': None,
    'hit_test': True,
    'button_down_fcn': None,
    'delete_fcn': None,
    'clipping': True,
    'selected': False,
    'z_order': 0,
}


class MemoryAxes:
    def __init__(self, name: str = ''):
        self.name = name
        self.groups: List['MemoryGroup'] = []
        self.alpha_limits: Optional[Tuple[float, float]] = None
        self.valid = True

    def __repr__(self):
        return f"MemoryAxes({self.name!r}, groups={len(self.groups)})"


class MemoryGroup:
    def __init__(self, parent: MemoryAxes):
        self.parent = parent
        self.surfaces: List['MemorySurface'] = []
        self.properties: Dict[str, Any] = dict(GROUP_PROPERTIES)
        self.valid = True


class MemorySurface:
    def __init__(self, parent: MemoryGroup, serial: int):
        self.parent = parent
        self.serial = serial
        self.xdata = np.zeros((2, 2))
        self.ydata = np.zeros((2, 2))
        self.zdata = np.zeros((2, 2))
        self.texture = None
        self.alpha = None
        self.visible = True
        self.face_mode = None
        self.edge_mode = None
        self.valid = True

    def __repr__(self):
        return f"MemorySurface(#{self.serial}, valid={self.valid})"


class MemoryBackend(RenderBackend):
    def __init__(self):
        super().__init__()
        self.created = 0
        self.destroyed = 0
        self._default_axes: Optional[MemoryAxes] = None

    # -- parents -------------------------------------------------------------
    def create_axes(self, name: str = '') -> MemoryAxes:
        return MemoryAxes(name)

    def default_parent(self) -> MemoryAxes:
        if self._default_axes is None or not self._default_axes.valid:
            self._default_axes = self.create_axes('default')
        return self._default_axes

    def destroy_axes(self, axes: MemoryAxes) -> None:
        """Tear down an axes and, with it, every group it contains."""
        for group in list(axes.groups):
            self.destroy_group(group)
        axes.valid = False

    def set_alpha_limits(self, parent: MemoryAxes, limits) -> None:
        parent.alpha_limits = (float(limits[0]), float(limits[1]))

    # -- groups --------------------------------------------------------------
    def create_group(self, parent: MemoryAxes) -> MemoryGroup:
        if not parent.valid:
            raise ValueError(f"cannot add a group to a destroyed parent {parent!r}")
        group = MemoryGroup(parent)
        parent.groups.append(group)
        return group

    def is_group_valid(self, group) -> bool:
        return isinstance(group, MemoryGroup) and group.valid

    def _remove_group(self, group: MemoryGroup) -> None:
        for surf in list(group.surfaces):
            self.destroy(surf)
        group.valid = False
        if group in group.parent.groups:
            group.parent.groups.remove(group)

    def set_group_property(self, group: MemoryGroup, name: str, value) -> None:
        if name not in group.properties:
            raise AttributeError(f"MemoryGroup has no property {name!r}")
        group.properties[name] = value

    def get_group_property(self, group: MemoryGroup, name: str):
        if name not in group.properties:
            raise AttributeError(f"MemoryGroup has no property {name!r}")
        return group.properties[name]

    # -- surfaces ------------------------------------------------------------
    def create_surface(self, parent: MemoryGroup) -> MemorySurface:
        self.created += 1
        surf = MemorySurface(parent, self.created)
        parent.surfaces.append(surf)
        return surf

    def destroy(self, handle) -> None:
        if not self.is_valid(handle):
            return
        handle.valid = False
        self.destroyed += 1
        if handle in handle.parent.surfaces:
            handle.parent.surfaces.remove(handle)

    def is_valid(self, handle) -> bool:
        return isinstance(handle, MemorySurface) and handle.valid

    def set_geometry(self, handle: MemorySurface, xs, ys, zs) -> None:
        handle.xdata = np.array(xs, dtype=float)
        handle.ydata = np.array(ys, dtype=float)
        handle.zdata = np.array(zs, dtype=float)

    def set_attributes(self, handles, **attrs) -> None:
        for handle in handles:
            if not self.is_valid(handle):
                continue
            for key, value in attrs.items():
                if not hasattr(handle, key):
                    raise AttributeError(f"MemorySurface has no attribute {key!r}")
                setattr(handle, key, value)
