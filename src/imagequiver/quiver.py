"""
quiver.py

`ImageQuiver`: a quiver plot that draws a user supplied image in place of
each arrow.

Usage:
    q = ImageQuiver(cdata, xdata, ydata, udata, vdata, auto_scale_factor=1,
                    parent=ax, tag='wind')

    q.udata = new_u                      # refreshes immediately
    q.set(udata=new_u, vdata=new_v)      # one refresh for the whole batch
    with q.batch():                      # same, as a scope
        q.xdata, q.ydata = xs, ys

    q.delete()

Inputs:
- cdata: image shown in place of the arrows, indexed (M x N) or RGB
  (M x N x 3), or a file path / URL. NaN pixels are transparent unless
  alpha_data is given.
- xdata, ydata: starting point of each vector
- udata, vdata: vector components; quads are sized by their magnitude
- auto_scale_factor: multiplier applied to every vector length
- any other keyword: a property of the grouping container
"""
from __future__ import annotations

import contextlib
import logging
from typing import Any, List, Optional

from imagequiver.config import FIELD_PROPERTIES, QUIVER_DEFAULTS
from imagequiver.errors import QuiverDeletedError
from imagequiver.field_state import FieldState
from imagequiver.image_loader import ImageLoader
from imagequiver.layout import QuadLayoutEngine
from imagequiver.properties import GroupProperties

logger = logging.getLogger(__name__)

# FieldState setter handling each field property
_FIELD_SETTERS = {
    'alpha_data': 'set_alpha_data',
    'auto_scale_factor': 'set_auto_scale_factor',
    'cdata': 'set_texture',
    'udata': 'set_udata',
    'vdata': 'set_vdata',
    'xdata': 'set_xdata',
    'ydata': 'set_ydata',
}
_READ_ONLY = ('parent', 'type')


def _default_backend():
    from imagequiver.backends.mpl import MatplotlibBackend
    return MatplotlibBackend()


class ImageQuiver:
    """Image-based quiver plot bound to one rendering backend."""

    def __init__(self, cdata, xdata, ydata, udata, vdata,
                 auto_scale_factor=QUIVER_DEFAULTS['auto_scale_factor'], *,
                 backend=None, parent=None,
                 loader: Optional[ImageLoader] = None, **props):
        self._backend = backend if backend is not None else _default_backend()
        self._parent = parent if parent is not None else self._backend.default_parent()
        self._state = FieldState(loader)
        self._group_props = GroupProperties()
        self._batch_depth = 0
        self._dirty = False
        self._deleted = False

        self._group = self._backend.create_group(self._parent)
        self._engine = QuadLayoutEngine(self._backend, self._parent, self._group)
        # if the container goes away, follow suit
        self._subscription = self._backend.subscribe_destroyed(
            self._group, self._on_group_destroyed)

        try:
            self.set(cdata=cdata, xdata=xdata, ydata=ydata, udata=udata,
                     vdata=vdata, auto_scale_factor=auto_scale_factor, **props)
        except Exception:
            self.delete()
            raise

    # -- batching ----------------------------------------------------------
    @contextlib.contextmanager
    def batch(self):
        """Defer refreshing until the outermost batch exits, then refresh once."""
        self._check_alive()
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and not self._deleted:
                self.commit()

    def commit(self) -> bool:
        """Refresh if anything changed since the last refresh."""
        if not self._dirty:
            return False
        return self.refresh()

    def refresh(self) -> bool:
        """Recompute and redraw every quad.

        Inside a batch this only marks the quiver dirty. Returns True when the
        quads were drawn, False when deferred or hidden by a dimension mismatch.
        """
        self._check_alive()
        if self._batch_depth:
            self._dirty = True
            return False
        self._dirty = False
        return self._engine.refresh(self._state)

    def _changed(self) -> None:
        self._dirty = True
        if not self._batch_depth:
            self.commit()

    # -- generic property access -------------------------------------------
    def set(self, **props) -> None:
        """Set several properties at once with a single refresh."""
        with self.batch():
            for name, value in props.items():
                self._set_one(name, value)

    def get(self, name: Optional[str] = None):
        """Return one property, or all of them ordered by name."""
        if name is not None:
            return self._get_one(name)
        names = set(FIELD_PROPERTIES) | set(_READ_ONLY) | set(self._group_props.as_dict())
        return {n: self._get_one(n) for n in sorted(names)}

    def _set_one(self, name: str, value) -> None:
        self._check_alive()
        if name in _FIELD_SETTERS:
            getattr(self._state, _FIELD_SETTERS[name])(value)
            self._changed()
        elif name in _READ_ONLY:
            raise AttributeError(f"ImageQuiver property {name!r} is read-only")
        else:
            # relay to the underlying container
            self._backend.set_group_property(self._group, name, value)
            self._group_props.store(name, value)

    def _get_one(self, name: str):
        if name in _FIELD_SETTERS:
            return getattr(self._state, name)
        if name == 'parent':
            return self._parent
        if name == 'type':
            return self.type
        if self._group_props.is_modelled(name) or name in self._group_props.extra:
            return self._group_props.lookup(name)
        self._check_alive()
        return self._backend.get_group_property(self._group, name)

    # -- field properties --------------------------------------------------
    @property
    def type(self) -> str:
        return 'ImageQuiver'

    @property
    def cdata(self):
        return self._state.cdata

    @cdata.setter
    def cdata(self, value):
        self._set_one('cdata', value)

    @property
    def alpha_data(self):
        return self._state.alpha_data

    @alpha_data.setter
    def alpha_data(self, value):
        self._set_one('alpha_data', value)

    @property
    def auto_scale_factor(self) -> float:
        return self._state.auto_scale_factor

    @auto_scale_factor.setter
    def auto_scale_factor(self, value):
        self._set_one('auto_scale_factor', value)

    @property
    def xdata(self):
        return self._state.xdata

    @xdata.setter
    def xdata(self, value):
        self._set_one('xdata', value)

    @property
    def ydata(self):
        return self._state.ydata

    @ydata.setter
    def ydata(self, value):
        self._set_one('ydata', value)

    @property
    def udata(self):
        return self._state.udata

    @udata.setter
    def udata(self, value):
        self._set_one('udata', value)

    @property
    def vdata(self):
        return self._state.vdata

    @vdata.setter
    def vdata(self, value):
        self._set_one('vdata', value)

    # -- container properties ----------------------------------------------
    @property
    def visible(self) -> bool:
        return self._group_props.visible

    @visible.setter
    def visible(self, value):
        self._set_one('visible', bool(value))

    @property
    def parent(self):
        return self._parent

    @property
    def backend(self):
        return self._backend

    @property
    def group(self):
        return self._group

    @property
    def surfaces(self) -> List[Any]:
        """Copy of the surface pool, one handle per field sample."""
        return list(self._engine.surfaces)

    # -- lifecycle ---------------------------------------------------------
    @property
    def is_valid(self) -> bool:
        return not self._deleted

    def delete(self) -> None:
        """Remove every quad and the grouping container. Safe to call twice."""
        if self._deleted:
            return
        self._deleted = True
        self._backend.unsubscribe(self._subscription)
        self._engine.release()
        self._backend.destroy_group(self._group)
        logger.debug('deleted %r', self)
        if callable(self._group_props.delete_fcn):
            self._group_props.delete_fcn(self)

    def _on_group_destroyed(self, group) -> None:
        self.delete()

    def _check_alive(self) -> None:
        if self._deleted:
            raise QuiverDeletedError("ImageQuiver has been deleted")

    def __repr__(self):
        if self._deleted:
            return 'ImageQuiver(<deleted>)'
        return f"ImageQuiver(samples={self._state.sample_count}, shape={self._state.shape})"
