import warnings
import numpy as np
import pytest
from imagequiver import geometry
from imagequiver.backends.memory import MemoryBackend
from imagequiver.config import ALPHA_LIMITS, DIMENSION_WARNING_ID
from imagequiver.errors import DimensionMismatchWarning
from imagequiver.field_state import FieldState
from imagequiver.layout import QuadLayoutEngine


def _setup(n=3, cdata=None):
    backend = MemoryBackend()
    axes = backend.create_axes()
    group = backend.create_group(axes)
    engine = QuadLayoutEngine(backend, axes, group)
    fs = FieldState()
    fs.set_texture(np.ones((2, 4)) if cdata is None else cdata)
    _set_field(fs, n)
    return backend, axes, engine, fs


def _set_field(fs, n):
    fs.set_xdata(np.arange(n, dtype=float))
    fs.set_ydata(np.zeros(n))
    fs.set_udata(np.ones(n))
    fs.set_vdata(np.zeros(n))


def test_refresh_allocates_one_surface_per_sample():
    backend, axes, engine, fs = _setup(4)
    assert engine.refresh(fs)
    assert len(engine.surfaces) == 4
    assert backend.created == 4
    assert all(s.visible for s in engine.surfaces)
    assert axes.alpha_limits == ALPHA_LIMITS


def test_refresh_pushes_geometry_and_shared_attributes():
    backend, axes, engine, fs = _setup(2)
    engine.refresh(fs)
    xs, ys = geometry.quad_corners(fs.xdata, fs.ydata, fs.udata, fs.vdata, 2.0)
    for k, surf in enumerate(engine.surfaces):
        assert np.allclose(surf.xdata, xs[k])
        assert np.allclose(surf.ydata, ys[k])
        assert np.array_equal(surf.zdata, np.zeros((2, 2)))
        assert surf.texture is fs.cdata
        assert np.array_equal(surf.alpha, np.ones((2, 4)))
        assert surf.face_mode == 'texture'
        assert surf.edge_mode == 'none'


def test_pool_grow_preserves_identity():
    backend, axes, engine, fs = _setup(3)
    engine.refresh(fs)
    before = list(engine.surfaces)
    _set_field(fs, 5)
    engine.refresh(fs)
    assert len(engine.surfaces) == 5
    assert engine.surfaces[:3] == before
    assert backend.created == 5
    assert backend.destroyed == 0


def test_pool_shrink_destroys_trailing():
    backend, axes, engine, fs = _setup(5)
    engine.refresh(fs)
    before = list(engine.surfaces)
    _set_field(fs, 2)
    engine.refresh(fs)
    assert engine.surfaces == before[:2]
    assert backend.destroyed == 3
    assert not any(s.valid for s in before[2:])


def test_invalid_handle_reallocated_in_place():
    backend, axes, engine, fs = _setup(3)
    engine.refresh(fs)
    first, middle, last = engine.surfaces
    backend.destroy(middle)  # out-of-band teardown
    engine.refresh(fs)
    assert engine.surfaces[0] is first
    assert engine.surfaces[2] is last
    assert engine.surfaces[1] is not middle
    assert engine.surfaces[1].valid
    assert backend.created == 4


def test_dimension_mismatch_hides_and_keeps_pool():
    backend, axes, engine, fs = _setup(3)
    engine.refresh(fs)
    pool = list(engine.surfaces)
    fs.set_ydata([1.0, 2.0])
    with pytest.warns(DimensionMismatchWarning) as record:
        assert not engine.refresh(fs)
    assert record[0].category.code == DIMENSION_WARNING_ID
    assert engine.surfaces == pool
    assert all(s.valid and not s.visible for s in pool)
    assert backend.destroyed == 0


def test_refresh_is_idempotent():
    backend, axes, engine, fs = _setup(3)
    engine.refresh(fs)
    first = [(s, s.xdata.copy(), s.ydata.copy()) for s in engine.surfaces]
    engine.refresh(fs)
    second = [(s, s.xdata, s.ydata) for s in engine.surfaces]
    assert len(first) == len(second)
    for (s1, x1, y1), (s2, x2, y2) in zip(first, second):
        assert s1 is s2
        assert np.array_equal(x1, x2)
        assert np.array_equal(y1, y2)
    assert backend.created == 3


def test_scenario_single_sample_with_nan_pixel():
    cdata = np.array([[np.nan, 1.0], [2.0, 3.0]])
    backend, axes, engine, fs = _setup(1, cdata=cdata)
    fs.set_xdata(0.0)
    fs.set_ydata(0.0)
    fs.set_udata(1.0)
    fs.set_vdata(0.0)
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        engine.refresh(fs)
    assert len(engine.surfaces) == 1
    surf = engine.surfaces[0]
    assert np.array_equal(surf.alpha, [[0.0, 1.0], [1.0, 1.0]])
    tx, ty = geometry.edge_midpoint(surf.xdata, surf.ydata, geometry.TIP_ROW)
    assert abs(tx - 1.0) < 1e-9
    assert abs(ty) < 1e-9


def test_empty_field_empties_pool():
    backend, axes, engine, fs = _setup(3)
    engine.refresh(fs)
    _set_field(fs, 0)
    assert engine.refresh(fs)
    assert engine.surfaces == []
    assert backend.destroyed == 3


def test_release_destroys_everything():
    backend, axes, engine, fs = _setup(3)
    engine.refresh(fs)
    engine.release()
    assert engine.surfaces == []
    assert backend.destroyed == 3
