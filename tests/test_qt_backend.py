import numpy as np
import pytest

pg = pytest.importorskip('pyqtgraph')

from pyqtgraph.Qt import QtCore  # noqa: E402
from imagequiver import ImageQuiver, geometry  # noqa: E402
from imagequiver.backends.qt import PyQtGraphBackend, texture_to_rgba  # noqa: E402


@pytest.fixture(scope='module')
def app():
    return pg.mkQApp()


@pytest.fixture
def plot(app):
    widget = pg.PlotWidget()
    yield widget.getPlotItem()
    widget.close()


def test_texture_to_rgba_indexed():
    cmap = pg.colormap.get('viridis')
    tex = np.array([[0.0, np.nan], [1.0, 2.0]])
    rgba = texture_to_rgba(tex, np.array([[1.0, 0.0], [1.0, 1.0]]), (0.0, 1.0), cmap)
    assert rgba.shape == (2, 2, 4)
    assert rgba.dtype == np.uint8
    assert rgba[0, 1, 3] == 0
    assert rgba[1, 1, 3] == 255


def test_texture_to_rgba_rgb_scalar_alpha():
    cmap = pg.colormap.get('viridis')
    tex = np.zeros((1, 2, 3))
    tex[..., 0] = 1.0
    rgba = texture_to_rgba(tex, 0.5, (0.0, 1.0), cmap)
    assert np.array_equal(rgba[..., 0], [[255, 255]])
    assert np.array_equal(rgba[..., 3], [[128, 128]])


def test_items_placed_on_corners(plot):
    q = ImageQuiver(np.ones((2, 2)), [0, 3], [0, 0], [1, 0], [0, 1],
                    backend=PyQtGraphBackend(), parent=plot)
    xs, ys = geometry.quad_corners(q.xdata, q.ydata, q.udata, q.vdata, 1.0)
    assert len(q.surfaces) == 2
    for k, im in enumerate(q.surfaces):
        assert im.parentItem() is q.group
        assert im.isVisible()
        for r, c in ((0, 0), (0, 2), (2, 0)):
            p = im.transform().map(QtCore.QPointF(c, r))
            rr, cc = min(r, 1), min(c, 1)
            assert abs(p.x() - xs[k, rr, cc]) < 1e-9
            assert abs(p.y() - ys[k, rr, cc]) < 1e-9


def test_resize_and_delete(plot):
    backend = PyQtGraphBackend()
    q = ImageQuiver(1, [0, 1, 2], [0, 0, 0], [1, 1, 1], [0, 0, 0],
                    backend=backend, parent=plot)
    keep = q.surfaces[0]
    q.set(xdata=0, ydata=0, udata=1, vdata=0)
    assert q.surfaces == [keep]
    group = q.group
    q.delete()
    assert not backend.is_group_valid(group)
    assert not backend.is_valid(keep)
    assert group not in plot.items


def test_texture_to_rgba_resamples_alpha():
    cmap = pg.colormap.get('viridis')
    rgba = texture_to_rgba(np.ones((4, 4)), np.array([[0.0, 1.0], [1.0, 1.0]]),
                           (0.0, 1.0), cmap)
    want = np.kron([[0, 255], [255, 255]], np.ones((2, 2), dtype=int))
    assert np.array_equal(rgba[..., 3], want)


def test_alpha_mask_follows_new_cdata_size(plot):
    q = ImageQuiver(np.ones((2, 2)), 0, 0, 1, 0, backend=PyQtGraphBackend(),
                    parent=plot, alpha_data=np.array([[0.0, 1.0], [1.0, 1.0]]))
    q.cdata = np.ones((4, 4))
    (im,) = q.surfaces
    assert im.image.shape == (4, 4, 4)
    assert im.image[0, 0, 3] == 0
    assert im.image[3, 3, 3] == 255
    assert q.refresh() is True
