import numpy as np
from imagequiver.backends.base import fit_alpha, normalize_alpha


def test_fit_alpha_scalar_passes_through():
    assert fit_alpha(0.25, (3, 4)) == 0.25
    assert fit_alpha(np.array(1.0), (3, 4)) == 1.0


def test_fit_alpha_same_grid_unchanged():
    a = np.array([[0.0, 1.0], [0.5, 1.0]])
    assert np.array_equal(fit_alpha(a, (2, 2)), a)


def test_fit_alpha_upsamples_nearest():
    a = np.array([[0.0, 1.0], [1.0, 0.5]])
    out = fit_alpha(a, (4, 4))
    assert out.shape == (4, 4)
    assert np.array_equal(out, np.kron(a, np.ones((2, 2))))


def test_fit_alpha_downsamples_and_uneven():
    a = np.arange(16, dtype=float).reshape(4, 4)
    assert np.array_equal(fit_alpha(a, (2, 2)), [[0.0, 2.0], [8.0, 10.0]])
    b = np.array([[0.0, 1.0], [2.0, 3.0]])
    assert np.array_equal(fit_alpha(b, (3, 5)),
                          [[0, 0, 0, 1, 1], [0, 0, 0, 1, 1], [2, 2, 2, 3, 3]])


def test_fit_alpha_odd_shapes():
    assert fit_alpha(np.array([]), (2, 2)) == 1.0
    row = fit_alpha(np.array([0.0, 1.0]), (2, 2))
    assert np.array_equal(row, [[0.0, 1.0], [0.0, 1.0]])
    stacked = np.zeros((2, 2, 3))
    stacked[..., 0] = 1.0
    assert np.array_equal(fit_alpha(stacked, (2, 2)), np.ones((2, 2)))


def test_normalize_alpha_limits():
    assert normalize_alpha(5.0, (0.0, 10.0)) == 0.5
    assert np.array_equal(normalize_alpha(np.array([-1.0, 2.0]), (0.0, 1.0)), [0.0, 1.0])
