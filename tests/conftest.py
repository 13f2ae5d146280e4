"""Shared test fixtures for pycheb3 tests."""

import numpy as np
import pytest

from pycheb3 import ChebyshevColumns, ChebyshevTucker3D


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------

CUBE = [(-1.0, 1.0), (-1.0, 1.0), (-1.0, 1.0)]
BOX = [(0.0, 2.0), (-1.0, 3.0), (-2.0, 1.0)]


def _one(t):
    return np.ones_like(t)


def _identity(t):
    return t


def _square(t):
    return t ** 2


_X_BASIS = [np.sin, _identity, np.cos]
_Y_BASIS = [np.cos, _square]
_Z_BASIS = [np.exp, _identity, _one]
TRIG_CORE = np.random.default_rng(7).standard_normal((3, 2, 3))


def trig_exact(x, y, z):
    """sum_ijk C[i,j,k] gx_i(x) gy_j(y) gz_k(z) for the trig3 fixture."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    z = np.asarray(z, dtype=float)
    gx = np.stack([g(x) for g in _X_BASIS], axis=-1)
    gy = np.stack([g(y) for g in _Y_BASIS], axis=-1)
    gz = np.stack([g(z) for g in _Z_BASIS], axis=-1)
    return np.einsum("...i,...j,...k,ijk->...", gx, gy, gz, TRIG_CORE)


def sum_xyz_function():
    """Rank (2, 2, 2) representation of x + y + z on [-1, 1]^3."""
    basis = ChebyshevColumns.from_function([_one, _identity], (-1.0, 1.0), 2)
    core = np.zeros((2, 2, 2))
    core[1, 0, 0] = core[0, 1, 0] = core[0, 0, 1] = 1.0
    return ChebyshevTucker3D(basis, basis, basis, core)


def rel_err(approx, exact):
    approx = np.asarray(approx, dtype=float)
    exact = np.asarray(exact, dtype=float)
    return float(np.max(np.abs(approx - exact)) / max(np.max(np.abs(exact)), 1e-300))


def planar_coords(grid_vectors, pattern):
    """Build 2-D x, y, z arrays for a named planar pattern."""
    xv, yv, zv = grid_vectors
    c = 0.25
    if pattern == "ndgrid_z_const":
        X, Y = np.meshgrid(xv, yv, indexing="ij")
        return X, Y, np.full(X.shape, c)
    if pattern == "ndgrid_y_const":
        X, Z = np.meshgrid(xv, zv, indexing="ij")
        return X, np.full(X.shape, c), Z
    if pattern == "ndgrid_x_const":
        Y, Z = np.meshgrid(yv, zv, indexing="ij")
        return np.full(Y.shape, c), Y, Z
    if pattern == "meshgrid_z_const":
        X, Y = np.meshgrid(xv, yv)
        return X, Y, np.full(X.shape, c)
    if pattern == "meshgrid_y_const":
        X, Z = np.meshgrid(xv, zv)
        return X, np.full(X.shape, c), Z
    if pattern == "meshgrid_x_const":
        Y, Z = np.meshgrid(yv, zv)
        return np.full(Y.shape, c), Y, Z
    raise AssertionError(pattern)


PLANAR_PATTERNS = [
    "ndgrid_z_const",
    "ndgrid_y_const",
    "ndgrid_x_const",
    "meshgrid_z_const",
    "meshgrid_y_const",
    "meshgrid_x_const",
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def sum_xyz():
    """x + y + z on [-1, 1]^3, rank (2, 2, 2)."""
    return sum_xyz_function()


@pytest.fixture(scope="module")
def trig3():
    """Rank (3, 2, 3) function with a random core on BOX."""
    cols = ChebyshevColumns.from_function(_X_BASIS, BOX[0], 24)
    rows = ChebyshevColumns.from_function(_Y_BASIS, BOX[1], 24)
    tubes = ChebyshevColumns.from_function(_Z_BASIS, BOX[2], 24)
    return ChebyshevTucker3D(cols, rows, tubes, TRIG_CORE)


@pytest.fixture(scope="module")
def const5():
    """Rank (1, 1, 1) constant 5 on [-1, 1]^3."""
    return ChebyshevTucker3D.constant(5.0, CUBE)


@pytest.fixture(scope="module")
def grid_vectors():
    """Distinct coordinate vectors inside BOX with pairwise different lengths."""
    xv = np.linspace(0.1, 1.9, 4)
    yv = np.linspace(-0.8, 2.7, 5)
    zv = np.linspace(-1.7, 0.9, 3)
    return xv, yv, zv
