"""Recognition of ndgrid / meshgrid sampling layouts in coordinate arrays.

When ``x``, ``y`` and ``z`` each vary along exactly one array axis (or are
constant), a Tucker function can be evaluated on the whole array by
evaluating each axis function once per distinct coordinate and contracting
the core, instead of once per sample.

Each test is a single max-abs residual scan against a broadcast reference
slice and requires the residual to be exactly zero. Arrays that are a grid
only up to rounding are reported as unstructured.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

import numpy as np

from pycheb3._errors import ShapeError

Axes = Tuple[Optional[int], Optional[int], Optional[int]]

# (name, input axis of x / y / z or None if constant, swap core modes 0 and 1)
# Order is the detection priority; the first match wins.
_PATTERNS_2D = (
    ("ndgrid_z_const", (0, 1, None), False),
    ("ndgrid_y_const", (0, None, 1), False),
    ("ndgrid_x_const", (None, 0, 1), False),
    ("meshgrid_z_const", (1, 0, None), True),
    ("meshgrid_y_const", (1, None, 0), False),
    ("meshgrid_x_const", (None, 1, 0), False),
)

_PATTERNS_3D = (
    ("ndgrid", (0, 1, 2), False),
    ("meshgrid", (1, 0, 2), True),
)


class GridLayout(NamedTuple):
    """A detected sampling layout.

    Attributes
    ----------
    name : str
        Pattern name, e.g. ``"ndgrid"`` or ``"meshgrid_z_const"``.
    x, y, z : ndarray
        Distinct coordinates per variable, 1-D (length 1 if constant).
    axes : tuple
        Input array axis along which each of x, y, z varies, or ``None``
        for a constant coordinate.
    swap_xy : bool
        True when y varies along an earlier axis than x and both vary, in
        which case the contraction runs on a copy of the core with modes
        0 and 1 swapped (rows first, then columns).
    """

    name: str
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    axes: Axes
    swap_xy: bool

    def to_output(self, T: np.ndarray) -> np.ndarray:
        """Map a contracted ``(n_a, n_b, n_c)`` tensor onto the input layout.

        Constant modes (length 1) are dropped and the remaining modes are
        ordered by the input axis they vary along.
        """
        modes = (1, 0, 2) if self.swap_xy else (0, 1, 2)
        kept = [k for k in range(3) if self.axes[modes[k]] is not None]
        T = T.reshape([T.shape[k] for k in kept])
        order = np.argsort([self.axes[modes[k]] for k in kept])
        return np.transpose(T, order)


def _reference(ndim: int, axis: Optional[int]) -> tuple:
    return tuple(slice(None) if d == axis else slice(0, 1) for d in range(ndim))


def _varies_only_along(a: np.ndarray, axis: Optional[int]) -> bool:
    """True if *a* is exactly constant except along *axis*.

    ``axis=None`` tests for a constant array.
    """
    residual = np.abs(a - a[_reference(a.ndim, axis)])
    return np.max(residual) == 0


def _line(a: np.ndarray, axis: Optional[int]) -> np.ndarray:
    return a[_reference(a.ndim, axis)].ravel().copy()


def detect_grid_pattern(x, y, z) -> Optional[GridLayout]:
    """Classify three coordinate arrays as an ndgrid/meshgrid layout.

    Parameters
    ----------
    x, y, z : array_like
        Coordinate arrays of identical 2-D or 3-D shape.

    Returns
    -------
    GridLayout or None
        The first matching pattern in priority order, or ``None`` if the
        arrays are unstructured.

    Raises
    ------
    ShapeError
        If the arrays differ in shape or are not 2-D or 3-D.

    Examples
    --------
    >>> xx, yy, zz = np.meshgrid([0., 1.], [0., .5, 1.], [2., 3.], indexing="ij")
    >>> detect_grid_pattern(xx, yy, zz).name
    'ndgrid'
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    z = np.asarray(z, dtype=float)
    if not (x.shape == y.shape == z.shape):
        raise ShapeError(
            f"Coordinate arrays must share one shape, got "
            f"x{x.shape}, y{y.shape}, z{z.shape}"
        )
    if x.size == 0:
        raise ShapeError("Cannot detect a grid layout in empty arrays")
    if x.ndim == 2:
        patterns = _PATTERNS_2D
    elif x.ndim == 3:
        patterns = _PATTERNS_3D
    else:
        raise ShapeError(f"Grid detection needs 2-D or 3-D arrays, got ndim={x.ndim}")

    coords = (x, y, z)
    for name, axes, swap_xy in patterns:
        if all(_varies_only_along(a, ax) for a, ax in zip(coords, axes)):
            xs, ys, zs = (_line(a, ax) for a, ax in zip(coords, axes))
            return GridLayout(name, xs, ys, zs, axes, swap_xy)
    return None
