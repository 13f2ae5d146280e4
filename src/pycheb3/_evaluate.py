"""Evaluation of trivariate Tucker functions.

``evaluate(f, x, y, z)`` accepts, per variable, a numeric scalar, vector,
matrix or 3-way array, the whole-axis marker ``":"``, or a univariate
:class:`ChebyshevColumns` (path evaluation). Each argument is classified
into an :class:`ArgKind` and the triple of kinds is looked up in a fixed
dispatch table:

==========================  ===============================================
kinds                       result
==========================  ===============================================
``:, :, :``                 the function itself
one numeric, two ``:``      :class:`ChebyshevTucker2D` (list for arrays)
two numeric, one ``:``      simplified :class:`ChebyshevColumns`
scalars / vectors           values, vector case
matrices                    values, grid fast path or vector case
3-way arrays                values, grid fast path or vector case
three paths                 univariate :class:`ChebyshevColumns` of f(path)
==========================  ===============================================

Any other combination raises :class:`UnsupportedEvaluationShape`.

The core is always contracted in mode order 0, 1, 2. Meshgrid layouts,
where the y coordinate runs along the first array axis, are handled by
contracting a private copy of the core with its first two modes swapped.
"""

from __future__ import annotations

import enum
import warnings
from functools import partial
from typing import Callable, Dict, List, Tuple

import numpy as np

from pycheb3._errors import ShapeError, UnsupportedEvaluationShape
from pycheb3._grids import detect_grid_pattern
from pycheb3._tensor import txm
from pycheb3.columns import ChebyshevColumns, chebyshev_nodes
from pycheb3.tucker2d import ChebyshevTucker2D

WHOLE = slice(None)
"""Whole-axis marker; ``":"`` and ``slice(None)`` are accepted too."""

_VARIABLES = ("x", "y", "z")

# Samples contracted per block in the vector case; bounds the size of the
# intermediate (block, r2, r3) tensor.
_VECTOR_BLOCK = 512


class ArgKind(enum.Enum):
    """Kind of one evaluation argument."""

    WHOLE = "whole"
    SCALAR = "scalar"
    VECTOR = "vector"
    MATRIX = "matrix"
    TENSOR = "tensor"
    PATH = "path"


def _is_whole(arg) -> bool:
    if isinstance(arg, str):
        return arg == ":"
    if isinstance(arg, slice):
        return arg == WHOLE
    return False


def _classify(arg, name: str) -> Tuple[ArgKind, object]:
    """Return the kind of *arg* and its normalized value."""
    if _is_whole(arg):
        return ArgKind.WHOLE, None
    if isinstance(arg, ChebyshevColumns):
        return ArgKind.PATH, arg
    if isinstance(arg, (str, slice)):
        raise UnsupportedEvaluationShape(
            f"{name}={arg!r} is not a supported marker; use ':' for a whole axis"
        )
    try:
        a = np.asarray(arg, dtype=float)
    except (TypeError, ValueError) as exc:
        raise UnsupportedEvaluationShape(
            f"{name} of type {type(arg).__name__} is neither numeric, "
            f"a whole-axis marker nor a ChebyshevColumns path"
        ) from exc
    if a.ndim == 0:
        return ArgKind.SCALAR, a
    if a.ndim == 1 or (a.ndim == 2 and min(a.shape) <= 1):
        return ArgKind.VECTOR, a
    if a.ndim == 2:
        return ArgKind.MATRIX, a
    if a.ndim == 3:
        return ArgKind.TENSOR, a
    raise UnsupportedEvaluationShape(
        f"{name} has {a.ndim} dimensions; at most 3 are supported"
    )


def _check_same_shape(arrays: List[np.ndarray], names: List[str]) -> None:
    shapes = [a.shape for a in arrays]
    if any(s != shapes[0] for s in shapes[1:]):
        described = ", ".join(f"{n}{s}" for n, s in zip(names, shapes))
        raise ShapeError(f"Numeric arguments must share one shape, got {described}")


def _factors(f) -> Tuple[ChebyshevColumns, ChebyshevColumns, ChebyshevColumns]:
    return f.cols, f.rows, f.tubes


# ----------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------

def _whole(f, args, opts):
    return f


def _pointwise(f, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
    """Values at matched coordinate sequences, shaped like *x*.

    Each axis set is evaluated once at its coordinates; then for every
    sample the core is contracted against that sample's rows of the three
    value matrices (mode 0 via :func:`txm`, modes 1 and 2 per sample).
    """
    xs, ys, zs = x.ravel(), y.ravel(), z.ravel()
    cols_vals = f.cols.evaluate(xs)
    rows_vals = f.rows.evaluate(ys)
    tubes_vals = f.tubes.evaluate(zs)

    out = np.empty(xs.size)
    for start in range(0, xs.size, _VECTOR_BLOCK):
        stop = start + _VECTOR_BLOCK
        T = txm(f.core, cols_vals[start:stop], 0)
        out[start:stop] = np.einsum(
            "njk,nj,nk->n", T, rows_vals[start:stop], tubes_vals[start:stop]
        )
    return out.reshape(x.shape)


def _vector_case(f, args, opts):
    x, y, z = args
    _check_same_shape([x, y, z], list(_VARIABLES))
    if opts["verbose"]:
        print(f"  Vector case: {x.size:,} points")
    out = _pointwise(f, x, y, z)
    return float(out) if x.ndim == 0 else out


def _grid_case(f, args, opts):
    """Matrix and 3-way array inputs: grid fast path or pointwise fallback."""
    x, y, z = args
    _check_same_shape([x, y, z], list(_VARIABLES))
    if x.size == 0:
        return np.zeros(x.shape)

    layout = detect_grid_pattern(x, y, z)
    if layout is None:
        if opts["verbose"]:
            print(f"  Unstructured {x.shape} input: evaluating "
                  f"{x.size:,} points individually")
        return _pointwise(f, x, y, z)

    if opts["verbose"]:
        n_axis = len(layout.x) + len(layout.y) + len(layout.z)
        print(f"  Detected {layout.name} layout {x.shape}: "
              f"{n_axis} axis evaluations instead of {3 * x.size:,}")

    cols_vals = f.cols.evaluate(layout.x)
    rows_vals = f.rows.evaluate(layout.y)
    tubes_vals = f.tubes.evaluate(layout.z)
    if layout.swap_xy:
        core = np.swapaxes(f.core, 0, 1).copy()
        T = txm(txm(txm(core, rows_vals, 0), cols_vals, 1), tubes_vals, 2)
    else:
        T = txm(txm(txm(f.core, cols_vals, 0), rows_vals, 1), tubes_vals, 2)
    return layout.to_output(T)


def _fix_one(f, args, opts, mode: int):
    """One numeric argument: reduce to bivariate function(s) of the others."""
    points = args[mode]
    factors = _factors(f)
    remaining = [factors[m] for m in range(3) if m != mode]
    if opts["verbose"]:
        print(f"  Fixing {_VARIABLES[mode]} at {points.size:,} value(s)")

    reduced = txm(f.core, factors[mode].evaluate(points), mode)
    slices = [
        ChebyshevTucker2D(remaining[0], remaining[1], np.take(reduced, i, axis=mode))
        for i in range(points.size)
    ]
    return slices[0] if points.ndim == 0 else slices


def _fix_two(f, args, opts, free: int):
    """Two numeric arguments: univariate function(s) of the free variable.

    The two coordinate arrays are paired sample by sample; each pair gives
    one column of the result.
    """
    a, b = (m for m in range(3) if m != free)
    _check_same_shape([args[a], args[b]], [_VARIABLES[a], _VARIABLES[b]])
    factors = _factors(f)
    if opts["verbose"]:
        print(f"  Fixing {_VARIABLES[a]}, {_VARIABLES[b]} at "
              f"{args[a].size:,} pair(s); {_VARIABLES[free]} stays free")

    vals_a = factors[a].evaluate(args[a])
    vals_b = factors[b].evaluate(args[b])
    T = txm(f.core, vals_a, a)
    T = np.moveaxis(T, (free, a, b), (0, 1, 2))
    coeffs = np.einsum("fnb,nb->fn", T, vals_b)
    return (factors[free] @ coeffs).simplify(opts["simplify_tol"])


def _path_case(f, args, opts):
    """Three univariate parametrizations: the univariate t -> f(x(t), y(t), z(t))."""
    xt, yt, zt = args
    for name, path in zip(_VARIABLES, args):
        if path.rank != 1:
            raise UnsupportedEvaluationShape(
                f"Path component {name} has {path.rank} columns; expected 1"
            )
    if not (xt.domain == yt.domain == zt.domain):
        raise ValueError(
            f"Path components must share one interval, got "
            f"{xt.domain}, {yt.domain}, {zt.domain}"
        )

    lo, hi = xt.domain
    tol = opts["path_tol"]
    n = 17
    while True:
        t = chebyshev_nodes(lo, hi, n)
        values = _pointwise(f, xt.evaluate(t)[:, 0], yt.evaluate(t)[:, 0],
                            zt.evaluate(t)[:, 0])
        h = ChebyshevColumns(values, xt.domain)
        c = np.abs(h.coefficients()[:, 0])
        scale = np.max(c)
        resolved = scale == 0.0 or np.all(c[-2:] <= tol * scale)
        if opts["verbose"]:
            print(f"  Path sampled at {n} nodes: tail/max = "
                  f"{(np.max(c[-2:]) / scale) if scale > 0 else 0.0:.2e}")
        if resolved:
            break
        if 2 * n - 1 > opts["path_max_nodes"]:
            warnings.warn(
                f"Path evaluation not resolved to tolerance {tol:.1e} with "
                f"{n} nodes; returning the unresolved approximation.",
                UserWarning,
                stacklevel=3,
            )
            break
        n = 2 * n - 1
    return h.simplify(max(tol, opts["simplify_tol"]))


# ----------------------------------------------------------------------
# Dispatch table
# ----------------------------------------------------------------------

_W = ArgKind.WHOLE
_NUMERIC = (ArgKind.SCALAR, ArgKind.VECTOR, ArgKind.MATRIX, ArgKind.TENSOR)

_DISPATCH: Dict[Tuple[ArgKind, ArgKind, ArgKind], Callable] = {
    (_W, _W, _W): _whole,
    (ArgKind.PATH, ArgKind.PATH, ArgKind.PATH): _path_case,
    (ArgKind.SCALAR, ArgKind.SCALAR, ArgKind.SCALAR): _vector_case,
    (ArgKind.VECTOR, ArgKind.VECTOR, ArgKind.VECTOR): _vector_case,
    (ArgKind.MATRIX, ArgKind.MATRIX, ArgKind.MATRIX): _grid_case,
    (ArgKind.TENSOR, ArgKind.TENSOR, ArgKind.TENSOR): _grid_case,
}
for _kind in _NUMERIC:
    _DISPATCH[(_kind, _W, _W)] = partial(_fix_one, mode=0)
    _DISPATCH[(_W, _kind, _W)] = partial(_fix_one, mode=1)
    _DISPATCH[(_W, _W, _kind)] = partial(_fix_one, mode=2)
    _DISPATCH[(_W, _kind, _kind)] = partial(_fix_two, free=0)
    _DISPATCH[(_kind, _W, _kind)] = partial(_fix_two, free=1)
    _DISPATCH[(_kind, _kind, _W)] = partial(_fix_two, free=2)
del _kind


# ----------------------------------------------------------------------
# Public entry points
# ----------------------------------------------------------------------

def evaluate(
    f,
    x,
    y,
    z,
    *,
    simplify_tol: float = 1e-14,
    path_tol: float = 1e-13,
    path_max_nodes: int = 4097,
    verbose: bool = False,
):
    """Evaluate a trivariate Tucker function.

    Parameters
    ----------
    f : ChebyshevTucker3D
        Function to evaluate.
    x, y, z : scalar, array_like, ``":"`` or ChebyshevColumns
        Coordinates. Numeric arguments must share one shape. ``":"``
        (or ``slice(None)``) leaves a variable free. Three single-column
        ``ChebyshevColumns`` on a common interval describe a path.
    simplify_tol : float, optional
        Relative coefficient threshold used to compress univariate results.
        Default is 1e-14.
    path_tol : float, optional
        Relative tail-coefficient tolerance for path evaluation.
        Default is 1e-13.
    path_max_nodes : int, optional
        Largest sampling grid tried for path evaluation. Default is 4097.
    verbose : bool, optional
        If True, print the chosen evaluation route. Default is False.

    Returns
    -------
    float, ndarray, ChebyshevTucker3D, ChebyshevTucker2D, list or ChebyshevColumns
        See the module docstring. Numeric results have the shape of the
        numeric inputs. An empty *f* always yields an empty array.

    Raises
    ------
    ShapeError
        If numeric arguments disagree in shape.
    UnsupportedEvaluationShape
        If the combination of argument kinds is not supported.
    """
    if f.is_empty:
        return np.array([])

    classified = [_classify(arg, name) for arg, name in zip((x, y, z), _VARIABLES)]
    kinds = tuple(kind for kind, _ in classified)
    args = [value for _, value in classified]

    handler = _DISPATCH.get(kinds)
    if handler is None:
        raise UnsupportedEvaluationShape(
            "Unsupported evaluation arguments ("
            + ", ".join(f"{n}: {k.value}" for n, k in zip(_VARIABLES, kinds))
            + ")"
        )

    opts = {
        "simplify_tol": simplify_tol,
        "path_tol": path_tol,
        "path_max_nodes": path_max_nodes,
        "verbose": verbose,
    }
    if verbose:
        print("Evaluating " + ", ".join(k.value for k in kinds))
    return handler(f, args, opts)


def evaluate_tensor_grid(f, x, y, z) -> np.ndarray:
    """Evaluate on the tensor-product grid of three coordinate vectors.

    ``out[i, j, k] = f(x[i], y[j], z[k])``.

    Parameters
    ----------
    f : ChebyshevTucker3D
        Function to evaluate.
    x, y, z : array_like
        Coordinates per variable; flattened in C order.

    Returns
    -------
    ndarray of shape (len(x), len(y), len(z))
    """
    if f.is_empty:
        return np.array([])
    xs = np.asarray(x, dtype=float).ravel()
    ys = np.asarray(y, dtype=float).ravel()
    zs = np.asarray(z, dtype=float).ravel()
    T = txm(f.core, f.cols.evaluate(xs), 0)
    T = txm(T, f.rows.evaluate(ys), 1)
    return txm(T, f.tubes.evaluate(zs), 2)
