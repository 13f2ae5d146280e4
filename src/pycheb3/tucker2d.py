"""Bivariate low-rank functions produced by fixing one variable of a trivariate one."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from pycheb3._errors import ShapeError, UnsupportedEvaluationShape
from pycheb3.columns import ChebyshevColumns


class ChebyshevTucker2D:
    """Bivariate function ``g(u, v) = sum_ij core[i, j] * cols_i(u) * rows_j(v)``.

    Parameters
    ----------
    cols : ChebyshevColumns
        Basis functions of the first variable (``r1`` columns).
    rows : ChebyshevColumns
        Basis functions of the second variable (``r2`` columns).
    core : array_like of shape (r1, r2)
        Coupling matrix.
    """

    def __init__(self, cols: ChebyshevColumns, rows: ChebyshevColumns, core):
        core = np.asarray(core, dtype=float)
        if core.ndim != 2 or core.shape != (cols.rank, rows.rank):
            raise ShapeError(
                f"core shape {core.shape} does not match column ranks "
                f"({cols.rank}, {rows.rank})"
            )
        self.cols = cols
        self.rows = rows
        self.core = core.copy()
        self.core.flags.writeable = False

    @property
    def domain(self) -> List[Tuple[float, float]]:
        return [self.cols.domain, self.rows.domain]

    @property
    def rank(self) -> Tuple[int, int]:
        return self.core.shape

    @property
    def is_empty(self) -> bool:
        return self.core.size == 0

    def __call__(self, u, v, simplify_tol: float = 1e-14):
        """Evaluate at points, or fix one variable.

        ``g(u, v)`` with numeric arrays of equal shape evaluates pointwise.
        Passing ``":"`` for one argument returns the univariate function(s)
        of that variable, simplified; ``g(":", ":")`` returns *g* itself.

        Raises
        ------
        ShapeError
            If numeric *u* and *v* differ in shape.
        UnsupportedEvaluationShape
            If an argument is neither numeric nor the whole-axis marker.
        """
        from pycheb3._evaluate import _is_whole

        whole_u, whole_v = _is_whole(u), _is_whole(v)
        if whole_u and whole_v:
            return self
        if whole_u or whole_v:
            points = np.asarray(v if whole_u else u, dtype=float)
            if self.is_empty:
                return np.array([])
            if whole_u:
                coeffs = self.rows.evaluate(points) @ self.core.T
                free = self.cols
            else:
                coeffs = self.cols.evaluate(points) @ self.core
                free = self.rows
            return (free @ coeffs.T).simplify(simplify_tol)

        try:
            u = np.asarray(u, dtype=float)
            v = np.asarray(v, dtype=float)
        except (TypeError, ValueError) as exc:
            raise UnsupportedEvaluationShape(
                f"Cannot evaluate at arguments of type "
                f"{type(u).__name__}, {type(v).__name__}"
            ) from exc
        if u.shape != v.shape:
            raise ShapeError(f"u{u.shape} and v{v.shape} must share one shape")
        if self.is_empty:
            return np.array([])
        C = self.cols.evaluate(u)
        R = self.rows.evaluate(v)
        out = np.einsum("ni,ij,nj->n", C, self.core, R).reshape(u.shape)
        return float(out) if u.ndim == 0 else out

    def __repr__(self) -> str:
        (a, b), (c, d) = self.domain
        return (
            f"ChebyshevTucker2D("
            f"rank={self.rank}, "
            f"domain=[{a}, {b}] x [{c}, {d}])"
        )
