"""Column sets of univariate Chebyshev interpolants on a common interval.

A :class:`ChebyshevColumns` object holds ``r`` univariate functions, each
stored by its values at the same ``n`` Chebyshev Type I nodes. It plays
the role of a quasimatrix: evaluating it at ``N`` points gives an
``N x r`` matrix, and multiplying it by an ``r x m`` matrix gives ``m``
new columns. Tucker functions use one such set per axis.

Evaluation uses the second-kind barycentric formula with the closed-form
Type I weights, vectorised over points and columns.

References
----------
- Berrut & Trefethen (2004), "Barycentric Lagrange Interpolation",
  SIAM Review 46(3):501-517
- Trefethen (2013), "Approximation Theory and Approximation Practice",
  SIAM, Chapter 5
"""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple, Union

import numpy as np
from numpy.polynomial.chebyshev import chebpts1, chebval

from pycheb3._errors import ShapeError


def chebyshev_nodes(lo: float, hi: float, n: int) -> np.ndarray:
    """Chebyshev Type I nodes on [lo, hi], sorted ascending."""
    nodes_std = chebpts1(n)
    nodes = 0.5 * (lo + hi) + 0.5 * (hi - lo) * nodes_std
    return np.sort(nodes)


def chebyshev_weights(n: int) -> np.ndarray:
    """Barycentric weights for *n* Type I nodes in ascending order.

    Uses the closed form ``w_j = (-1)^j sin((2j + 1) pi / (2n))``
    (Berrut & Trefethen 2004, eq. 5.3). The weights are independent of the
    interval, since a common factor cancels in the barycentric quotient.

    Parameters
    ----------
    n : int
        Number of nodes.

    Returns
    -------
    ndarray of shape (n,)
    """
    j = np.arange(n)
    return (-1.0) ** j * np.sin((2 * j + 1) * np.pi / (2 * n))


def barycentric_matrix(points: np.ndarray, nodes: np.ndarray,
                       weights: np.ndarray) -> np.ndarray:
    """Interpolation matrix mapping node values to values at *points*.

    Row ``i`` of the result holds the normalized barycentric coefficients
    ``(w_j / (x_i - x_j)) / sum_k (w_k / (x_i - x_k))``. Points that
    coincide with a node (within 1e-14) get a unit row instead.

    Parameters
    ----------
    points : ndarray of shape (N,)
        Evaluation points.
    nodes : ndarray of shape (n,)
        Interpolation nodes.
    weights : ndarray of shape (n,)
        Barycentric weights.

    Returns
    -------
    ndarray of shape (N, n)
    """
    diff = points[:, np.newaxis] - nodes[np.newaxis, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        B = weights / diff
        B = B / np.sum(B, axis=1, keepdims=True)
    hit_rows, hit_cols = np.nonzero(np.abs(diff) < 1e-14)
    if len(hit_rows) > 0:
        B[hit_rows, :] = 0.0
        B[hit_rows, hit_cols] = 1.0
    return B


class ChebyshevColumns:
    """A set of univariate Chebyshev interpolants on one interval.

    Parameters
    ----------
    values : array_like of shape (n,) or (n, r)
        Column ``j`` holds function ``j`` at the ``n`` Type I Chebyshev
        nodes of *domain*, in ascending node order. A 1-D array is a
        single column.
    domain : (float, float)
        Interval ``(lo, hi)`` with ``lo < hi``.

    Examples
    --------
    >>> cols = ChebyshevColumns.from_function([np.cos, np.sin], (-1, 1), 20)
    >>> cols.evaluate([0.0, 0.5]).shape
    (2, 2)
    """

    def __init__(self, values, domain: Tuple[float, float]):
        values = np.asarray(values, dtype=float)
        if values.ndim == 1:
            values = values[:, np.newaxis]
        if values.ndim != 2 or values.shape[0] < 1:
            raise ValueError(
                f"values must have shape (n_nodes, n_cols) with n_nodes >= 1, "
                f"got {values.shape}"
            )
        if not np.isfinite(values).all():
            raise ValueError("values contains NaN or Inf")

        lo, hi = domain
        if not (np.isfinite(lo) and np.isfinite(hi)):
            raise ValueError(f"domain bounds must be finite, got [{lo}, {hi}]")
        if lo >= hi:
            raise ValueError(f"domain: lo={lo} must be strictly less than hi={hi}")

        self.domain: Tuple[float, float] = (float(lo), float(hi))
        self.values = values.copy()
        self.values.flags.writeable = False
        n = values.shape[0]
        self.nodes = chebyshev_nodes(lo, hi, n)
        self.weights = chebyshev_weights(n)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_function(
        cls,
        funcs: Union[Callable, Sequence[Callable]],
        domain: Tuple[float, float],
        n_nodes: int,
    ) -> "ChebyshevColumns":
        """Sample one or more vectorised callables at Chebyshev nodes.

        Parameters
        ----------
        funcs : callable or list of callable
            Each callable maps an ndarray of points to an ndarray of values
            (or a scalar, for constant functions).
        domain : (float, float)
            Interval ``(lo, hi)``.
        n_nodes : int
            Number of Chebyshev nodes per column (>= 1).

        Returns
        -------
        ChebyshevColumns
        """
        if callable(funcs):
            funcs = [funcs]
        if not isinstance(n_nodes, (int, np.integer)) or n_nodes < 1:
            raise ValueError(f"n_nodes must be int >= 1, got {n_nodes}")
        lo, hi = domain
        nodes = chebyshev_nodes(lo, hi, n_nodes)
        columns = []
        for func in funcs:
            sampled = np.asarray(func(nodes), dtype=float)
            columns.append(np.broadcast_to(sampled, nodes.shape))
        values = np.column_stack(columns) if columns else np.zeros((n_nodes, 0))
        return cls(values, domain)

    @classmethod
    def constant(cls, value: float, domain: Tuple[float, float],
                 n_cols: int = 1) -> "ChebyshevColumns":
        """Columns that are all equal to the constant *value*."""
        return cls(np.full((1, n_cols), float(value)), domain)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def n_nodes(self) -> int:
        """Number of Chebyshev nodes per column."""
        return self.values.shape[0]

    @property
    def rank(self) -> int:
        """Number of columns."""
        return self.values.shape[1]

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, points) -> np.ndarray:
        """Evaluate every column at every point.

        Parameters
        ----------
        points : array_like
            Evaluation points; flattened in C order.

        Returns
        -------
        ndarray of shape (N, r)
            Entry ``[i, j]`` is column ``j`` at point ``i``.
        """
        pts = np.asarray(points, dtype=float).ravel()
        if pts.size == 0 or self.rank == 0:
            return np.zeros((pts.size, self.rank))
        return barycentric_matrix(pts, self.nodes, self.weights) @ self.values

    def __call__(self, points):
        """Evaluate, shaping the output like *points*.

        A single-column set returns an array with the shape of *points*
        (a float for scalar input); otherwise the column index is appended
        as the last axis.
        """
        pts = np.asarray(points, dtype=float)
        vals = self.evaluate(pts)
        if self.rank == 1:
            out = vals[:, 0].reshape(pts.shape)
            return float(out) if pts.ndim == 0 else out
        return vals.reshape(pts.shape + (self.rank,))

    # ------------------------------------------------------------------
    # Coefficients and compression
    # ------------------------------------------------------------------

    def coefficients(self) -> np.ndarray:
        """Chebyshev expansion coefficients of each column.

        Uses DCT-II (`scipy.fft.dct`) matching the Type I node layout.

        Returns
        -------
        ndarray of shape (n, r)
            Column ``j`` holds ``c_0, ..., c_{n-1}`` of function ``j``
            with respect to the interval mapped onto [-1, 1].
        """
        from scipy.fft import dct

        n = self.n_nodes
        if self.rank == 0:
            return np.zeros((n, 0))
        # Reverse to decreasing-node order for DCT-II convention
        coeffs = dct(self.values[::-1], type=2, axis=0) / n
        coeffs[0] /= 2
        return coeffs

    def simplify(self, tol: float = 1e-14) -> "ChebyshevColumns":
        """Drop negligible trailing Chebyshev coefficients.

        All columns keep a common length: the index of the last
        coefficient (over all columns) whose magnitude exceeds
        ``tol * max|c|``. The truncated expansion is resampled at the
        shorter Type I grid.

        Parameters
        ----------
        tol : float, optional
            Relative truncation threshold. Default is 1e-14.

        Returns
        -------
        ChebyshevColumns
            A new, possibly shorter, set; *self* if nothing can be dropped.
        """
        if self.rank == 0:
            return self
        coeffs = self.coefficients()
        scale = np.max(np.abs(coeffs))
        if scale == 0.0:
            length = 1
        else:
            significant = np.nonzero(np.any(np.abs(coeffs) > tol * scale, axis=1))[0]
            length = int(significant[-1]) + 1
        if length >= self.n_nodes:
            return self
        return self._from_coefficients(coeffs[:length])

    def resample(self, n_nodes: int) -> "ChebyshevColumns":
        """Represent the same columns on *n_nodes* Chebyshev nodes.

        Increasing the node count is exact; decreasing it truncates the
        Chebyshev expansion.
        """
        if not isinstance(n_nodes, (int, np.integer)) or n_nodes < 1:
            raise ValueError(f"n_nodes must be int >= 1, got {n_nodes}")
        if n_nodes == self.n_nodes:
            return self
        if self.rank == 0:
            return ChebyshevColumns(np.zeros((n_nodes, 0)), self.domain)
        coeffs = self.coefficients()
        if n_nodes > self.n_nodes:
            padding = np.zeros((n_nodes - self.n_nodes, self.rank))
            coeffs = np.vstack([coeffs, padding])
        return self._from_coefficients(coeffs[:n_nodes])

    def _from_coefficients(self, coeffs: np.ndarray) -> "ChebyshevColumns":
        nodes_std = np.sort(chebpts1(coeffs.shape[0]))
        values = chebval(nodes_std, coeffs).T
        return ChebyshevColumns(values, self.domain)

    def hstack(self, other: "ChebyshevColumns") -> "ChebyshevColumns":
        """Concatenate the columns of *self* and *other*.

        Both sets must share the interval; the result uses the larger node
        count.
        """
        if self.domain != other.domain:
            raise ValueError(
                f"Domain mismatch: {self.domain} vs {other.domain}"
            )
        n = max(self.n_nodes, other.n_nodes)
        a, b = self.resample(n), other.resample(n)
        return ChebyshevColumns(np.hstack([a.values, b.values]), self.domain)

    # ------------------------------------------------------------------
    # Linear combination
    # ------------------------------------------------------------------

    def __matmul__(self, matrix) -> "ChebyshevColumns":
        """Combine columns: ``(self @ M)_k = sum_j M[j, k] * self_j``."""
        M = np.asarray(matrix, dtype=float)
        if M.ndim == 1:
            M = M[:, np.newaxis]
        if M.ndim != 2 or M.shape[0] != self.rank:
            raise ShapeError(
                f"Cannot combine {self.rank} columns with a matrix of shape "
                f"{M.shape}"
            )
        return ChebyshevColumns(self.values @ M, self.domain)

    def column(self, j: int) -> "ChebyshevColumns":
        """Return column *j* as a single-column set."""
        return ChebyshevColumns(self.values[:, j], self.domain)

    def columns(self) -> List["ChebyshevColumns"]:
        """Split into single-column sets."""
        return [self.column(j) for j in range(self.rank)]

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        lo, hi = self.domain
        return (
            f"ChebyshevColumns("
            f"cols={self.rank}, "
            f"nodes={self.n_nodes}, "
            f"domain=[{lo}, {hi}])"
        )
