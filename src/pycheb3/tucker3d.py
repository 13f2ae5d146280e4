"""Trivariate functions in Tucker format with Chebyshev axis functions.

A :class:`ChebyshevTucker3D` stores

.. math::

    f(x, y, z) = \\sum_{i,j,k} C_{ijk}\\, c_i(x)\\, r_j(y)\\, t_k(z)

where ``c``, ``r`` and ``t`` are :class:`ChebyshevColumns` (columns, rows
and tubes) and ``C`` is a small dense core of shape ``(r1, r2, r3)``, the
multilinear rank. Building the factors from an arbitrary target function
(cross approximation, HOSVD) is not part of this module; objects are
assembled from already computed factors.

References
----------
- Hashemi & Trefethen (2017), "Chebfun in Three Dimensions",
  SIAM J. Sci. Comput. 39(5):C341-C363
- Kolda & Bader (2009), "Tensor Decompositions and Applications",
  SIAM Review 51(3):455-500
"""

from __future__ import annotations

import os
import pickle
import warnings
from typing import Callable, List, Sequence, Tuple

import numpy as np

from pycheb3._errors import ShapeError
from pycheb3._evaluate import evaluate, evaluate_tensor_grid
from pycheb3._tensor import outer_prod
from pycheb3.columns import ChebyshevColumns, chebyshev_nodes


def _validate_domain(domain) -> List[Tuple[float, float]]:
    if len(domain) != 3:
        raise ValueError(f"domain must have 3 intervals, got {len(domain)}")
    out = []
    for d, (lo, hi) in enumerate(domain):
        if not (np.isfinite(lo) and np.isfinite(hi)):
            raise ValueError(f"domain[{d}] bounds must be finite, got [{lo}, {hi}]")
        if lo >= hi:
            raise ValueError(
                f"domain[{d}]: lo={lo} must be strictly less than hi={hi}"
            )
        out.append((float(lo), float(hi)))
    return out


class ChebyshevTucker3D:
    """Trivariate function in Tucker format.

    Parameters
    ----------
    cols : ChebyshevColumns
        ``r1`` basis functions of x.
    rows : ChebyshevColumns
        ``r2`` basis functions of y.
    tubes : ChebyshevColumns
        ``r3`` basis functions of z.
    core : array_like of shape (r1, r2, r3)
        Core tensor. Copied and stored read-only.
    domain : list of (float, float), optional
        ``[(a, b), (c, d), (e, g)]``. Defaults to the intervals of the
        three axis sets; if given it must match them.

    Examples
    --------
    >>> dom = [(-1, 1), (-1, 1), (-1, 1)]
    >>> f = ChebyshevTucker3D.constant(5.0, dom)
    >>> f(0.3, -0.2, 0.9)
    5.0
    """

    def __init__(
        self,
        cols: ChebyshevColumns,
        rows: ChebyshevColumns,
        tubes: ChebyshevColumns,
        core,
        domain: Sequence[Tuple[float, float]] | None = None,
    ):
        core = np.asarray(core, dtype=float)
        ranks = (cols.rank, rows.rank, tubes.rank)
        if core.ndim != 3 or core.shape != ranks:
            raise ShapeError(
                f"core shape {core.shape} does not match axis ranks {ranks}"
            )
        if not np.isfinite(core).all():
            raise ValueError("core contains NaN or Inf")

        factor_domain = [cols.domain, rows.domain, tubes.domain]
        if domain is None:
            domain = factor_domain
        domain = _validate_domain(domain)
        if domain != factor_domain:
            raise ValueError(
                f"domain {domain} does not match the axis intervals {factor_domain}"
            )

        self.cols = cols
        self.rows = rows
        self.tubes = tubes
        self.core = core.copy()
        self.core.flags.writeable = False
        self.domain = domain

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def constant(cls, value: float,
                 domain: Sequence[Tuple[float, float]]) -> "ChebyshevTucker3D":
        """Rank (1, 1, 1) function equal to *value* everywhere."""
        domain = _validate_domain(domain)
        ones = [ChebyshevColumns.constant(1.0, dom) for dom in domain]
        return cls(*ones, np.full((1, 1, 1), float(value)), domain)

    @classmethod
    def empty(cls, domain: Sequence[Tuple[float, float]] = ((-1, 1), (-1, 1), (-1, 1))
              ) -> "ChebyshevTucker3D":
        """Function with no terms; evaluates to an empty array."""
        domain = _validate_domain(domain)
        factors = [ChebyshevColumns(np.zeros((1, 0)), dom) for dom in domain]
        return cls(*factors, np.zeros((0, 0, 0)), domain)

    @classmethod
    def separable(
        cls,
        fx: Callable,
        fy: Callable,
        fz: Callable,
        domain: Sequence[Tuple[float, float]],
        n_nodes: Sequence[int],
    ) -> "ChebyshevTucker3D":
        """Rank (1, 1, 1) function ``fx(x) * fy(y) * fz(z)``.

        Each factor is sampled at Chebyshev nodes and scaled to unit
        maximum; the scales go into the core.

        Parameters
        ----------
        fx, fy, fz : callable
            Vectorised univariate functions.
        domain : list of (float, float)
            Intervals for x, y and z.
        n_nodes : list of int
            Chebyshev nodes per axis.
        """
        domain = _validate_domain(domain)
        if len(n_nodes) != 3:
            raise ValueError(f"n_nodes must have 3 entries, got {len(n_nodes)}")
        factors = []
        scales = []
        for func, dom, n in zip((fx, fy, fz), domain, n_nodes):
            cols = ChebyshevColumns.from_function(func, dom, n)
            scale = float(np.max(np.abs(cols.values)))
            if scale == 0.0:
                scale = 1.0
            factors.append(ChebyshevColumns(cols.values / scale, dom))
            scales.append([scale])
        core = outer_prod(*scales)
        return cls(*factors, core, domain)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def rank(self) -> Tuple[int, int, int]:
        """Multilinear rank ``(r1, r2, r3)``."""
        return self.core.shape

    @property
    def is_empty(self) -> bool:
        """True if the core has no entries."""
        return self.core.size == 0

    def tucker(self) -> Tuple[np.ndarray, ChebyshevColumns, ChebyshevColumns, ChebyshevColumns]:
        """Return ``(core, cols, rows, tubes)``; the core is a writable copy."""
        return self.core.copy(), self.cols, self.rows, self.tubes

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def __call__(self, x, y, z, **options):
        """Evaluate; see :func:`pycheb3.evaluate` for arguments."""
        return evaluate(self, x, y, z, **options)

    def __getitem__(self, key):
        """``f[x, y, z]`` with ``:`` for a whole axis."""
        if not isinstance(key, tuple) or len(key) != 3:
            raise IndexError("ChebyshevTucker3D indexing needs exactly 3 entries")
        return evaluate(self, *key)

    def sample(self, m: int, n: int | None = None, p: int | None = None) -> np.ndarray:
        """Values on an ``m x n x p`` Chebyshev Type I tensor grid.

        Parameters
        ----------
        m, n, p : int
            Nodes along x, y and z. *n* and *p* default to *m*.

        Returns
        -------
        ndarray of shape (m, n, p)
        """
        n = m if n is None else n
        p = m if p is None else p
        grids = [chebyshev_nodes(lo, hi, k) for (lo, hi), k in zip(self.domain, (m, n, p))]
        return evaluate_tensor_grid(self, *grids)

    def vscale(self) -> float:
        """Largest absolute value on the grid of the stored node counts."""
        if self.is_empty:
            return 0.0
        values = self.sample(self.cols.n_nodes, self.rows.n_nodes, self.tubes.n_nodes)
        return float(np.max(np.abs(values)))

    def permute(self, order: Sequence[int]) -> "ChebyshevTucker3D":
        """Reorder the variables.

        The result ``g`` satisfies ``g(u0, u1, u2) = f(w)`` with
        ``w[order[k]] = u_k``; ``permute((1, 0, 2))`` swaps x and y.
        *self* is left unchanged.
        """
        order = tuple(int(o) for o in order)
        if sorted(order) != [0, 1, 2]:
            raise ValueError(f"order must be a permutation of (0, 1, 2), got {order}")
        factors = (self.cols, self.rows, self.tubes)
        return ChebyshevTucker3D(
            *(factors[o] for o in order),
            np.transpose(self.core, order),
            [self.domain[o] for o in order],
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def __getstate__(self) -> dict:
        """Return picklable state with a version stamp."""
        from pycheb3._version import __version__

        state = self.__dict__.copy()
        state["_pycheb3_version"] = __version__
        return state

    def __setstate__(self, state: dict) -> None:
        """Restore state, warning if it was written by another version."""
        from pycheb3._version import __version__

        saved_version = state.pop("_pycheb3_version", None)
        if saved_version is not None and saved_version != __version__:
            warnings.warn(
                f"This object was saved with pycheb3 {saved_version}, "
                f"and is being loaded with {__version__}; "
                f"the stored layout may have changed.",
                UserWarning,
                stacklevel=2,
            )
        self.__dict__.update(state)
        # Unpickled arrays come back writable
        self.core.flags.writeable = False

    def save(self, path: str | os.PathLike) -> None:
        """Save the function to a file.

        Parameters
        ----------
        path : str or path-like
            Destination file path.
        """
        with open(os.fspath(path), "wb") as f:
            pickle.dump(self, f, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def load(cls, path: str | os.PathLike) -> "ChebyshevTucker3D":
        """Load a function saved with :meth:`save`.

        Parameters
        ----------
        path : str or path-like
            Path to the saved file.

        Returns
        -------
        ChebyshevTucker3D

        Warns
        -----
        UserWarning
            If the file was saved with a different pycheb3 version.

        .. warning::

            This method uses :mod:`pickle` internally. Pickle can execute
            arbitrary code during deserialization. **Only load files you
            trust.**
        """
        with open(os.fspath(path), "rb") as f:
            obj = pickle.load(f)  # noqa: S301
        if not isinstance(obj, cls):
            raise TypeError(
                f"Expected a {cls.__name__} instance, got {type(obj).__name__}"
            )
        return obj

    # ------------------------------------------------------------------
    # Arithmetic operators
    # ------------------------------------------------------------------

    def __add__(self, other):
        """Sum with block-diagonal core; ranks add up (no recompression)."""
        if type(self) is not type(other):
            return NotImplemented
        from pycheb3._algebra import _block_diagonal, _check_compatible
        _check_compatible(self, other)
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return ChebyshevTucker3D(
            self.cols.hstack(other.cols),
            self.rows.hstack(other.rows),
            self.tubes.hstack(other.tubes),
            _block_diagonal(self.core, other.core),
            self.domain,
        )

    def __sub__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self + (-other)

    def __mul__(self, scalar):
        from pycheb3._algebra import _is_scalar
        if not _is_scalar(scalar):
            return NotImplemented
        return ChebyshevTucker3D(
            self.cols, self.rows, self.tubes, self.core * float(scalar), self.domain
        )

    def __rmul__(self, scalar):
        return self.__mul__(scalar)

    def __truediv__(self, scalar):
        from pycheb3._algebra import _is_scalar
        if not _is_scalar(scalar):
            return NotImplemented
        return self.__mul__(1.0 / float(scalar))

    def __neg__(self):
        return self.__mul__(-1.0)

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"ChebyshevTucker3D("
            f"rank={self.rank}, "
            f"empty={self.is_empty})"
        )

    def __str__(self) -> str:
        status = "empty" if self.is_empty else "Tucker"
        nodes = [self.cols.n_nodes, self.rows.n_nodes, self.tubes.n_nodes]
        domain_str = " x ".join(f"[{lo}, {hi}]" for lo, hi in self.domain)
        factor_storage = sum(n * r for n, r in zip(nodes, self.rank))
        full_size = int(np.prod(nodes))

        lines = [
            f"ChebyshevTucker3D (3D, {status})",
            f"  Rank:        {self.rank}",
            f"  Nodes:       {nodes} ({full_size:,} full tensor)",
            f"  Domain:      {domain_str}",
            f"  Storage:     {self.core.size + factor_storage:,} values",
        ]
        if not self.is_empty:
            lines.append(f"  Vscale:      {self.vscale():.2e}")
        return "\n".join(lines)
