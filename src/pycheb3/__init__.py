"""PyCheb3: trivariate Chebyshev functions in Tucker format.

Provides the :class:`ChebyshevTucker3D` class, which represents a smooth
function of three variables as a small core tensor contracted with three
sets of univariate Chebyshev interpolants (:class:`ChebyshevColumns`),
and :func:`evaluate`, which evaluates such functions at points, on
ndgrid/meshgrid layouts, along paths, or with some variables left free
(returning :class:`ChebyshevTucker2D` or :class:`ChebyshevColumns`).
The multilinear primitives :func:`txm`, :func:`unfold`, :func:`fold` and
:func:`outer_prod` are exported as well.

Example
-------
>>> import numpy as np
>>> from pycheb3 import ChebyshevColumns, ChebyshevTucker3D
>>> dom = (-1, 1)
>>> basis = ChebyshevColumns.from_function([np.ones_like, lambda t: t], dom, 2)
>>> core = np.zeros((2, 2, 2))
>>> core[1, 0, 0] = core[0, 1, 0] = core[0, 0, 1] = 1.0
>>> f = ChebyshevTucker3D(basis, basis, basis, core)   # x + y + z
>>> round(f(0.1, 0.2, 0.3), 12)
0.6
"""

from pycheb3._errors import ShapeError, UnsupportedEvaluationShape
from pycheb3._evaluate import WHOLE, ArgKind, evaluate, evaluate_tensor_grid
from pycheb3._grids import GridLayout, detect_grid_pattern
from pycheb3._tensor import fold, outer_prod, txm, unfold
from pycheb3._version import __version__
from pycheb3.columns import ChebyshevColumns
from pycheb3.tucker2d import ChebyshevTucker2D
from pycheb3.tucker3d import ChebyshevTucker3D

__all__ = [
    "ArgKind",
    "ChebyshevColumns",
    "ChebyshevTucker2D",
    "ChebyshevTucker3D",
    "GridLayout",
    "ShapeError",
    "UnsupportedEvaluationShape",
    "WHOLE",
    "__version__",
    "detect_grid_pattern",
    "evaluate",
    "evaluate_tensor_grid",
    "fold",
    "outer_prod",
    "txm",
    "unfold",
]
