"""Multilinear algebra on 3-way arrays: mode products, unfoldings, outer products.

All routines are strict about shapes: a mismatch raises
:class:`~pycheb3.ShapeError` rather than broadcasting, truncating or
padding. Modes are numbered 0, 1, 2.

References
----------
- Kolda & Bader (2009), "Tensor Decompositions and Applications",
  SIAM Review 51(3):455-500
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from pycheb3._errors import ShapeError


def _check_mode(mode: int) -> int:
    if not isinstance(mode, (int, np.integer)):
        raise TypeError(f"mode must be int, got {type(mode).__name__}")
    if mode < 0 or mode > 2:
        raise ValueError(f"mode {mode} out of range [0, 2]")
    return int(mode)


def unfold(T: np.ndarray, mode: int) -> np.ndarray:
    """Matricize a 3-way tensor with *mode* exposed as rows.

    The two remaining modes are flattened in their natural (C) order, so
    for ``mode=1`` column ``a * n2 + c`` of the result holds
    ``T[a, :, c]``.

    Parameters
    ----------
    T : ndarray of shape (n0, n1, n2)
        Tensor to unfold.
    mode : int
        Mode to expose (0, 1 or 2).

    Returns
    -------
    ndarray of shape (T.shape[mode], T.size // T.shape[mode])
        Mode-*mode* unfolding.

    Raises
    ------
    ShapeError
        If *T* is not 3-dimensional.
    """
    mode = _check_mode(mode)
    T = np.asarray(T)
    if T.ndim != 3:
        raise ShapeError(f"unfold expects a 3-way tensor, got ndim={T.ndim}")
    rest = int(np.prod([T.shape[d] for d in range(3) if d != mode]))
    return np.moveaxis(T, mode, 0).reshape(T.shape[mode], rest)


def fold(M: np.ndarray, mode: int, dims: Sequence[int]) -> np.ndarray:
    """Inverse of :func:`unfold`.

    ``fold(unfold(T, m), m, T.shape)`` reproduces ``T`` exactly.

    Parameters
    ----------
    M : ndarray of shape (dims[mode], prod(other dims))
        Unfolded tensor.
    mode : int
        Mode that was exposed as rows.
    dims : sequence of 3 ints
        Shape of the folded tensor.

    Returns
    -------
    ndarray of shape dims

    Raises
    ------
    ShapeError
        If *dims* is not of length 3 or does not match the size of *M*.
    """
    mode = _check_mode(mode)
    M = np.asarray(M)
    dims = tuple(int(d) for d in dims)
    if len(dims) != 3:
        raise ShapeError(f"fold expects 3 target dims, got {dims}")
    others = [dims[d] for d in range(3) if d != mode]
    expected = (dims[mode], others[0] * others[1])
    if M.ndim != 2 or M.shape != expected:
        raise ShapeError(
            f"Cannot fold array of shape {M.shape} along mode {mode} "
            f"into {dims}: expected shape {expected}"
        )
    return np.moveaxis(M.reshape([dims[mode]] + others), 0, mode)


def txm(T: np.ndarray, M: np.ndarray, mode: int) -> np.ndarray:
    """Mode-*mode* product of a 3-way tensor with a matrix.

    ``txm(T, M, 0)[a, j, k] = sum_i M[a, i] * T[i, j, k]``, and likewise
    for the other modes. The dimension along *mode* becomes ``M.shape[0]``.

    Parameters
    ----------
    T : ndarray of shape (n0, n1, n2)
        Tensor to contract.
    M : ndarray of shape (m, T.shape[mode]) or (T.shape[mode],)
        Matrix to contract with. A 1-D array is treated as a single row.
    mode : int
        Mode along which to contract (0, 1 or 2).

    Returns
    -------
    ndarray
        Tensor of shape ``T.shape`` with entry *mode* replaced by ``m``.

    Raises
    ------
    ShapeError
        If *T* is not 3-way, *M* is not a vector or matrix, or the column
        count of *M* differs from ``T.shape[mode]``.
    """
    mode = _check_mode(mode)
    T = np.asarray(T)
    M = np.asarray(M)
    if T.ndim != 3:
        raise ShapeError(f"txm expects a 3-way tensor, got ndim={T.ndim}")
    if M.ndim == 1:
        M = M[np.newaxis, :]
    if M.ndim != 2:
        raise ShapeError(f"txm expects a vector or matrix, got ndim={M.ndim}")
    if M.shape[1] != T.shape[mode]:
        raise ShapeError(
            f"Matrix of shape {M.shape} cannot contract mode {mode} of "
            f"tensor with shape {T.shape}: {M.shape[1]} columns vs "
            f"{T.shape[mode]}"
        )
    dims = list(T.shape)
    dims[mode] = M.shape[0]
    return fold(M @ unfold(T, mode), mode, dims)


def outer_prod(a: np.ndarray, b: np.ndarray, c: np.ndarray | None = None) -> np.ndarray:
    """Tensor (outer) product of two or three arrays.

    ``outer_prod(a, b)[i, j] = a[i] * b[j]`` for vectors;
    ``outer_prod(a, b, c)[i, j, k] = a[i] * b[j] * c[k]``. A matrix operand
    contributes both of its modes, so ``outer_prod(A, c)`` with a matrix
    ``A`` is a 3-way tensor.

    Raises
    ------
    ShapeError
        If an operand is a scalar or empty, or the result would have more
        than 3 modes.
    """
    operands = [np.asarray(a), np.asarray(b)]
    if c is not None:
        operands.append(np.asarray(c))
    for i, op in enumerate(operands):
        if op.ndim == 0:
            raise ShapeError(f"outer_prod operand {i} is a scalar; expected an array")
        if op.size == 0:
            raise ShapeError(f"outer_prod operand {i} is empty")
    order = sum(op.ndim for op in operands)
    if order > 3:
        shapes: Tuple[Tuple[int, ...], ...] = tuple(op.shape for op in operands)
        raise ShapeError(
            f"outer_prod result would have {order} modes (operand shapes "
            f"{shapes}); at most 3 are supported"
        )
    result = operands[0]
    for op in operands[1:]:
        result = np.multiply.outer(result, op)
    return result
