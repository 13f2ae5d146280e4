"""Helpers for arithmetic on Tucker functions."""

from __future__ import annotations

import numpy as np


def _is_scalar(value) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating))


def _check_compatible(a, b) -> None:
    """Raise unless *a* and *b* live on the same domain.

    Ranks and node counts may differ; axis sets are resampled to a common
    node count when concatenated.
    """
    if a.domain != b.domain:
        raise ValueError(f"Domain mismatch: {a.domain} vs {b.domain}")


def _block_diagonal(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """3-way tensor with *A* and *B* as diagonal blocks, zeros elsewhere.

    ``(r1, r2, r3)`` and ``(s1, s2, s3)`` blocks give shape
    ``(r1 + s1, r2 + s2, r3 + s3)``.
    """
    r1, r2, r3 = A.shape
    out = np.zeros(tuple(a + b for a, b in zip(A.shape, B.shape)))
    out[:r1, :r2, :r3] = A
    out[r1:, r2:, r3:] = B
    return out
