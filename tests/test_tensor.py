"""Tests for the multilinear primitives: txm, unfold, fold, outer_prod."""

from __future__ import annotations

import numpy as np
import pytest

from pycheb3 import ShapeError, fold, outer_prod, txm, unfold


@pytest.fixture
def T():
    return np.random.default_rng(0).standard_normal((3, 4, 5))


# ======================================================================
# TestUnfoldFold
# ======================================================================

class TestUnfoldFold:
    @pytest.mark.parametrize("mode", [0, 1, 2])
    def test_round_trip_exact(self, T, mode):
        assert np.array_equal(fold(unfold(T, mode), mode, T.shape), T)

    @pytest.mark.parametrize("mode,shape", [(0, (3, 20)), (1, (4, 15)), (2, (5, 12))])
    def test_unfold_shape(self, T, mode, shape):
        assert unfold(T, mode).shape == shape

    def test_unfold_natural_order(self, T):
        """Remaining modes flatten in C order: column a*5 + c holds T[a, :, c]."""
        M = unfold(T, 1)
        for a in range(3):
            for c in range(5):
                assert np.array_equal(M[:, a * 5 + c], T[a, :, c])

    def test_unfold_mode0_is_reshape(self, T):
        assert np.array_equal(unfold(T, 0), T.reshape(3, 20))

    def test_unfold_rejects_matrix(self):
        with pytest.raises(ShapeError, match="3-way"):
            unfold(np.ones((2, 2)), 0)

    def test_fold_size_mismatch(self, T):
        with pytest.raises(ShapeError, match="Cannot fold"):
            fold(unfold(T, 0), 0, (3, 4, 6))

    def test_fold_needs_three_dims(self, T):
        with pytest.raises(ShapeError):
            fold(unfold(T, 0), 0, (3, 20))

    def test_bad_mode(self, T):
        with pytest.raises(ValueError, match="out of range"):
            unfold(T, 3)
        with pytest.raises(TypeError):
            unfold(T, 1.0)


# ======================================================================
# TestTxm
# ======================================================================

class TestTxm:
    @pytest.mark.parametrize("mode,subscripts", [
        (0, "ai,ijk->ajk"),
        (1, "aj,ijk->iak"),
        (2, "ak,ijk->ija"),
    ])
    def test_matches_einsum(self, T, mode, subscripts):
        M = np.random.default_rng(1).standard_normal((7, T.shape[mode]))
        expected = np.einsum(subscripts, M, T)
        result = txm(T, M, mode)
        assert result.shape == expected.shape
        assert np.allclose(result, expected, rtol=1e-13, atol=1e-13)

    def test_vector_is_single_row(self, T):
        v = np.arange(4.0)
        result = txm(T, v, 1)
        assert result.shape == (3, 1, 5)
        assert np.allclose(result[:, 0, :], np.einsum("j,ijk->ik", v, T))

    def test_chain_order_independent_for_distinct_modes(self, T):
        rng = np.random.default_rng(2)
        A = rng.standard_normal((2, 3))
        B = rng.standard_normal((6, 4))
        left = txm(txm(T, A, 0), B, 1)
        right = txm(txm(T, B, 1), A, 0)
        assert np.allclose(left, right, atol=1e-13)

    @pytest.mark.parametrize("mode", [0, 1, 2])
    def test_column_mismatch_raises(self, T, mode):
        """Never truncates or pads: one column too many or too few fails."""
        n = T.shape[mode]
        for cols in (n - 1, n + 1):
            with pytest.raises(ShapeError, match="cannot contract"):
                txm(T, np.ones((2, cols)), mode)

    def test_rejects_non_3way_tensor(self):
        with pytest.raises(ShapeError, match="3-way"):
            txm(np.ones((3, 3)), np.ones((2, 3)), 0)

    def test_rejects_3way_matrix_operand(self, T):
        with pytest.raises(ShapeError, match="vector or matrix"):
            txm(T, np.ones((2, 3, 1)), 0)

    def test_zero_rows(self, T):
        result = txm(T, np.zeros((0, 3)), 0)
        assert result.shape == (0, 4, 5)


# ======================================================================
# TestOuterProd
# ======================================================================

class TestOuterProd:
    def test_two_vectors(self):
        a = np.array([1.0, 2.0])
        b = np.array([3.0, 4.0, 5.0])
        assert np.array_equal(outer_prod(a, b), np.outer(a, b))

    def test_three_vectors(self):
        a, b, c = np.array([1.0, 2.0]), np.array([3.0]), np.array([1.0, -1.0, 2.0])
        P = outer_prod(a, b, c)
        assert P.shape == (2, 1, 3)
        assert P[1, 0, 2] == 2.0 * 3.0 * 2.0

    def test_matrix_and_vector(self):
        A = np.arange(6.0).reshape(2, 3)
        c = np.array([1.0, 10.0])
        P = outer_prod(A, c)
        assert P.shape == (2, 3, 2)
        assert np.array_equal(P[:, :, 1], 10.0 * A)

    def test_too_many_modes(self):
        with pytest.raises(ShapeError, match="at most 3"):
            outer_prod(np.ones((2, 2)), np.ones((2, 2)))

    def test_scalar_operand(self):
        with pytest.raises(ShapeError, match="scalar"):
            outer_prod(np.ones(2), 3.0)

    def test_empty_operand(self):
        with pytest.raises(ShapeError, match="empty"):
            outer_prod(np.ones(2), np.ones(0))
