from __future__ import annotations

from pytest import approx

from flocksim.sim.utils.matrix import Matrix2
from flocksim.sim.utils.vector import Vector2


def test_identity_is_neutral_for_multiplication():
    m = Matrix2(1.0, 2.0, 3.0, 4.0)
    assert Matrix2.identity().multiply(m) == m
    assert m.multiply(Matrix2.identity()) == m
    assert m @ Matrix2.identity() == m


def test_multiply_is_row_major():
    a = Matrix2(1.0, 2.0, 3.0, 4.0)
    b = Matrix2(5.0, 6.0, 7.0, 8.0)
    assert a.multiply(b) == Matrix2(19.0, 22.0, 43.0, 50.0)


def test_multiply_vector():
    m = Matrix2(1.0, 2.0, 3.0, 4.0)
    assert m.multiply_vector(Vector2(1.0, -1.0)) == Vector2(-1.0, -1.0)


def test_transpose_add_subtract():
    m = Matrix2(1.0, 2.0, 3.0, 4.0)
    assert m.transpose() == Matrix2(1.0, 3.0, 2.0, 4.0)
    assert m.add(Matrix2.identity()) == Matrix2(2.0, 2.0, 3.0, 5.0)
    assert m.subtract(m) == Matrix2.zero()


def test_singular_matrix_has_no_inverse():
    assert Matrix2(1.0, 2.0, 2.0, 4.0).inverse() is None
    assert Matrix2.zero().inverse() is None
    assert Matrix2(1e-4, 0.0, 0.0, 1e-3).inverse() is None


def test_inverse_times_matrix_is_identity():
    m = Matrix2(4.0, 7.0, 2.0, 6.0)
    inverse = m.inverse()
    assert inverse is not None
    product = inverse.multiply(m)
    assert product.m11 == approx(1.0, abs=1e-5)
    assert product.m12 == approx(0.0, abs=1e-5)
    assert product.m21 == approx(0.0, abs=1e-5)
    assert product.m22 == approx(1.0, abs=1e-5)
