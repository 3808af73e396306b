from __future__ import annotations

import math

import pytest
from pytest import approx

from flocksim.sim.utils.vector import ZERO, Vector2


def test_arithmetic_returns_new_instances():
    a = Vector2(1.0, 2.0)
    b = Vector2(3.0, -4.0)

    assert a + b == Vector2(4.0, -2.0)
    assert a - b == Vector2(-2.0, 6.0)
    assert a * 2.0 == Vector2(2.0, 4.0)
    assert 2.0 * a == Vector2(2.0, 4.0)
    assert b / 2.0 == Vector2(1.5, -2.0)
    assert a == Vector2(1.0, 2.0)


def test_named_operations_match_operators():
    a = Vector2(1.0, 2.0)
    b = Vector2(3.0, -4.0)

    assert a.add(b) == a + b
    assert a.sub(b) == a - b
    assert a.scale(-1.5) == a * -1.5
    assert a.divide(4.0) == a / 4.0


def test_vectors_are_immutable():
    v = Vector2(1.0, 1.0)
    with pytest.raises(AttributeError):
        v.x = 5.0  # type: ignore[misc]


def test_division_by_zero_returns_zero_vector():
    assert Vector2(5.0, 10.0) / 0 == Vector2(0.0, 0.0)
    assert Vector2(-3.0, 7.0).divide(0.0) == ZERO


def test_normalize_zero_vector_is_zero():
    result = Vector2(0.0, 0.0).normalize()
    assert result == Vector2(0.0, 0.0)
    assert not math.isnan(result.x)


def test_magnitude_and_normalize():
    v = Vector2(3.0, 4.0)
    assert v.magnitude_squared() == approx(25.0)
    assert v.magnitude() == approx(5.0)
    unit = v.normalize()
    assert unit.x == approx(0.6)
    assert unit.y == approx(0.8)
    assert unit.magnitude() == approx(1.0)


def test_clamp_magnitude_shortens_long_vectors_only():
    long = Vector2(30.0, 40.0).clamp_magnitude(5.0)
    assert long.magnitude() == approx(5.0)
    assert long.x == approx(3.0)
    assert long.y == approx(4.0)

    short = Vector2(0.3, 0.4)
    assert short.clamp_magnitude(5.0) == short
    assert ZERO.clamp_magnitude(1.0) == ZERO


def test_squared_distance_is_symmetric():
    a = Vector2(1.0, 1.0)
    b = Vector2(4.0, 5.0)
    assert a.squared_distance_to(b) == approx(25.0)
    assert b.squared_distance_to(a) == approx(25.0)
    assert a.squared_distance_to(a) == 0.0


def test_extreme_values_stay_finite():
    tiny = Vector2(1e-30, -1e-30).normalize()
    assert tiny.is_finite()
    assert tiny.magnitude() == approx(1.0)
    big = Vector2(1e150, 1e150).clamp_magnitude(4.0)
    assert big.is_finite()
    assert big.magnitude() == approx(4.0)
