"""
Vectorized inner values, branch-safe selection and numeric traits.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from aad_tape import (
    ADVar, InnerValue, Comparison, CompareOp, NumericTraits,
    select, cond_exp, exp, log, sqrt, sign, fabs, erf, asin, integer,
    identical_zero, identical_one, identical_equal, identical_parameter,
    ArrayLengthMismatch, AmbiguousComparison, DomainError,
    recording, abort_taping,
)


@pytest.fixture(autouse=True)
def clean_context():
    yield
    abort_taping()


def test_variant_tags():
    s = InnerValue(2.5)
    a = InnerValue([1.0, 2.0, 3.0])
    assert s.is_scalar and not s.is_array
    assert a.is_array and not a.is_scalar
    assert s.size == 1
    assert a.size == 3
    assert s.element_at(7) == 2.5
    assert a.element_at(1) == 2.0
    assert s.to_scalar() == 2.5
    with pytest.raises(TypeError):
        a.to_scalar()
    with pytest.raises(ValueError):
        InnerValue([[1.0, 2.0]])


def test_broadcasting():
    a = InnerValue([1.0, 2.0, 3.0, 4.0])
    assert_array_equal((a * 2.0).to_numpy(), [2.0, 4.0, 6.0, 8.0])
    assert_array_equal((2.0 * a).to_numpy(), [2.0, 4.0, 6.0, 8.0])
    assert_array_equal((InnerValue(1.0) - a).to_numpy(), [0.0, -1.0, -2.0, -3.0])
    assert_array_equal((a / InnerValue(2.0)).to_numpy(), [0.5, 1.0, 1.5, 2.0])
    assert_array_equal((np.float64(3.0) + a).to_numpy(), [4.0, 5.0, 6.0, 7.0])
    s = InnerValue(2.0) * InnerValue(4.0)
    assert s.is_scalar and s.to_scalar() == 8.0


def test_array_length_mismatch():
    with pytest.raises(ArrayLengthMismatch):
        InnerValue([1.0, 2.0]) + InnerValue([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        InnerValue([1.0, 2.0]) * InnerValue([1.0, 2.0, 3.0])
    with pytest.raises(ArrayLengthMismatch):
        InnerValue([1.0, 2.0]) ** InnerValue([1.0, 2.0, 3.0])


def test_power():
    a = InnerValue([1.0, 2.0, 3.0])
    assert_allclose((a ** 2.0).to_numpy(), [1.0, 4.0, 9.0])
    assert_allclose((2.0 ** a).to_numpy(), [2.0, 4.0, 8.0])
    assert (InnerValue(-2.0) ** 3.0).to_scalar() == -8.0
    with pytest.raises(DomainError):
        InnerValue(-2.0) ** 0.5
    with pytest.raises(DomainError):
        InnerValue([1.0, 0.0]) ** -1.0


def test_select_on_array_condition():
    x = InnerValue([-1.0, 0.0, 1.0])
    out = select(x < 0.0, 1.0, 2.0)
    assert_array_equal(out.to_numpy(), [1.0, 2.0, 2.0])

    out = select(x >= 0.0, x * 10.0, InnerValue([7.0, 8.0, 9.0]))
    assert_array_equal(out.to_numpy(), [7.0, 0.0, 10.0])


def test_select_on_scalar_condition_short_circuits():
    t = InnerValue([1.0, 2.0])
    f = InnerValue([3.0, 4.0])
    assert select(InnerValue(1.0) < 2.0, t, f) is t
    assert select(False, t, f) is f
    assert select(True, 5.0, 6.0) == 5.0


def test_select_validates_branches_eagerly():
    t = InnerValue([1.0, 2.0])
    f = InnerValue([1.0, 2.0, 3.0])
    with pytest.raises(ArrayLengthMismatch):
        select(True, t, f)
    with pytest.raises(ArrayLengthMismatch):
        select(InnerValue(1.0) < 2.0, t, f)
    with pytest.raises(ArrayLengthMismatch):
        select(InnerValue([1.0, 2.0, 3.0, 4.0]) < 2.0, t, 0.0)


def test_select_requires_a_condition():
    with pytest.raises(TypeError):
        select("yes", 1.0, 2.0)


@pytest.mark.parametrize("op, expected", [
    (CompareOp.LT, [1.0, 0.0, 0.0]),
    (CompareOp.LE, [1.0, 1.0, 0.0]),
    (CompareOp.EQ, [0.0, 1.0, 0.0]),
    (CompareOp.GE, [0.0, 1.0, 1.0]),
    (CompareOp.GT, [0.0, 0.0, 1.0]),
    (CompareOp.NE, [1.0, 0.0, 1.0]),
])
def test_cond_exp_orderings(op, expected):
    left = InnerValue([1.0, 2.0, 3.0])
    out = cond_exp(op, left, 2.0, 1.0, 0.0)
    assert_array_equal(out.to_numpy(), expected)
    # scalar path agrees element by element
    for k, x in enumerate([1.0, 2.0, 3.0]):
        assert cond_exp(op, x, 2.0, 1.0, 0.0) == expected[k]


def test_comparison_truth_value():
    assert bool(InnerValue(1.0) < 2.0)
    assert not (InnerValue(3.0) < 2.0)
    c = InnerValue([1.0, 3.0]) < 2.0
    assert isinstance(c, Comparison)
    with pytest.raises(AmbiguousComparison):
        bool(c)
    with pytest.raises(TypeError):
        if InnerValue([1.0, 3.0]) == 1.0:
            pass


def test_equals_is_structural():
    assert InnerValue([1.0, 2.0]).equals([1.0, 2.0])
    assert not InnerValue([1.0, 1.0]).equals(1.0)
    assert InnerValue(1.0).equals(1.0)


# ------------------------------------------------------------ element math
def test_elementwise_math():
    a = InnerValue([0.25, 1.0, 4.0])
    assert_allclose(sqrt(a).to_numpy(), [0.5, 1.0, 2.0])
    assert_allclose(log(a).to_numpy(), np.log([0.25, 1.0, 4.0]))
    assert_allclose(exp(InnerValue([0.0, 1.0])).to_numpy(), [1.0, math.e])
    assert_allclose(erf(InnerValue([0.0, 0.5])).to_numpy(), [0.0, math.erf(0.5)])
    assert_allclose(fabs(InnerValue([-2.0, 3.0])).to_numpy(), [2.0, 3.0])
    assert erf(0.5) == math.erf(0.5)


def test_sign_of_zero_is_zero():
    assert sign(0.0) == 0.0
    assert sign(-0.0) == 0.0
    assert sign(-3.0) == -1.0
    assert_array_equal(sign(InnerValue([-2.0, 0.0, 3.0])).to_numpy(), [-1.0, 0.0, 1.0])


def test_domain_errors():
    with pytest.raises(DomainError):
        log(0.0)
    with pytest.raises(DomainError):
        sqrt(InnerValue([1.0, -1.0]))
    with pytest.raises(DomainError):
        asin(1.5)
    with pytest.raises(DomainError):
        InnerValue(1.0) / 0.0
    with pytest.raises(DomainError):
        2.0 / InnerValue([1.0, 0.0])
    assert_allclose((InnerValue([1.0, 4.0]) / 2.0).to_numpy(), [0.5, 2.0])
    # nan is not a domain violation
    assert math.isnan(log(float("nan")))


# ------------------------------------------------------------------ traits
def test_numeric_traits():
    assert NumericTraits.epsilon() == np.finfo(np.float64).eps
    assert NumericTraits.min() == np.finfo(np.float64).tiny
    assert NumericTraits.max() == np.finfo(np.float64).max
    assert math.isinf(NumericTraits.infinity())
    assert math.isnan(NumericTraits.quiet_nan())

    assert NumericTraits.is_nan(InnerValue([1.0, float("nan")]))
    assert not NumericTraits.is_nan(InnerValue([1.0, 2.0]))
    assert NumericTraits.is_inf(InnerValue([1.0, -math.inf]))
    assert not NumericTraits.is_finite(InnerValue([1.0, math.inf]))
    assert NumericTraits.is_finite(ADVar(2.0))
    assert NumericTraits.is_nan(ADVar(float("nan")))


def test_integer():
    assert integer(3.7) == 3
    assert integer(ADVar(2.0)) == 2
    assert integer(InnerValue(5.0)) == 5
    with pytest.raises(TypeError):
        integer(InnerValue([1.0, 2.0]))


def test_identical_predicates():
    assert identical_zero(0.0)
    assert identical_zero(InnerValue(0.0))
    assert not identical_zero(InnerValue([0.0, 0.0]))
    assert identical_one(1.0)
    assert not identical_one(InnerValue([1.0]))
    assert identical_equal(2.0, InnerValue(2.0))
    assert not identical_equal(InnerValue([2.0]), InnerValue([2.0]))
    assert identical_parameter(ADVar(0.0))

    with recording([0.0]) as (x,):
        assert not identical_zero(x)
        assert not identical_parameter(x)
