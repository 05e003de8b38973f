# aad_tape/numeric.py
"""
Numeric layer shared by the recorder and the sweeps.

* Base math on plain values (float or InnerValue), with domain checks that
  raise DomainError instead of returning nan/complex results.
* A self-contained numeric-traits table (epsilon, min, max, classification).
* "Identical" predicates used by the recorder to elide trivial operations;
  they only ever answer True for the scalar variant.
"""
from __future__ import annotations

import math
import sys
from typing import Any, Callable

import numpy as np
from scipy.special import erf as _scipy_erf

from .core.errors import ArrayLengthMismatch, DomainError
from .inner.value import InnerValue, as_inner, divide as _divide, is_scalar_value, scalar_of


def _primal(x: Any) -> Any:
    from .core.var import ADVar  # local import to avoid cycles
    return x.val if isinstance(x, ADVar) else x


def _is_tracked(x: Any) -> bool:
    from .core.var import ADVar
    return isinstance(x, ADVar) and x.is_variable


# ---------------------------------------------------------------- domain
def _check_domain(x, bad: Callable, name: str):
    if isinstance(x, InnerValue):
        if bool(np.any(bad(x.to_numpy()))):
            raise DomainError(f"{name} evaluated outside of its domain for {x!r}")
    elif bad(x):
        raise DomainError(f"{name} evaluated outside of its domain at {x!r}")


def _lift(x, scalar_fn: Callable, ufunc: Callable):
    if isinstance(x, InnerValue):
        return x.apply(ufunc)
    return scalar_fn(float(x))


# -------------------------------------------------------------- base math
def exp(x):
    return _lift(x, math.exp, np.exp)


def log(x):
    _check_domain(x, lambda v: v <= 0.0, "log")
    return _lift(x, math.log, np.log)


def sqrt(x):
    _check_domain(x, lambda v: v < 0.0, "sqrt")
    return _lift(x, math.sqrt, np.sqrt)


def sin(x):
    return _lift(x, math.sin, np.sin)


def cos(x):
    return _lift(x, math.cos, np.cos)


def tan(x):
    return _lift(x, math.tan, np.tan)


def asin(x):
    _check_domain(x, lambda v: abs(v) > 1.0, "asin")
    return _lift(x, math.asin, np.arcsin)


def acos(x):
    _check_domain(x, lambda v: abs(v) > 1.0, "acos")
    return _lift(x, math.acos, np.arccos)


def atan(x):
    return _lift(x, math.atan, np.arctan)


def sinh(x):
    return _lift(x, math.sinh, np.sinh)


def cosh(x):
    return _lift(x, math.cosh, np.cosh)


def tanh(x):
    return _lift(x, math.tanh, np.tanh)


def fabs(x):
    return _lift(x, abs, np.abs)


def _sign_scalar(v: float) -> float:
    if v > 0.0:
        return 1.0
    if v == 0.0:
        return 0.0
    if v < 0.0:
        return -1.0
    return v  # nan


def sign(x):
    return _lift(x, _sign_scalar, np.sign)


def erf(x):
    return _lift(x, math.erf, _scipy_erf)


def divide(x, y):
    """`x / y` on either variant; a zero divisor raises DomainError."""
    if isinstance(x, InnerValue) or isinstance(y, InnerValue):
        return as_inner(x) / y
    return _divide(float(x), float(y))


def power(x, y):
    """`x ** y` element-wise; negative bases need integer exponents."""
    if not isinstance(x, InnerValue) and not isinstance(y, InnerValue):
        x, y = float(x), float(y)
        if x < 0.0 and y != math.floor(y):
            raise DomainError(f"pow of negative base {x!r} with non-integer exponent {y!r}")
        if x == 0.0 and y < 0.0:
            raise DomainError(f"pow of zero with negative exponent {y!r}")
        return x ** y

    xi, yi = as_inner(x), as_inner(y)
    if xi.is_array and yi.is_array and xi.size != yi.size:
        raise ArrayLengthMismatch(f"array lengths differ: {xi.size} vs {yi.size}")
    size = None if (xi.is_scalar and yi.is_scalar) else max(xi.size, yi.size)
    xa, ya = xi.to_numpy(size), yi.to_numpy(size)
    if bool(np.any((xa < 0.0) & (ya != np.floor(ya)))):
        raise DomainError("pow of negative base with non-integer exponent")
    if bool(np.any((xa == 0.0) & (ya < 0.0))):
        raise DomainError("pow of zero with negative exponent")
    if size is None:
        return InnerValue(float(xa) ** float(ya))
    return InnerValue(np.power(xa, ya))


# ---------------------------------------------------------- numeric traits
class NumericTraits:
    """Limits and classification for every numeric type of the package."""

    @staticmethod
    def epsilon() -> float:
        return sys.float_info.epsilon

    @staticmethod
    def min() -> float:
        """Smallest positive normalized double."""
        return sys.float_info.min

    @staticmethod
    def max() -> float:
        return sys.float_info.max

    @staticmethod
    def infinity() -> float:
        return math.inf

    @staticmethod
    def quiet_nan() -> float:
        return math.nan

    @staticmethod
    def is_nan(x) -> bool:
        """True if any element is nan."""
        x = _primal(x)
        if isinstance(x, InnerValue):
            return bool(np.any(np.isnan(x.to_numpy())))
        return math.isnan(x)

    @staticmethod
    def is_inf(x) -> bool:
        """True if any element is +/-inf."""
        x = _primal(x)
        if isinstance(x, InnerValue):
            return bool(np.any(np.isinf(x.to_numpy())))
        return math.isinf(x)

    @staticmethod
    def is_finite(x) -> bool:
        """True if every element is finite."""
        x = _primal(x)
        if isinstance(x, InnerValue):
            return bool(np.all(np.isfinite(x.to_numpy())))
        return math.isfinite(x)


def integer(x) -> int:
    """Truncate a scalar value to an int (used for dynamic indices)."""
    return int(scalar_of(_primal(x)))


# ---------------------------------------------------------- identical tests
def identical_parameter(x) -> bool:
    """Constant whose value is the same for every batch element."""
    if _is_tracked(x):
        return False
    return is_scalar_value(_primal(x))


def identical_zero(x) -> bool:
    return identical_parameter(x) and scalar_of(_primal(x)) == 0.0


def identical_one(x) -> bool:
    return identical_parameter(x) and scalar_of(_primal(x)) == 1.0


def identical_equal(x, y) -> bool:
    return (identical_parameter(x) and identical_parameter(y)
            and scalar_of(_primal(x)) == scalar_of(_primal(y)))
