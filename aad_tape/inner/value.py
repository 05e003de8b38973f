# aad_tape/inner/value.py
"""
Vectorized scalar ("inner value").

An `InnerValue` is a tagged sum of

    Scalar(float)            -- one value shared by the whole batch
    Array(ndarray[float64])  -- one value per batch element

Every binary operation is a case analysis on the pair of tags:

    scalar x scalar -> scalar
    scalar x array  -> array (the scalar is broadcast)
    array  x array  -> array, lengths must agree (ArrayLengthMismatch)

Comparisons do not produce booleans; they produce a `Comparison` choice that
is consumed by `select` / `cond_exp`.
"""
from __future__ import annotations

import operator
from typing import Any, Callable, Optional

import numpy as np

from ..core.errors import AmbiguousComparison, ArrayLengthMismatch, DomainError
from ..core.opcodes import CompareOp


_PLAIN_NUMBERS = (int, float, np.integer, np.floating)


def divide(a, b):
    """a / b on floats or arrays; any zero divisor is a DomainError."""
    if bool(np.any(np.asarray(b) == 0.0)):
        raise DomainError(f"division by zero: {a!r} / {b!r}")
    return a / b


class InnerValue:
    __slots__ = ("_scalar", "_array")

    __array_ufunc__ = None  # numpy defers binary operators to the reflected InnerValue methods

    def __init__(self, value: Any = 0.0):
        if isinstance(value, InnerValue):
            self._scalar = value._scalar
            self._array = value._array
            return
        if np.ndim(value) == 0:
            self._scalar: Optional[float] = float(value)
            self._array: Optional[np.ndarray] = None
            return
        arr = np.array(value, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError(f"InnerValue arrays must be one-dimensional, got shape {arr.shape}")
        arr.setflags(write=False)
        self._scalar = None
        self._array = arr

    # ------------------------------------------------------------------ tags
    @property
    def is_scalar(self) -> bool:
        return self._array is None

    @property
    def is_array(self) -> bool:
        return self._array is not None

    @property
    def size(self) -> int:
        """Number of batch elements; 1 for the scalar variant."""
        return 1 if self._array is None else int(self._array.shape[0])

    def element_at(self, i: int) -> float:
        """Element `i` of the batch; a scalar answers every index."""
        if self._array is None:
            return self._scalar
        return float(self._array[i])

    def to_scalar(self) -> float:
        if self._array is not None:
            raise TypeError("array-valued InnerValue has no scalar value")
        return self._scalar

    def to_numpy(self, size: Optional[int] = None) -> np.ndarray:
        """Payload as a float64 array, broadcast to `size` when given."""
        if self._array is None:
            if size is None:
                return np.array(self._scalar, dtype=np.float64)
            return np.full(size, self._scalar, dtype=np.float64)
        if size is not None and size != self._array.shape[0]:
            raise ArrayLengthMismatch(
                f"cannot use an array of length {self._array.shape[0]} where length {size} is required"
            )
        return self._array

    def apply(self, fn: Callable) -> "InnerValue":
        """Lift an element-wise (numpy-style) function."""
        if self._array is None:
            return InnerValue(float(fn(self._scalar)))
        return InnerValue(fn(self._array))

    def equals(self, other: Any) -> bool:
        """Structural equality: same variant and identical elements."""
        other = as_inner(other)
        if self.is_scalar != other.is_scalar:
            return False
        if self.is_scalar:
            return self._scalar == other._scalar
        return self.size == other.size and bool(np.array_equal(self._array, other._array))

    # ----------------------------------------------------------- arithmetic
    def _binary(self, other, fn, reflected=False):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        a, b = (other, self) if reflected else (self, other)
        if a._array is None and b._array is None:
            return InnerValue(fn(a._scalar, b._scalar))
        if a._array is not None and b._array is not None and a.size != b.size:
            raise ArrayLengthMismatch(
                f"array lengths differ: {a.size} vs {b.size}"
            )
        left = a._scalar if a._array is None else a._array
        right = b._scalar if b._array is None else b._array
        return InnerValue(fn(left, right))

    def __add__(self, other):
        return self._binary(other, operator.add)

    def __radd__(self, other):
        return self._binary(other, operator.add, reflected=True)

    def __sub__(self, other):
        return self._binary(other, operator.sub)

    def __rsub__(self, other):
        return self._binary(other, operator.sub, reflected=True)

    def __mul__(self, other):
        return self._binary(other, operator.mul)

    def __rmul__(self, other):
        return self._binary(other, operator.mul, reflected=True)

    def __truediv__(self, other):
        return self._binary(other, divide)

    def __rtruediv__(self, other):
        return self._binary(other, divide, reflected=True)

    def __pow__(self, other):
        from ..numeric import power
        if _coerce(other) is NotImplemented:
            return NotImplemented
        return power(self, other)

    def __rpow__(self, other):
        from ..numeric import power
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return power(other, self)

    def __neg__(self):
        return self.apply(np.negative)

    def __pos__(self):
        return self

    def __abs__(self):
        return self.apply(np.abs)

    # --------------------------------------------------------- comparisons
    def _compare(self, other, op):
        from .compare import Comparison
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return Comparison(op, self, other)

    def __lt__(self, other):
        return self._compare(other, CompareOp.LT)

    def __le__(self, other):
        return self._compare(other, CompareOp.LE)

    def __eq__(self, other):
        return self._compare(other, CompareOp.EQ)

    def __ne__(self, other):
        return self._compare(other, CompareOp.NE)

    def __ge__(self, other):
        return self._compare(other, CompareOp.GE)

    def __gt__(self, other):
        return self._compare(other, CompareOp.GT)

    __hash__ = None

    # --------------------------------------------------------- conversions
    def __float__(self):
        return self.to_scalar()

    def __bool__(self):
        if self._array is not None:
            raise AmbiguousComparison("truth value of an array-valued InnerValue is ambiguous")
        return self._scalar != 0.0

    def __repr__(self):
        if self._array is None:
            return f"InnerValue({self._scalar!r})"
        return f"InnerValue({self._array.tolist()!r})"


def _coerce(x):
    if isinstance(x, InnerValue):
        return x
    if isinstance(x, _PLAIN_NUMBERS):
        return InnerValue(x)
    if isinstance(x, np.ndarray) and x.ndim <= 1:
        return InnerValue(x)
    return NotImplemented


def as_inner(x: Any) -> InnerValue:
    """Promote a float / sequence / InnerValue to an InnerValue."""
    return x if isinstance(x, InnerValue) else InnerValue(x)


def is_scalar_value(x: Any) -> bool:
    """True for plain numbers and the scalar variant of InnerValue."""
    if isinstance(x, InnerValue):
        return x.is_scalar
    return isinstance(x, _PLAIN_NUMBERS)


def scalar_of(x: Any) -> float:
    return x.to_scalar() if isinstance(x, InnerValue) else float(x)
