# aad_tape/inner/compare.py
"""
Branch-safe conditional selection.

A comparison between inner values is a *choice*: it remembers the operator
and both operands and is only resolved by `select` / `cond_exp`. Asking a
host-language `if` about an array-valued choice raises AmbiguousComparison,
since the truth value may differ per batch element.

Every ordering is reduced to `<` or `==`:

    a <  b : lt(a, b) ? T : F
    a <= b : lt(b, a) ? F : T
    a >= b : lt(a, b) ? F : T
    a >  b : lt(b, a) ? T : F
    a == b : eq(a, b) ? T : F
    a != b : eq(a, b) ? F : T
"""
from __future__ import annotations

import operator
from typing import Any

import numpy as np

from ..core.errors import AmbiguousComparison, ArrayLengthMismatch
from ..core.opcodes import CompareOp
from .value import InnerValue, as_inner, is_scalar_value, scalar_of


class Comparison:
    """Deferred comparison `left <op> right`."""

    __slots__ = ("op", "left", "right")

    def __init__(self, op: CompareOp, left: Any, right: Any):
        self.op = CompareOp(op)
        self.left = left
        self.right = right

    def primal_operands(self):
        return self.left, self.right

    def outcome(self) -> bool:
        """Truth value of a scalar comparison."""
        left, right = self.primal_operands()
        if not (is_scalar_value(left) and is_scalar_value(right)):
            raise AmbiguousComparison(
                f"truth value of an element-wise comparison ({self.op.symbol}) is ambiguous; use select()"
            )
        return compare_scalars(self.op, scalar_of(left), scalar_of(right))

    def __bool__(self):
        return self.outcome()

    def __repr__(self):
        return f"Comparison({self.left!r} {self.op.symbol} {self.right!r})"


def compare_scalars(op: CompareOp, left: float, right: float) -> bool:
    if op == CompareOp.LT:
        return left < right
    if op == CompareOp.LE:
        return not (right < left)
    if op == CompareOp.GE:
        return not (left < right)
    if op == CompareOp.GT:
        return right < left
    if op == CompareOp.EQ:
        return left == right
    if op == CompareOp.NE:
        return not (left == right)
    raise ValueError(f"unknown compare operation {op!r}")


def cond_exp(op: CompareOp, left: Any, right: Any, if_true: Any, if_false: Any) -> Any:
    """
    Element-wise `if_true if (left <op> right) else if_false` on plain values.

    A scalar condition returns one of the two branches unchanged; an
    array-valued condition builds a new array, broadcasting scalar branches.
    """
    op = CompareOp(op)
    if op == CompareOp.LT:
        return _select(operator.lt, left, right, if_true, if_false)
    if op == CompareOp.LE:
        return _select(operator.lt, right, left, if_false, if_true)
    if op == CompareOp.GE:
        return _select(operator.lt, left, right, if_false, if_true)
    if op == CompareOp.GT:
        return _select(operator.lt, right, left, if_true, if_false)
    if op == CompareOp.EQ:
        return _select(operator.eq, left, right, if_true, if_false)
    if op == CompareOp.NE:
        return _select(operator.eq, left, right, if_false, if_true)
    raise ValueError(f"unknown compare operation {op!r}")


def select(cond: Any, if_true: Any, if_false: Any) -> Any:
    """Resolve a `Comparison` (or a plain bool) into one of two values."""
    if isinstance(cond, Comparison):
        left, right = cond.primal_operands()
        return cond_exp(cond.op, left, right, if_true, if_false)
    if isinstance(cond, (bool, np.bool_)):
        _check_branches(if_true, if_false)
        return if_true if cond else if_false
    raise TypeError(f"select() expects a Comparison or a bool, got {type(cond).__name__}")


def _check_branches(if_true, if_false):
    # two array branches must agree even when only one of them is returned
    if isinstance(if_true, InnerValue) and isinstance(if_false, InnerValue):
        if if_true.is_array and if_false.is_array and if_true.size != if_false.size:
            raise ArrayLengthMismatch(
                f"select branches have different lengths: {if_true.size} vs {if_false.size}"
            )


def _select(pred, left, right, if_true, if_false):
    if is_scalar_value(left) and is_scalar_value(right):
        _check_branches(if_true, if_false)
        return if_true if pred(scalar_of(left), scalar_of(right)) else if_false

    left, right = as_inner(left), as_inner(right)
    if left.is_array and right.is_array and left.size != right.size:
        raise ArrayLengthMismatch(
            f"comparison operands have different lengths: {left.size} vs {right.size}"
        )
    size = left.size if left.is_array else right.size

    mask = pred(left.to_numpy(size), right.to_numpy(size))
    chosen = np.where(mask, as_inner(if_true).to_numpy(size), as_inner(if_false).to_numpy(size))
    return InnerValue(chosen)
