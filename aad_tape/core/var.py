# aad_tape/core/var.py
from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..inner.value import InnerValue
from . import tape as tape_mod


class ADVar:
    """
    Tape value: a differentiable number.

    Attributes
    ----------
    val  : float | InnerValue
        Primal value. Authoritative whether or not a tape is recording.
    slot : Optional[int]
        Tape slot holding this value, None for a value never recorded.
    tape : Optional[Tape]
        Tape the slot belongs to. A value is a *variable* only while that
        tape is the one recording in the current context; otherwise every
        operation treats it as a constant.
    origin : Optional[Tape]
        Recording that produced this value without giving it a slot (e.g.
        an elided `x * 0`). Such a value may still be declared a dependent.
    """

    __slots__ = ("val", "slot", "tape", "origin")

    __array_ufunc__ = None  # numpy defers binary operators to ADVar

    def __init__(self, val: Any = 0.0):
        if isinstance(val, ADVar):
            val = val.val
        if isinstance(val, InnerValue):
            self.val = val
        elif isinstance(val, (list, tuple, np.ndarray)):
            self.val = InnerValue(val)
        elif isinstance(val, (int, float, np.integer, np.floating)):
            self.val = float(val)
        else:
            raise TypeError(
                f"ADVar only accepts numbers, sequences or InnerValue, but got {type(val)}"
            )
        self.slot: Optional[int] = None
        self.tape = None
        self.origin = None

    @property
    def is_variable(self) -> bool:
        return self.tape is not None and self.tape is tape_mod.active_tape()

    def __repr__(self):
        kind = "var" if self.is_variable else "const"
        return f"ADVar({self.val!r}, {kind}, slot={self.slot!r})"

    def __float__(self):
        return float(self.val)

    # Operator overloading for arithmetic operations
    def __add__(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return mul(self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return mul(other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __pos__(self):
        return self

    def __abs__(self):
        from ..ops.transcendental import fabs
        return fabs(self)

    def __pow__(self, other):
        from ..ops.arithmetic import pow
        return pow(self, other)

    def __rpow__(self, other):
        from ..ops.arithmetic import pow
        return pow(other, self)

    # Comparisons produce a choice, resolved by select() or by bool()
    def __lt__(self, other):
        from ..ops.special import compare
        return compare("<", self, other)

    def __le__(self, other):
        from ..ops.special import compare
        return compare("<=", self, other)

    def __eq__(self, other):
        from ..ops.special import compare
        return compare("==", self, other)

    def __ne__(self, other):
        from ..ops.special import compare
        return compare("!=", self, other)

    def __ge__(self, other):
        from ..ops.special import compare
        return compare(">=", self, other)

    def __gt__(self, other):
        from ..ops.special import compare
        return compare(">", self, other)

    __hash__ = None
