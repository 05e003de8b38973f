# aad_tape/ops/special.py
"""
Comparisons, conditional selection, print markers and composite functions.

A host-language `if` on a tracked comparison silently freezes one branch
into the tape. `select` / `cond_exp` record both branches instead, so a
replay at a new point (or on a batch whose elements disagree) picks the
right one per element.
"""
import math

from ..core.var import ADVar
from ..core import tape as tape_mod  # Use module access so the active recorder is read per call
from ..core.node import pack_compare
from ..core.opcodes import CompareOp, OpCode
from ..inner import compare as inner_compare
from ..inner.compare import Comparison
from .arithmetic import _is_var, _operand, _value, apply_op
from .transcendental import erf, exp, log, sqrt

SQRT_TWO_PI = math.sqrt(2.0 * math.pi)
SQRT_HALF = math.sqrt(0.5)

_SYMBOL_TO_OP = {
    "<": CompareOp.LT,
    "<=": CompareOp.LE,
    "==": CompareOp.EQ,
    ">=": CompareOp.GE,
    ">": CompareOp.GT,
    "!=": CompareOp.NE,
}


def _as_compare_op(op) -> CompareOp:
    if isinstance(op, str):
        return _SYMBOL_TO_OP[op]
    return CompareOp(op)


class TrackedComparison(Comparison):
    """
    Comparison involving at least one ADVar.

    Taking its truth value is a host-language branch: when a recorder is
    active and an operand is a variable, the outcome is recorded as a
    COMPARE instruction so `Function.compare_change` can detect a replay
    point where the branch would go the other way.
    """

    __slots__ = ()

    def primal_operands(self):
        return _value(self.left), _value(self.right)

    def outcome(self) -> bool:
        result = super().outcome()
        tape = tape_mod.active_tape()
        if (tape is not None and tape.options.record_comparisons
                and (_is_var(self.left, tape) or _is_var(self.right, tape))):
            tape.push(
                OpCode.COMPARE,
                [_operand(tape, self.left), _operand(tape, self.right)],
                aux=pack_compare(self.op, result),
                has_result=False,
            )
        return result


def compare(op, left, right) -> TrackedComparison:
    return TrackedComparison(_as_compare_op(op), left, right)


def cond_exp(op, left, right, if_true, if_false):
    """
    Recorded conditional expression:

        result = if_true if (left <op> right) else if_false

    evaluated element-wise for array-valued inner values. With no ADVar
    argument this is the plain inner-value selection.
    """
    op = _as_compare_op(op)
    args = (left, right, if_true, if_false)
    if not any(isinstance(a, ADVar) for a in args):
        return inner_compare.cond_exp(op, left, right, if_true, if_false)
    return apply_op(OpCode.CEXP, *args, aux=int(op))


def select(cond, if_true, if_false):
    """
    Branch-safe `if`: `cond` is a comparison such as `x < 0.0` (or a plain
    bool, which short-circuits without recording anything).
    """
    if isinstance(cond, Comparison):
        return cond_exp(cond.op, cond.left, cond.right, if_true, if_false)
    return inner_compare.select(cond, if_true, if_false)


def print_for(label: str, x):
    """
    Record a print marker: during `Function.evaluate(point, printer=...)`
    the printer is called with `label` and the replayed value of `x`.
    Without an active recorder nothing happens.
    """
    tape = tape_mod.active_tape()
    if tape is None:
        return
    offset = tape.add_text(label)
    tape.push(OpCode.PRINT, [_operand(tape, x)], aux=offset, has_result=False)


# ------------------------------------------------------------ composites
def norm_pdf(x):
    return exp(-0.5 * x * x) / SQRT_TWO_PI


def norm_cdf(x):
    """Standard normal CDF N(x) = 0.5 * (1 + erf(x / sqrt(2)))."""
    return 0.5 * (1.0 + erf(x * SQRT_HALF))


def log1p(x):
    """log(1 + x) with the usual correction term for small x."""
    u = 1.0 + x
    return log(u) - ((u - 1.0) - x) / u


def asinh(x):
    """
    Inverse hyperbolic sine, evaluated on |x| and mirrored, so the recorded
    program stays accurate for large negative x and has slope 1 at 0.
    """
    a = select(x < 0.0, -x, x)
    r = log1p(a + a * a / (1.0 + sqrt(a * a + 1.0)))
    return select(x < 0.0, -r, r)


def ldexp(x, exponent: int):
    """x * 2**exponent."""
    return x * math.ldexp(1.0, int(exponent))
