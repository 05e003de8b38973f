# aad_tape/ops/arithmetic.py
from ..core.var import ADVar
from ..core import tape as tape_mod  # Use module access so the active recorder is read per call
from ..core.node import Arg
from ..core.opcodes import OpCode
from ..core.rules import RULES
from .. import numeric as N


def _value(x):
    """Primal of an ADVar; plain numbers become floats, InnerValues pass through."""
    if isinstance(x, ADVar):
        return x.val
    if isinstance(x, int):
        return float(x)
    return x


def _is_var(x, tape) -> bool:
    return isinstance(x, ADVar) and tape is not None and x.tape is tape


def _operand(tape, x) -> Arg:
    """Resolve x to its slot, or to a new constant-pool entry."""
    if _is_var(x, tape):
        return Arg(True, x.slot)
    return Arg(False, tape.add_constant(_value(x)))


def _unrecorded(tape, xs, y) -> ADVar:
    """Constant result; it keeps the recording any of its operands came from."""
    out = ADVar(y)
    if tape is not None and any(
        isinstance(x, ADVar) and (x.origin is tape or x.tape is tape) for x in xs
    ):
        out.origin = tape
    return out


def _record(tape, op, xs, y, aux=-1) -> ADVar:
    out = ADVar(y)
    out.slot = tape.push(op, [_operand(tape, x) for x in xs], aux=aux)
    out.tape = tape
    return out


def apply_op(op: OpCode, *xs, aux: int = -1):
    """
    Generic primitive:
      - computes the primal with the rule of `op`
      - appends one instruction when any operand is a variable of the
        active tape; the result then carries the new slot
      - plain (non-ADVar) operands give a plain result and touch no tape
      - a constant result derived from the active recording remembers it,
        so it can still be declared a dependent
    """
    y = RULES[op].primal(tuple(_value(x) for x in xs), aux)
    if not any(isinstance(x, ADVar) for x in xs):
        return y
    tape = tape_mod.active_tape()
    if tape is None or not any(_is_var(x, tape) for x in xs):
        return _unrecorded(tape, xs, y)
    return _record(tape, op, xs, y, aux)


def _elision_tape():
    """Active tape when trivial-operation elision is enabled, else None."""
    tape = tape_mod.active_tape()
    if tape is None or not tape.options.elide_identical:
        return None
    return tape


def add(x, y):
    tape = _elision_tape()
    if tape is not None:
        if _is_var(x, tape) and N.identical_zero(y):
            return x
        if _is_var(y, tape) and N.identical_zero(x):
            return y
    return apply_op(OpCode.ADD, x, y)


def sub(x, y):
    tape = _elision_tape()
    if tape is not None and _is_var(x, tape) and N.identical_zero(y):
        return x
    return apply_op(OpCode.SUB, x, y)


def mul(x, y):
    tape = _elision_tape()
    if tape is not None:
        if _is_var(x, tape):
            if N.identical_one(y):
                return x
            if N.identical_zero(y):
                return _unrecorded(tape, (x,), x.val * 0.0)
        if _is_var(y, tape):
            if N.identical_one(x):
                return y
            if N.identical_zero(x):
                return _unrecorded(tape, (y,), y.val * 0.0)
    return apply_op(OpCode.MUL, x, y)


def div(x, y):
    tape = _elision_tape()
    if tape is not None and _is_var(x, tape) and N.identical_one(y):
        return x
    return apply_op(OpCode.DIV, x, y)


def neg(x):
    return apply_op(OpCode.NEG, x)


def pow(x, y):
    """
    Power: x ** y, recorded as one instruction.

    Local partials:
      d/dx = y * x^(y-1)
      d/dy = x^y * log(x)     (only evaluated when y is a variable)
    """
    return apply_op(OpCode.POW, x, y)
