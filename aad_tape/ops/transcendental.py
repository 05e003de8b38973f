# aad_tape/ops/transcendental.py
# Element-wise math on ADVar, InnerValue or float. ADVar arguments are
# recorded when they are variables of the active tape; other arguments are
# evaluated directly. Domain violations raise DomainError.
from ..core.opcodes import OpCode
from .arithmetic import apply_op


def exp(x):
    return apply_op(OpCode.EXP, x)


def log(x):
    return apply_op(OpCode.LOG, x)


def sqrt(x):
    return apply_op(OpCode.SQRT, x)


def sin(x):
    return apply_op(OpCode.SIN, x)


def cos(x):
    return apply_op(OpCode.COS, x)


def tan(x):
    return apply_op(OpCode.TAN, x)


def asin(x):
    return apply_op(OpCode.ASIN, x)


def acos(x):
    return apply_op(OpCode.ACOS, x)


def atan(x):
    return apply_op(OpCode.ATAN, x)


def sinh(x):
    return apply_op(OpCode.SINH, x)


def cosh(x):
    return apply_op(OpCode.COSH, x)


def tanh(x):
    return apply_op(OpCode.TANH, x)


def fabs(x):
    """|x|; the recorded derivative is sign(x), so 0 at x == 0."""
    return apply_op(OpCode.ABS, x)


def sign(x):
    """-1, 0 or 1 element-wise; sign(0) == 0 exactly. Zero derivative."""
    return apply_op(OpCode.SIGN, x)


def erf(x):
    """
    Error function: erf(x) = (2/sqrt(pi)) * integral_0^x e^(-t^2) dt

    Derivative: d/dx erf(x) = (2/sqrt(pi)) * e^(-x^2)
    """
    return apply_op(OpCode.ERF, x)
