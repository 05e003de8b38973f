# aad_tape/core/rules.py
"""
Evaluation rules, one per arithmetic opcode.

A rule knows how to compute, for y = f(x_0, ..., x_{k-1}):

    primal(xs, aux)          -> y
    d1(i, xs, y, aux)        -> dy/dx_i
    d2(i, j, xs, y, aux)     -> d2y/(dx_i dx_j)

Both sweeps only ask for partials with respect to operands that are tape
slots, so e.g. the exponent partial of `pow` (which needs log(base)) is never
evaluated for a constant exponent.

From the partials the forward sweep builds Taylor coefficients

    y1 = sum_i d1_i * x1_i
    y2 = sum_i d1_i * x2_i + 1/2 * sum_ij d2_ij * x1_i * x1_j

and the reverse sweep accumulates  adj(x_i) += adj(y) * d1_i.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, NamedTuple

from .. import numeric as N
from ..inner.compare import cond_exp
from .opcodes import OpCode

TWO_OVER_SQRT_PI = 2.0 / math.sqrt(math.pi)


class Rule(NamedTuple):
    arity: int
    primal: Callable
    d1: Callable
    d2: Callable


def _zero2(i, j, xs, y, aux):
    return 0.0


# ---------------------------------------------------------------- binary ops
def _sub_d1(i, xs, y, aux):
    return 1.0 if i == 0 else -1.0


def _mul_d1(i, xs, y, aux):
    return xs[1] if i == 0 else xs[0]


def _mul_d2(i, j, xs, y, aux):
    return 0.0 if i == j else 1.0


def _div_d1(i, xs, y, aux):
    # y = a / b
    if i == 0:
        return N.divide(1.0, xs[1])
    return N.divide(-y, xs[1])


def _div_d2(i, j, xs, y, aux):
    b = xs[1]
    if i == 0 and j == 0:
        return 0.0
    if i == 1 and j == 1:
        return N.divide(2.0 * y, b * b)
    return N.divide(-1.0, b * b)


def _pow_d1(i, xs, y, aux):
    # y = a ** b
    a, b = xs
    if i == 0:
        return b * N.power(a, b - 1.0)
    return y * N.log(a)


def _pow_d2(i, j, xs, y, aux):
    a, b = xs
    if i == 0 and j == 0:
        c = b * (b - 1.0)
        if N.identical_zero(c):
            return 0.0
        return c * N.power(a, b - 2.0)
    if i == 1 and j == 1:
        la = N.log(a)
        return y * la * la
    return N.power(a, b - 1.0) * (1.0 + b * N.log(a))


# ----------------------------------------------------------------- unary ops
def _unary(f: Callable, df: Callable, d2f: Callable) -> Rule:
    """
    Unary rule from f(x), f'(x, y) and f''(x, y) where y = f(x).
    """
    return Rule(
        1,
        lambda xs, aux: f(xs[0]),
        lambda i, xs, y, aux: df(xs[0], y),
        lambda i, j, xs, y, aux: d2f(xs[0], y),
    )


def _cexp_d1(i, xs, y, aux):
    # only the chosen branch receives the derivative
    if i == 2:
        return cond_exp(aux, xs[0], xs[1], 1.0, 0.0)
    if i == 3:
        return cond_exp(aux, xs[0], xs[1], 0.0, 1.0)
    return 0.0


RULES: Dict[OpCode, Rule] = {
    OpCode.ADD: Rule(2, lambda xs, aux: xs[0] + xs[1], lambda i, xs, y, aux: 1.0, _zero2),
    OpCode.SUB: Rule(2, lambda xs, aux: xs[0] - xs[1], _sub_d1, _zero2),
    OpCode.MUL: Rule(2, lambda xs, aux: xs[0] * xs[1], _mul_d1, _mul_d2),
    OpCode.DIV: Rule(2, lambda xs, aux: N.divide(xs[0], xs[1]), _div_d1, _div_d2),
    OpCode.POW: Rule(2, lambda xs, aux: N.power(xs[0], xs[1]), _pow_d1, _pow_d2),

    OpCode.NEG: _unary(lambda x: -x, lambda x, y: -1.0, lambda x, y: 0.0),
    OpCode.EXP: _unary(N.exp, lambda x, y: y, lambda x, y: y),
    OpCode.LOG: _unary(N.log, lambda x, y: 1.0 / x, lambda x, y: -1.0 / (x * x)),
    OpCode.SQRT: _unary(N.sqrt, lambda x, y: N.divide(0.5, y), lambda x, y: N.divide(-0.25, y * x)),
    OpCode.SIN: _unary(N.sin, lambda x, y: N.cos(x), lambda x, y: -y),
    OpCode.COS: _unary(N.cos, lambda x, y: -N.sin(x), lambda x, y: -y),
    OpCode.TAN: _unary(N.tan, lambda x, y: 1.0 + y * y, lambda x, y: 2.0 * y * (1.0 + y * y)),
    OpCode.ASIN: _unary(N.asin,
                        lambda x, y: N.divide(1.0, N.sqrt(1.0 - x * x)),
                        lambda x, y: N.divide(x, N.power(1.0 - x * x, 1.5))),
    OpCode.ACOS: _unary(N.acos,
                        lambda x, y: N.divide(-1.0, N.sqrt(1.0 - x * x)),
                        lambda x, y: N.divide(-x, N.power(1.0 - x * x, 1.5))),
    OpCode.ATAN: _unary(N.atan,
                        lambda x, y: 1.0 / (1.0 + x * x),
                        lambda x, y: -2.0 * x / ((1.0 + x * x) * (1.0 + x * x))),
    OpCode.SINH: _unary(N.sinh, lambda x, y: N.cosh(x), lambda x, y: y),
    OpCode.COSH: _unary(N.cosh, lambda x, y: N.sinh(x), lambda x, y: y),
    OpCode.TANH: _unary(N.tanh, lambda x, y: 1.0 - y * y, lambda x, y: -2.0 * y * (1.0 - y * y)),
    OpCode.ABS: _unary(N.fabs, lambda x, y: N.sign(x), lambda x, y: 0.0),
    OpCode.SIGN: _unary(N.sign, lambda x, y: 0.0, lambda x, y: 0.0),
    OpCode.ERF: _unary(N.erf,
                       lambda x, y: TWO_OVER_SQRT_PI * N.exp(-(x * x)),
                       lambda x, y: -2.0 * x * TWO_OVER_SQRT_PI * N.exp(-(x * x))),

    OpCode.CEXP: Rule(4, lambda xs, aux: cond_exp(aux, xs[0], xs[1], xs[2], xs[3]), _cexp_d1, _zero2),
}
