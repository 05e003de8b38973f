# aad_tape/ops/__init__.py

# Ensure operator overloading is registered
from . import arithmetic
from . import transcendental
from . import special
from . import vecad

# Convenience re-exports so users can do: from aad_tape.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, pow
from .transcendental import (
    exp, log, sqrt, sin, cos, tan, asin, acos, atan,
    sinh, cosh, tanh, fabs, sign, erf,
)
from .special import (
    compare, select, cond_exp, print_for,
    norm_pdf, norm_cdf, log1p, asinh, ldexp,
)
from .vecad import TapeVector

__all__ = [
    "add", "sub", "mul", "div", "neg", "pow",
    "exp", "log", "sqrt", "sin", "cos", "tan", "asin", "acos", "atan",
    "sinh", "cosh", "tanh", "fabs", "sign", "erf",
    "compare", "select", "cond_exp", "print_for",
    "norm_pdf", "norm_cdf", "log1p", "asinh", "ldexp",
    "TapeVector",
]
