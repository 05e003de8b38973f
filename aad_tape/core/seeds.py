# aad_tape/core/seeds.py

#-----------------------------------------------------------------------------
# One-call drivers: record f on a fresh tape, build the function object and
# sweep it. We "plant" a seed (dy/dy = 1) at the scalar output and let
# gradients grow backwards through the tape.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, List, Sequence, Union
import numpy as np

from .var import ADVar
from .tape import recording
from .function import Function


def value(x: Any) -> Any:
    """Return the numeric value of an ADVar; pass through plain numbers unchanged."""
    return x.val if isinstance(x, ADVar) else x


def _is_list_input(x0) -> bool:
    return isinstance(x0, (list, tuple))


# ----------------------------- scalar-output grad ----------------------------- #
def grad(f: Callable, x0: Union[float, Sequence[float]]) -> Union[float, np.ndarray]:
    """
    Gradient of a scalar-output function y = f(x) at x0.

    x0 may be a single number (f receives one ADVar, a float is returned) or
    a list (f receives a list of ADVars, an array of partials is returned).
    Runs one reverse sweep on a freshly recorded tape.

    Example
    -------
    grad(lambda x: x * x, 3.0)                          -> 6.0
    grad(lambda xs: xs[0] * xs[0] + 3 * xs[1], [2, 4])  -> [4.0, 3.0]
    """
    many = _is_list_input(x0)
    values = list(x0) if many else [x0]
    with recording(values) as xs:
        y = f(xs if many else xs[0])
        fn = Function(xs, [y])
    g = fn.reverse(1, [1.0])
    return g if many else g[0]


# ----------------------------- vector-output jacobian ------------------------- #
def jacobian_of(f: Callable[[List[ADVar]], Sequence[Any]], x0: Sequence[float]) -> np.ndarray:
    """
    Dense Jacobian of f: list -> list at x0, flattened row-major
    (entry i * len(x0) + j is dy_i/dx_j).
    """
    with recording(list(x0)) as xs:
        ys = list(f(xs))
        fn = Function(xs, ys)
    return fn.jacobian()
