# aad_tape/fd.py
"""
Bump-and-reprice sensitivities, used to cross-check tape derivatives.

    two-sided:  (f(x + h e_j) - f(x - h e_j)) / (2 h)
    one-sided:  (f(x + h e_j) - f(x)) / h
"""
from __future__ import annotations

from typing import Callable, Sequence

import numpy as np


def _outputs(f: Callable, x: np.ndarray) -> np.ndarray:
    y = f(list(x))
    return np.atleast_1d(np.asarray(y, dtype=np.float64))


def finite_difference(f: Callable[[list], Sequence[float]], x0: Sequence[float],
                      bump: float = 1e-4, two_sided: bool = True) -> np.ndarray:
    """
    Finite-difference Jacobian of f at x0, flattened row-major like
    `Function.jacobian` (entry i * len(x0) + j is dy_i/dx_j).

    f receives a list of floats and returns a float or a sequence of floats.
    """
    if bump <= 0.0:
        raise ValueError(f"bump must be positive, got {bump}")
    x0 = np.asarray(x0, dtype=np.float64).ravel()
    n = x0.size
    base = None if two_sided else _outputs(f, x0)

    columns = []
    for j in range(n):
        up = x0.copy()
        up[j] += bump
        if two_sided:
            down = x0.copy()
            down[j] -= bump
            columns.append((_outputs(f, up) - _outputs(f, down)) / (2.0 * bump))
        else:
            columns.append((_outputs(f, up) - base) / bump)

    if n == 0:
        return np.empty(0, dtype=np.float64)
    # columns are d y / d x_j; stack to (m, n) and flatten row-major
    return np.stack(columns, axis=1).ravel()
