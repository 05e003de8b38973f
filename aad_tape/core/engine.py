# aad_tape/core/engine.py
"""
Replay of a frozen tape.

Every sweep allocates its own per-slot storage and never mutates the tape,
so one tape can be replayed any number of times, also concurrently.

Forward sweep (orders 0, 1, 2)
    Each slot carries its Taylor coefficients [y0, y1, y2] along the curve
    x(t) = x0 + t * dx. Constants (and PAR slots) are [c, 0, 0].
    For y = f(x_0..x_k):

        y1 = sum_i d1_i * x1_i
        y2 = sum_i d1_i * x2_i + 1/2 * sum_ij d2_ij * x1_i * x1_j

Reverse sweep (order 1)
    A primal pass recomputes every slot, then adjoints run from the last
    instruction to the first:  adj(x_i) += adj(y) * d1_i.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from .. import numeric as N
from ..inner.compare import Comparison
from ..inner.value import InnerValue
from .node import unpack_compare
from .opcodes import OpCode
from .rules import RULES

MAX_FORWARD_ORDER = 2


def _is_zero(x) -> bool:
    if isinstance(x, InnerValue):
        if x.is_scalar:
            return x.to_scalar() == 0.0
        return not np.any(x.to_numpy())
    return x == 0.0


def as_input(x) -> Any:
    """Normalize one entry of a point / direction / weight vector."""
    x = N._primal(x)
    if isinstance(x, InnerValue):
        return x
    if np.ndim(x) > 0:
        return InnerValue(x)
    return float(x)


def as_result(values: Sequence[Any]) -> np.ndarray:
    """
    Pack sweep results: float64 array when every entry is a float, otherwise
    an object array holding InnerValues (scalar InnerValues become floats).
    """
    items = []
    for v in values:
        if isinstance(v, InnerValue) and v.is_scalar:
            v = v.to_scalar()
        items.append(v)
    if all(not isinstance(v, InnerValue) for v in items):
        return np.array(items, dtype=np.float64)
    out = np.empty(len(items), dtype=object)
    for k, v in enumerate(items):
        out[k] = v
    return out


def _vector_index(ins, value, n: int) -> int:
    k = N.integer(value)
    if not 0 <= k < n:
        raise IndexError(f"dynamic index {k} out of range for vector {ins.aux} of length {n}")
    return k


def forward_sweep(
    tape,
    independents: Sequence[int],
    point: Sequence[Any],
    direction: Optional[Sequence[Any]] = None,
    order: int = 0,
    printer: Optional[Callable[[str, Any], None]] = None,
    count_compares: bool = False,
):
    """
    Replay `tape` at `point`.

    Returns (coefs, changes): coefs[slot] is the list of Taylor coefficients
    of that slot up to `order`; `changes` counts recorded comparisons whose
    outcome differs at `point` (only when `count_compares`).
    """
    coefs: List[Optional[list]] = [None] * tape.num_slots
    constants = tape.constants
    position: Dict[int, int] = {slot: j for j, slot in enumerate(independents)}
    vectors: Dict[int, list] = {}
    changes = 0

    def coef_of(a):
        if a.is_var:
            return coefs[a.index]
        return [constants[a.index]] + [0.0] * order

    def vector(vid):
        if vid not in vectors:
            vectors[vid] = [[constants[c]] + [0.0] * order for c in tape.vecad_initial(vid)]
        return vectors[vid]

    for ins in tape.instructions:
        op = ins.op

        if op is OpCode.INDEP:
            j = position[ins.result]
            c = [point[j]] + [0.0] * order
            if order >= 1:
                c[1] = direction[j]
            coefs[ins.result] = c
            continue

        if op is OpCode.PAR:
            coefs[ins.result] = coef_of(ins.args[0])
            continue

        if op is OpCode.LOAD:
            vec = vector(ins.aux)
            k = _vector_index(ins, coef_of(ins.args[0])[0], len(vec))
            coefs[ins.result] = list(vec[k])
            continue

        if op is OpCode.STORE:
            vec = vector(ins.aux)
            k = _vector_index(ins, coef_of(ins.args[0])[0], len(vec))
            vec[k] = list(coef_of(ins.args[1]))
            continue

        if op is OpCode.COMPARE:
            if count_compares:
                cmp_op, outcome = unpack_compare(ins.aux)
                left, right = coef_of(ins.args[0])[0], coef_of(ins.args[1])[0]
                if Comparison(cmp_op, left, right).outcome() != outcome:
                    changes += 1
            continue

        if op is OpCode.PRINT:
            if printer is not None:
                printer(tape.get_text(ins.aux), coef_of(ins.args[0])[0])
            continue

        rule = RULES[op]
        cs = [coef_of(a) for a in ins.args]
        xs = tuple(c[0] for c in cs)
        y = rule.primal(xs, ins.aux)
        out = [y] + [0.0] * order

        if order >= 1:
            active = [
                (i, cs[i]) for i, a in enumerate(ins.args)
                if a.is_var and not all(_is_zero(t) for t in cs[i][1:])
            ]
            for i, c in active:
                d = rule.d1(i, xs, y, ins.aux)
                out[1] = out[1] + d * c[1]
                if order >= 2 and not _is_zero(c[2]):
                    out[2] = out[2] + d * c[2]
            if order >= 2:
                for i, ci in active:
                    if _is_zero(ci[1]):
                        continue
                    for j, cj in active:
                        if _is_zero(cj[1]):
                            continue
                        h = rule.d2(i, j, xs, y, ins.aux)
                        if _is_zero(h):
                            continue
                        out[2] = out[2] + 0.5 * h * ci[1] * cj[1]

        coefs[ins.result] = out

    return coefs, changes


def reverse_sweep(
    tape,
    independents: Sequence[int],
    dependents: Sequence[int],
    point: Sequence[Any],
    weights: Sequence[Any],
) -> list:
    """
    First-order reverse sweep: returns w^T J(point), one entry per independent.

    The primal pass also resolves, for every LOAD, the slot whose value it
    read (or -1 for an initial constant element); the adjoint of the LOAD
    result is routed to that slot.
    """
    values: List[Any] = [None] * tape.num_slots
    constants = tape.constants
    position: Dict[int, int] = {slot: j for j, slot in enumerate(independents)}
    vectors: Dict[int, list] = {}
    load_source: Dict[int, int] = {}

    def value_of(a):
        return values[a.index] if a.is_var else constants[a.index]

    def vector(vid):
        # (value, source slot) per element
        if vid not in vectors:
            vectors[vid] = [(constants[c], -1) for c in tape.vecad_initial(vid)]
        return vectors[vid]

    # ---- primal pass
    for pos, ins in enumerate(tape.instructions):
        op = ins.op
        if op is OpCode.INDEP:
            values[ins.result] = point[position[ins.result]]
        elif op is OpCode.PAR:
            values[ins.result] = value_of(ins.args[0])
        elif op is OpCode.LOAD:
            vec = vector(ins.aux)
            k = _vector_index(ins, value_of(ins.args[0]), len(vec))
            values[ins.result], load_source[pos] = vec[k]
        elif op is OpCode.STORE:
            vec = vector(ins.aux)
            k = _vector_index(ins, value_of(ins.args[0]), len(vec))
            src = ins.args[1]
            vec[k] = (value_of(src), src.index if src.is_var else -1)
        elif op is OpCode.COMPARE or op is OpCode.PRINT:
            continue
        else:
            xs = tuple(value_of(a) for a in ins.args)
            values[ins.result] = RULES[op].primal(xs, ins.aux)

    # ---- adjoint pass
    adj: List[Any] = [0.0] * tape.num_slots
    for w, slot in zip(weights, dependents):
        adj[slot] = adj[slot] + w

    for pos in range(len(tape.instructions) - 1, -1, -1):
        ins = tape.instructions[pos]
        if ins.result < 0 or ins.op is OpCode.INDEP or ins.op is OpCode.PAR:
            continue
        a = adj[ins.result]
        if _is_zero(a):
            continue  # nothing to propagate
        if ins.op is OpCode.LOAD:
            src = load_source[pos]
            if src >= 0:
                adj[src] = adj[src] + a
            continue
        rule = RULES[ins.op]
        xs = tuple(value_of(arg) for arg in ins.args)
        y = values[ins.result]
        for i, arg in enumerate(ins.args):
            if arg.is_var:
                adj[arg.index] = adj[arg.index] + a * rule.d1(i, xs, y, ins.aux)

    return [adj[slot] for slot in independents]


def jacobian(function, point: Sequence[Any]) -> np.ndarray:
    """
    Dense Jacobian, flattened row-major: jac[i * n + j] = dy_i / dx_j.

    Uses one forward sweep per independent when n <= m, else one reverse
    sweep per dependent.
    """
    n, m = function.size_domain, function.size_range
    if n == 0 or m == 0:
        return np.empty(0, dtype=np.float64)

    jac: List[Any] = [0.0] * (n * m)
    if n <= m:
        for j in range(n):
            e = [0.0] * n
            e[j] = 1.0
            column = function.forward(1, e, point)
            for i in range(m):
                jac[i * n + j] = column[i]
    else:
        for i in range(m):
            w = [0.0] * m
            w[i] = 1.0
            row = function.reverse(1, w, point)
            for j in range(n):
                jac[i * n + j] = row[j]
    return as_result(jac)
