# aad_tape/core/function.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from . import engine
from . import tape as tape_mod
from .errors import NotIndependent, NotRecording, SizeMismatch
from .node import Arg
from .opcodes import OpCode
from .var import ADVar

logger = logging.getLogger(__name__)

# byte footprint of one entry of each tape table
UNIT_BYTES = {
    "op": 4,
    "op_arg": 4,
    "par": 8,
    "text": 1,
    "vecad": 4,
}


class Function:
    """
    Frozen recording of y = f(x): a tape plus its ordered independent
    (domain) and dependent (range) slots.

        xs = start_taping([1.0, 2.0])
        y = xs[0] * xs[1]
        f = Function(xs, [y])          # stops the recording
        f.forward(1, [1.0, 0.0])       # J . dx
        f.reverse(1, [1.0])            # w^T . J
        f.jacobian([3.0, 4.0])         # row-major, range x domain

    Evaluation never mutates the function object; `point` defaults to the
    values the independents had when recording started.
    """

    def __init__(self, independents: Sequence[ADVar], dependents: Sequence[Any]):
        self._tape = None
        self._independents: List[int] = []
        self._dependents: List[int] = []

        rec = tape_mod.active_recorder()
        if rec is None:
            raise NotRecording("Function() requires an active recording; call start_taping() first")
        tape = rec.tape

        independents = list(independents)
        if len(independents) != len(rec.independents) or any(
            x is not r for x, r in zip(independents, rec.independents)
        ):
            raise NotIndependent("independents must be the values returned by start_taping(), in order")

        dependents = list(dependents)
        for k, y in enumerate(dependents):
            recorded = isinstance(y, ADVar) and y.tape is tape and y.slot is not None
            if not (recorded or (isinstance(y, ADVar) and y.origin is tape)):
                raise NotIndependent(
                    f"dependent {k} was not produced by an operation on a recorded independent"
                )

        # constant dependents (e.g. an elided x * 0) get a PAR slot
        dep_slots = []
        for y in dependents:
            if y.tape is tape and y.slot is not None:
                dep_slots.append(y.slot)
            else:
                dep_slots.append(tape.push(OpCode.PAR, [Arg(False, tape.add_constant(y.val))]))

        self._tape = tape
        self._independents = [x.slot for x in independents]
        self._dependents = dep_slots
        self._point = [engine.as_input(x.val) for x in independents]

        tape_mod._finish_recording(rec)
        tape.validate()
        logger.debug(
            "built function: domain=%d range=%d instructions=%d",
            self.size_domain, self.size_range, len(tape),
        )

    @classmethod
    def from_tape(cls, tape, independent_slots: Sequence[int], dependent_slots: Sequence[int],
                  point: Optional[Sequence[Any]] = None) -> "Function":
        """
        Build a function object from a tape and externally supplied slot
        lists. Every INDEP instruction must be listed as an independent and
        every slot must have been assigned; otherwise NotIndependent.
        """
        tape.validate()
        independent_slots = [int(s) for s in independent_slots]
        dependent_slots = [int(s) for s in dependent_slots]
        if sorted(independent_slots) != sorted(tape.independent_slots()):
            raise NotIndependent(
                f"independent slots {independent_slots} do not match the tape's "
                f"independents {tape.independent_slots()}"
            )
        for s in dependent_slots:
            if not 0 <= s < tape.num_slots:
                raise NotIndependent(f"dependent slot {s} was never assigned")

        self = cls.__new__(cls)
        self._tape = tape
        self._independents = independent_slots
        self._dependents = dependent_slots
        if point is None:
            point = [0.0] * len(independent_slots)
        self._point = self._check_point(point)
        tape.freeze()
        logger.debug(
            "built function from tape: domain=%d range=%d instructions=%d",
            self.size_domain, self.size_range, len(tape),
        )
        return self

    # ------------------------------------------------------------- checks
    def _check_point(self, point) -> list:
        if point is None:
            return self._point
        point = [engine.as_input(v) for v in point]
        if len(point) != self.size_domain:
            raise SizeMismatch(f"point has length {len(point)}, expected domain size {self.size_domain}")
        return point

    @staticmethod
    def _check_vector(name: str, v, size: int) -> list:
        v = [engine.as_input(x) for x in v]
        if len(v) != size:
            raise SizeMismatch(f"{name} has length {len(v)}, expected {size}")
        return v

    # --------------------------------------------------------- evaluation
    def evaluate(self, point: Optional[Sequence[Any]] = None,
                 printer: Optional[Callable[[str, Any], None]] = None) -> np.ndarray:
        """Zero-order replay: the dependents' values at `point`."""
        point = self._check_point(point)
        coefs, _ = engine.forward_sweep(self._tape, self._independents, point, printer=printer)
        return engine.as_result([coefs[s][0] for s in self._dependents])

    def forward(self, order: int, direction: Sequence[Any],
                point: Optional[Sequence[Any]] = None) -> np.ndarray:
        """
        Forward sweep along `direction`.

        order 1 : J(x0) . dx
        order 2 : second Taylor coefficient of y(x0 + t dx), i.e. 1/2 dx^T H dx
        """
        if not 1 <= order <= engine.MAX_FORWARD_ORDER:
            raise ValueError(
                f"forward order must be between 1 and {engine.MAX_FORWARD_ORDER}, got {order}"
            )
        direction = self._check_vector("direction", direction, self.size_domain)
        point = self._check_point(point)
        coefs, _ = engine.forward_sweep(self._tape, self._independents, point, direction, order)
        return engine.as_result([coefs[s][order] for s in self._dependents])

    def reverse(self, order: int, weights: Sequence[Any],
                point: Optional[Sequence[Any]] = None) -> np.ndarray:
        """First-order reverse sweep: w^T . J(x0), one entry per independent."""
        if order != 1:
            raise ValueError(f"reverse sweeps support order 1 only, got {order}")
        weights = self._check_vector("weights", weights, self.size_range)
        point = self._check_point(point)
        adj = engine.reverse_sweep(self._tape, self._independents, self._dependents, point, weights)
        return engine.as_result(adj)

    def jacobian(self, point: Optional[Sequence[Any]] = None) -> np.ndarray:
        return engine.jacobian(self, self._check_point(point))

    def compare_change(self, point: Optional[Sequence[Any]] = None) -> int:
        """Number of recorded comparisons whose outcome differs at `point`."""
        point = self._check_point(point)
        _, changes = engine.forward_sweep(
            self._tape, self._independents, point, count_compares=True
        )
        return changes

    # ------------------------------------------------------ introspection
    @property
    def tape(self):
        return self._tape

    @property
    def independent_slots(self) -> List[int]:
        return list(self._independents)

    @property
    def dependent_slots(self) -> List[int]:
        return list(self._dependents)

    @property
    def size_domain(self) -> int:
        return len(self._independents)

    @property
    def size_range(self) -> int:
        return len(self._dependents)

    @property
    def size_var(self) -> int:
        return self._tape.num_slots

    def size_op(self) -> int:
        return len(self._tape.instructions)

    def size_op_arg(self) -> int:
        return sum(len(ins.args) for ins in self._tape.instructions)

    def size_par(self) -> int:
        """Constant pool size, counting every element of array constants."""
        total = 0
        for c in self._tape.constants:
            total += c.size if hasattr(c, "size") else 1
        return total

    def size_text(self) -> int:
        return len(self._tape.text)

    def size_vecad(self) -> int:
        return len(self._tape.vecad)

    def size_op_seq(self) -> int:
        """Bytes of the instruction stream plus its side tables."""
        return self.properties()["total"]["bytes"]

    def properties(self) -> Dict[str, Dict[str, int]]:
        """
        Per-table footprint: {"op": {"count", "unit", "bytes"}, ...} plus a
        "total" entry holding the byte sum.
        """
        counts = {
            "op": self.size_op(),
            "op_arg": self.size_op_arg(),
            "par": self.size_par(),
            "text": self.size_text(),
            "vecad": self.size_vecad(),
        }
        out = {}
        total = 0
        for name, count in counts.items():
            nbytes = count * UNIT_BYTES[name]
            out[name] = {"count": count, "unit": UNIT_BYTES[name], "bytes": nbytes}
            total += nbytes
        out["total"] = {"bytes": total}
        return out

    def op_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for ins in self._tape.instructions:
            counts[ins.op.value] = counts.get(ins.op.value, 0) + 1
        return counts

    def __repr__(self):
        if self._tape is None:
            return "Function(<not built>)"
        return (f"Function(domain={self.size_domain}, range={self.size_range}, "
                f"ops={self.size_op()}, vars={self.size_var})")


__all__ = ["Function", "UNIT_BYTES"]
