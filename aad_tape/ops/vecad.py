# aad_tape/ops/vecad.py
"""
Fixed-length arrays with recorded dynamic indexing.

Reading `v[i]` with a tracked index `i` cannot be recorded as a plain slot
reference: at a different replay point `i` may select another element.
A TapeVector therefore registers itself on the active tape (length and
initial elements go to the vecad table) and records

    LOAD  (index)        -> result slot      aux = vector id
    STORE (index, value)                     aux = vector id

Once registered on the recording tape, every read and write goes through
LOAD / STORE so the replayed contents stay consistent. Before that, and
whenever no tape is recording, it is a plain list.
"""
from ..core.var import ADVar
from ..core import tape as tape_mod  # Use module access so the active recorder is read per call
from ..core.opcodes import OpCode
from .. import numeric as N
from .arithmetic import _is_var, _operand, _value


class TapeVector:

    def __init__(self, values):
        self._values = list(values)
        self._tape = None
        self._vid = -1

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __repr__(self):
        return f"TapeVector({self._values!r})"

    def _position(self, index) -> int:
        k = N.integer(index)
        if not 0 <= k < len(self._values):
            raise IndexError(f"TapeVector index {k} out of range for length {len(self._values)}")
        return k

    def _registered_on(self, tape) -> bool:
        return tape is not None and self._tape is tape

    def _register(self, tape):
        self._vid = tape.add_vecad([_value(v) for v in self._values])
        self._tape = tape
        for k, v in enumerate(self._values):
            if _is_var(v, tape):
                tape.push(
                    OpCode.STORE,
                    [_operand(tape, float(k)), _operand(tape, v)],
                    aux=self._vid,
                    has_result=False,
                )

    def __getitem__(self, index):
        k = self._position(index)
        tape = tape_mod.active_tape()
        if not self._registered_on(tape):
            if not _is_var(index, tape):
                return self._values[k]
            self._register(tape)
        out = ADVar(_value(self._values[k]))
        out.slot = tape.push(OpCode.LOAD, [_operand(tape, index)], aux=self._vid)
        out.tape = tape
        return out

    def __setitem__(self, index, value):
        k = self._position(index)
        tape = tape_mod.active_tape()
        if not self._registered_on(tape) and _is_var(index, tape):
            self._register(tape)
        if self._registered_on(tape):
            tape.push(
                OpCode.STORE,
                [_operand(tape, index), _operand(tape, value)],
                aux=self._vid,
                has_result=False,
            )
        self._values[k] = value
