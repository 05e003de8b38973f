# aad_tape/core/tape.py
from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_OPTIONS, TapeOptions
from .errors import NotIndependent, NotRecording, RecorderBusy, TapeFrozen
from .node import Arg, Instruction
from .opcodes import OpCode, STRUCTURAL_OPS

logger = logging.getLogger(__name__)


class Tape:
    """
    Append-only instruction log.

    The instruction stream is a list of fixed-size `Instruction` records;
    variable-size data lives in side tables referenced by index:

        constants : constant pool (floats or InnerValues)
        text      : labels of PRINT instructions, one character per entry
        vecad     : per recorded dynamic array, its length followed by the
                    constant-pool indices of its initial elements
    """

    def __init__(self, options: Optional[TapeOptions] = None):
        self.options = options or DEFAULT_OPTIONS
        self.instructions: List[Instruction] = []
        self.constants: List[Any] = []
        self.text: List[str] = []
        self.vecad: List[int] = []
        self.vecad_offsets: List[int] = []
        self.num_slots = 0
        self.frozen = False
        self._constant_index: Dict[Tuple[float, float], int] = {}

    def __len__(self):
        return len(self.instructions)

    def _check_open(self):
        if self.frozen:
            raise TapeFrozen("tape is frozen; it already backs a function object")

    def add_constant(self, value) -> int:
        """Append `value` to the constant pool and return its index."""
        self._check_open()
        key = None
        if self.options.deduplicate_constants and isinstance(value, float):
            # copysign keeps 0.0 and -0.0 apart
            key = (value, math.copysign(1.0, value))
            idx = self._constant_index.get(key)
            if idx is not None:
                return idx
        self.constants.append(value)
        idx = len(self.constants) - 1
        if key is not None:
            self._constant_index[key] = idx
        return idx

    def add_text(self, label: str) -> int:
        """Store a label in the text table; returns its offset."""
        self._check_open()
        offset = len(self.text)
        self.text.extend(label)
        self.text.append("\0")
        return offset

    def get_text(self, offset: int) -> str:
        end = self.text.index("\0", offset)
        return "".join(self.text[offset:end])

    def add_vecad(self, values: Sequence[Any]) -> int:
        """Register a dynamic array with its initial values; returns its id."""
        self._check_open()
        self.vecad_offsets.append(len(self.vecad))
        self.vecad.append(len(values))
        for v in values:
            self.vecad.append(self.add_constant(v))
        return len(self.vecad_offsets) - 1

    def vecad_initial(self, vid: int) -> List[int]:
        """Constant-pool indices of the initial elements of dynamic array `vid`."""
        offset = self.vecad_offsets[vid]
        length = self.vecad[offset]
        return self.vecad[offset + 1: offset + 1 + length]

    def push(self, op: OpCode, args: Iterable[Arg] = (), *, aux: int = -1, has_result: bool = True) -> int:
        """
        Append one instruction. Returns the new result slot, or -1 when the
        instruction produces no value.
        """
        self._check_open()
        result = -1
        if has_result:
            result = self.num_slots
            self.num_slots += 1
        self.instructions.append(Instruction(op=op, args=tuple(args), result=result, aux=aux))
        return result

    def freeze(self):
        self.frozen = True

    def validate(self):
        """
        Check that every operand references an already-assigned slot or an
        existing constant, i.e. that the stream is in topological order.
        """
        assigned = 0
        for pos, ins in enumerate(self.instructions):
            for a in ins.args:
                if a.is_var:
                    if not 0 <= a.index < assigned:
                        raise NotIndependent(
                            f"instruction {pos} ({ins.op.value}) reads slot {a.index} before it is assigned"
                        )
                elif not 0 <= a.index < len(self.constants):
                    raise NotIndependent(
                        f"instruction {pos} ({ins.op.value}) reads missing constant {a.index}"
                    )
            if ins.result >= 0:
                if ins.result != assigned:
                    raise NotIndependent(f"instruction {pos} assigns slot {ins.result} out of order")
                assigned += 1
            elif ins.op not in STRUCTURAL_OPS:
                raise NotIndependent(f"instruction {pos} ({ins.op.value}) has no result slot")
        if assigned != self.num_slots:
            raise NotIndependent(f"tape claims {self.num_slots} slots but assigns {assigned}")

    def independent_slots(self) -> List[int]:
        return [ins.result for ins in self.instructions if ins.op is OpCode.INDEP]


class Recorder:
    """
    Recording state of one execution context: the tape being written and
    the independents it was started with.
    """

    def __init__(self, options: Optional[TapeOptions] = None):
        self.tape = Tape(options)
        self.independents: list = []


_current: ContextVar[Optional[Recorder]] = ContextVar("aad_tape_recorder", default=None)


def active_recorder() -> Optional[Recorder]:
    return _current.get()


def active_tape() -> Optional[Tape]:
    """The tape recording in this execution context, or None."""
    rec = _current.get()
    return None if rec is None else rec.tape


def start_taping(values: Sequence[Any], options: Optional[TapeOptions] = None) -> list:
    """
    Mark `values` as independents and start recording.

    ADVar inputs are bound to the new tape in place; other values (floats,
    InnerValues) are wrapped in new ADVars. Returns the list of independents
    in the order given.
    """
    from .var import ADVar  # local import to avoid cycles

    if _current.get() is not None:
        raise RecorderBusy("a tape is already recording in this context")

    rec = Recorder(options)
    independents = []
    for v in values:
        x = v if isinstance(v, ADVar) else ADVar(v)
        x.slot = rec.tape.push(OpCode.INDEP)
        x.tape = rec.tape
        independents.append(x)
    rec.independents = independents
    _current.set(rec)
    logger.debug("started taping with %d independents", len(independents))
    return independents


def stop_taping(dependents: Sequence[Any]):
    """Freeze the active tape into a Function of the recorded independents."""
    from .function import Function

    rec = _current.get()
    if rec is None:
        raise NotRecording("stop_taping() called while no tape is recording")
    return Function(rec.independents, dependents)


def abort_taping():
    """Discard the active recording (if any) and reset this context."""
    rec = _current.get()
    if rec is not None:
        logger.debug("aborted taping after %d instructions", len(rec.tape))
    _current.set(None)


def _finish_recording(rec: Recorder):
    rec.tape.freeze()
    _current.set(None)


@contextmanager
def recording(values: Sequence[Any], options: Optional[TapeOptions] = None):
    """
    Context manager around start_taping():

        with recording([0.02]) as (z,):
            npv = price(z)
            f = Function([z], [npv])

    A recording still active when the block exits (normally or by an
    exception) is aborted.
    """
    independents = start_taping(values, options)
    rec = _current.get()
    try:
        yield independents
    finally:
        if _current.get() is rec:
            abort_taping()
