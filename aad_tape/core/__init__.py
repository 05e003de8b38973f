# aad_tape/core/__init__.py

"""
Core public API for the tape engine.

Exports:
    ADVar          : The differentiable value (float or InnerValue payload).
    Tape           : Append-only instruction log.
    start_taping   : Mark independents and begin recording in this context.
    stop_taping    : Freeze the recording into a Function.
    abort_taping   : Discard the active recording.
    recording      : Context manager around start_taping / abort_taping.
    active_tape    : Tape recording in this context, or None.
    Function       : Frozen tape with forward / reverse / jacobian sweeps.
    grad, jacobian_of, value : One-call drivers.
    tape_statistics, describe_tape : Tape inspection.
"""

# errors first: inner/ imports them while this package is initializing
from .errors import (
    TapeError, RecorderBusy, NotIndependent, NotRecording, TapeFrozen,
    SizeMismatch, ArrayLengthMismatch, DomainError, AmbiguousComparison,
)
from .opcodes import OpCode, CompareOp
from .var import ADVar
from .tape import Tape, start_taping, stop_taping, abort_taping, recording, active_tape
from .function import Function
from .seeds import grad, jacobian_of, value
from .graph_utils import tape_statistics, describe_tape

__all__ = [
    "TapeError", "RecorderBusy", "NotIndependent", "NotRecording", "TapeFrozen",
    "SizeMismatch", "ArrayLengthMismatch", "DomainError", "AmbiguousComparison",
    "OpCode", "CompareOp",
    "ADVar", "Tape",
    "start_taping", "stop_taping", "abort_taping", "recording", "active_tape",
    "Function",
    "grad", "jacobian_of", "value",
    "tape_statistics", "describe_tape",
]
