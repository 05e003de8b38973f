# aad_tape/core/errors.py
"""
Exception hierarchy of the tape engine.

Every failure is raised synchronously at the offending call. Sweeps never
return partial results: they either complete or raise before producing output.
"""


class TapeError(Exception):
    """Base class of all errors raised by aad_tape."""


class RecorderBusy(TapeError):
    """A recording is already active in this execution context."""


class NotIndependent(TapeError):
    """A slot, independent or dependent is not backed by the recorded tape."""


class NotRecording(NotIndependent):
    """A function object was requested while no recording is active."""


class TapeFrozen(TapeError):
    """An instruction was appended to a tape that already backs a function."""


class SizeMismatch(TapeError, ValueError):
    """A point / direction / weight vector has the wrong length."""


class ArrayLengthMismatch(TapeError, ValueError):
    """Two array-valued inner values of different lengths met in one operation."""


class DomainError(TapeError, ValueError):
    """A math function was evaluated outside of its domain."""


class AmbiguousComparison(TapeError, TypeError):
    """Truth value of an element-wise comparison was requested."""
