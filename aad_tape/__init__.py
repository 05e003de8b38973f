# aad_tape/__init__.py
# Tape-based adjoint algorithmic differentiation with vectorized inner values

# core first: it loads the error classes that inner/ and numeric depend on
from .core import (
    TapeError, RecorderBusy, NotIndependent, NotRecording, TapeFrozen,
    SizeMismatch, ArrayLengthMismatch, DomainError, AmbiguousComparison,
    OpCode, CompareOp,
    ADVar, Tape,
    start_taping, stop_taping, abort_taping, recording, active_tape,
    Function,
    grad, jacobian_of, value,
    tape_statistics, describe_tape,
)
from .config import TapeOptions, DEFAULT_OPTIONS
from .inner import InnerValue, Comparison
from .numeric import (
    NumericTraits, integer,
    identical_parameter, identical_zero, identical_one, identical_equal,
)
from .ops import (
    exp, log, sqrt, sin, cos, tan, asin, acos, atan,
    sinh, cosh, tanh, fabs, sign, erf,
    select, cond_exp, print_for,
    norm_pdf, norm_cdf, log1p, asinh, ldexp,
    TapeVector,
)
from .fd import finite_difference

__all__ = [
    # Errors
    'TapeError', 'RecorderBusy', 'NotIndependent', 'NotRecording', 'TapeFrozen',
    'SizeMismatch', 'ArrayLengthMismatch', 'DomainError', 'AmbiguousComparison',
    # Recording
    'ADVar', 'Tape', 'OpCode', 'CompareOp', 'TapeOptions', 'DEFAULT_OPTIONS',
    'start_taping', 'stop_taping', 'abort_taping', 'recording', 'active_tape',
    # Evaluation
    'Function', 'grad', 'jacobian_of', 'value',
    'tape_statistics', 'describe_tape', 'finite_difference',
    # Inner values
    'InnerValue', 'Comparison', 'select', 'cond_exp',
    # Math
    'exp', 'log', 'sqrt', 'sin', 'cos', 'tan', 'asin', 'acos', 'atan',
    'sinh', 'cosh', 'tanh', 'fabs', 'sign', 'erf',
    'norm_pdf', 'norm_cdf', 'log1p', 'asinh', 'ldexp',
    'print_for', 'TapeVector',
    # Traits
    'NumericTraits', 'integer',
    'identical_parameter', 'identical_zero', 'identical_one', 'identical_equal',
]
