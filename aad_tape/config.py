"""
Recording options.

A `TapeOptions` instance is attached to every recorder when taping starts
and stays with the resulting tape, so a tape always knows how it was built.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TapeOptions:
    """
    Options of one recording.

    Attributes:
        deduplicate_constants: Reuse the constant-pool entry of an equal float
            literal instead of appending a new one.
        elide_identical: Skip recording `x + 0`, `x - 0`, `x * 1`, `x / 1`
            (returning `x`) and `x * 0` (returning an untracked zero) when the
            constant is identically 0 or 1.
        record_comparisons: Record host-language branches taken on tracked
            scalar comparisons so `Function.compare_change` can detect them.
    """
    deduplicate_constants: bool = True
    elide_identical: bool = True
    record_comparisons: bool = True


DEFAULT_OPTIONS = TapeOptions()
