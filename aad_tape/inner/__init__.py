# aad_tape/inner/__init__.py
"""Vectorized scalar ("inner value") and branch-safe selection."""

from .value import InnerValue, as_inner
from .compare import Comparison, cond_exp, select

__all__ = [
    "InnerValue", "as_inner",
    "Comparison", "cond_exp", "select",
]
