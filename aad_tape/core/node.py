# aad_tape/core/node.py
from dataclasses import dataclass
from typing import NamedTuple, Tuple

from .opcodes import CompareOp, OpCode


class Arg(NamedTuple):
    """
    One operand of an instruction.

    is_var : True  -> `index` is a tape slot
             False -> `index` is a position in the constant pool
    """
    is_var: bool
    index: int


@dataclass(frozen=True)
class Instruction:
    """
    One fixed-size record of the instruction stream.

    Attributes
    ----------
    op     : OpCode
    args   : operands, in the order the rule of `op` expects them
    result : slot assigned to the output, -1 for STORE / COMPARE / PRINT
    aux    : index into an auxiliary table (vecad id for LOAD/STORE, text
             offset for PRINT), the compare op for CEXP, a packed compare
             code for COMPARE; -1 when unused
    """
    op: OpCode
    args: Tuple[Arg, ...]
    result: int = -1
    aux: int = -1


def pack_compare(op: CompareOp, outcome: bool) -> int:
    return (int(op) << 1) | int(bool(outcome))


def unpack_compare(code: int) -> Tuple[CompareOp, bool]:
    return CompareOp(code >> 1), bool(code & 1)
