# aad_tape/core/opcodes.py
"""
Closed set of opcodes understood by the tape.

Each arithmetic opcode has exactly one evaluation rule in `rules.RULES`;
the structural opcodes (INDEP, PAR, LOAD, STORE, COMPARE, PRINT) are handled
by the sweeps themselves. PAR gives a constant dependent its own slot.
"""
from enum import Enum, IntEnum


class OpCode(Enum):
    # structural
    INDEP = "indep"
    PAR = "par"
    LOAD = "load"
    STORE = "store"
    COMPARE = "compare"
    PRINT = "print"

    # binary
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    POW = "pow"

    # unary
    NEG = "neg"
    EXP = "exp"
    LOG = "log"
    SQRT = "sqrt"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"
    ABS = "abs"
    SIGN = "sign"
    ERF = "erf"

    # conditional select: (left, right, if_true, if_false), compare op in aux
    CEXP = "cexp"


STRUCTURAL_OPS = frozenset({
    OpCode.INDEP, OpCode.PAR, OpCode.LOAD, OpCode.STORE, OpCode.COMPARE, OpCode.PRINT,
})


class CompareOp(IntEnum):
    LT = 0
    LE = 1
    EQ = 2
    GE = 3
    GT = 4
    NE = 5

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


_SYMBOLS = {
    CompareOp.LT: "<",
    CompareOp.LE: "<=",
    CompareOp.EQ: "==",
    CompareOp.GE: ">=",
    CompareOp.GT: ">",
    CompareOp.NE: "!=",
}
