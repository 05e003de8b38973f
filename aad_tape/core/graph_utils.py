"""
Tape statistics: size, fan-in / fan-out and opcode breakdown of a recording.
"""

import numpy as np
from typing import Dict
from collections import Counter

from .node import unpack_compare
from .opcodes import OpCode


def _tape_of(obj):
    # Function objects expose their tape; a bare Tape is accepted too
    return getattr(obj, "tape", obj)


def tape_statistics(function) -> Dict:
    """
    Collect statistics of a function object (or a bare tape) without
    evaluating it.

    Returns:
        dict with
          instructions : number of instructions (INDEP included)
          operands     : total operand count (slots and constants)
          slots        : number of slots assigned
          constants    : constant-pool entries
          max_fan_in / avg_fan_in   : variable operands per instruction
          max_fan_out / avg_fan_out : later instructions reading each slot
          operations   : opcode name -> count
    """
    tape = _tape_of(function)
    instructions = tape.instructions
    if not instructions:
        return {
            'instructions': 0,
            'operands': 0,
            'slots': 0,
            'constants': len(tape.constants),
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {}
        }

    # fan-in: variable operands of each instruction
    fan_ins = [sum(1 for a in ins.args if a.is_var) for ins in instructions]

    # fan-out: readers of each slot
    fan_outs = [0] * tape.num_slots
    for ins in instructions:
        for a in ins.args:
            if a.is_var:
                fan_outs[a.index] += 1

    op_counter = Counter(ins.op.value for ins in instructions)

    return {
        'instructions': len(instructions),
        'operands': sum(len(ins.args) for ins in instructions),
        'slots': tape.num_slots,
        'constants': len(tape.constants),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs) if fan_outs else 0,
        'avg_fan_out': float(np.mean(fan_outs)) if fan_outs else 0.0,
        'operations': dict(op_counter)
    }


def describe_tape(function, max_ops: int = 20) -> str:
    """
    Text listing of the first `max_ops` instructions, e.g.

        [   0] v0 = indep
        [   2] v2 = mul(v0, c1)
        [   5]      compare<(v2, c0) -> True
    """
    tape = _tape_of(function)
    lines = []
    for pos, ins in enumerate(tape.instructions[:max_ops]):
        args = ", ".join(f"v{a.index}" if a.is_var else f"c{a.index}" for a in ins.args)
        lhs = f"v{ins.result} =" if ins.result >= 0 else "    "
        name = ins.op.value
        suffix = ""
        if ins.op is OpCode.PRINT:
            name = f"print[{tape.get_text(ins.aux)!r}]"
        elif ins.op is OpCode.COMPARE:
            cmp_op, outcome = unpack_compare(ins.aux)
            name = f"compare{cmp_op.symbol}"
            suffix = f" -> {outcome}"
        lines.append(f"[{pos:4d}] {lhs} {name}({args}){suffix}")
    if len(tape.instructions) > max_ops:
        lines.append(f"... ({len(tape.instructions) - max_ops} more instructions)")
    return "\n".join(lines)
