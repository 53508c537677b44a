from __future__ import annotations

from bootcode.core.ir import Op, Program
from bootcode.state import ExecutionState, Status


def exec_instr(program: Program, state: ExecutionState) -> None:
    """
    Execute the instruction at state.pc in-place.
    A jump below index 0 sets CRASHED and leaves pc untouched.
    """
    ins = program[state.pc]
    state.steps += 1

    if ins.op is Op.ACC:
        state.acc += ins.arg
        state.pc += 1

    elif ins.op is Op.JMP:
        target = state.pc + ins.arg
        if target < 0:
            state.status = Status.CRASHED
            return
        state.pc = target

    elif ins.op is Op.NOP:
        state.pc += 1

    else:
        raise ValueError(f"Unknown op: {ins.op!r}")

