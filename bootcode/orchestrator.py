from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

from bootcode.core.engine import exec_instr
from bootcode.core.ir import Program
from bootcode.state import ExecutionState, ExecutionTrace, Status

logger = logging.getLogger(__name__)

Tracer = Callable[[str, Dict[str, Any]], None]


def run_program(
    program: Program,
    *,
    state: Optional[ExecutionState] = None,
    trace: Optional[ExecutionTrace] = None,
    tracer: Optional[Tracer] = None,
) -> ExecutionState:
    """
    Step `program` until a terminal status is reached and return the state.

    A supplied `trace` is used as-is (marks are not cleared), which lets a
    caller resume a rewound run. Pass a fresh or reset trace for an
    independent run.
    """
    st = state if state is not None else ExecutionState()
    tr = trace if trace is not None else ExecutionTrace(len(program))
    if tr.size != len(program):
        raise ValueError(f"trace size {tr.size} does not match program length {len(program)}")

    n = len(program)

    while not st.status.terminal:
        pc = st.pc
        if pc < 0:
            st.status = Status.CRASHED
            break
        if pc == n:
            st.status = Status.SUCCESS
            break
        if pc > n:
            st.status = Status.OUT_OF_BOUNDS
            break
        if tr.seen(pc):
            st.status = Status.INFINITE_LOOP
            break

        tr.mark(pc)
        if tracer:
            ins = program[pc]
            tracer("on_exec", {"pc": pc, "op": ins.op.value, "arg": ins.arg, "acc": st.acc})
        exec_instr(program, st)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"run ended: status={st.status.value} pc={st.pc} acc={st.acc} steps={st.steps}")
    if tracer:
        tracer("on_halt", {"pc": st.pc, "acc": st.acc, "status": st.status.value, "steps": st.steps})
    return st


def diagnose(program: Program, *, tracer: Optional[Tracer] = None) -> ExecutionState:
    """Run the unmodified program once from a fresh state."""
    return run_program(program, tracer=tracer)
