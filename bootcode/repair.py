from __future__ import annotations
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Dict, Optional

from bootcode.core.ir import Instruction, Program
from bootcode.metrics import Metrics
from bootcode.orchestrator import run_program
from bootcode.state import ExecutionState, ExecutionTrace, Status

logger = logging.getLogger(__name__)


class Unrepairable(RuntimeError):
    """No single nop/jmp flip makes the program reach SUCCESS."""

    def __init__(self, tried: int) -> None:
        super().__init__(f"no single-instruction flip terminates the program ({tried} candidates tried)")
        self.tried = tried


@dataclass
class Repair:
    index: int
    original: Instruction
    replacement: Instruction
    state: ExecutionState

    @property
    def accumulator(self) -> int:
        return self.state.acc


def _record(metrics: Optional[Metrics], index: Optional[int], st: ExecutionState, steps: int, t0: float) -> None:
    if metrics is None:
        return
    dt_ms = (perf_counter() - t0) * 1000.0
    metrics.record_run(steps, dt_ms)
    metrics.add_timeline_point(index=index, status=st.status.value, acc=st.acc, steps=steps, ms=dt_ms)


def _search_baseline(program: Program, metrics: Optional[Metrics]) -> Repair:
    trace = ExecutionTrace(len(program))
    tried = 0

    for idx in program.candidates():
        tried += 1
        candidate = program.flip(idx)
        trace.reset()
        t0 = perf_counter()
        st = run_program(candidate, trace=trace)
        _record(metrics, idx, st, st.steps, t0)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"candidate {idx} ({program[idx]} -> {candidate[idx]}): {st.status.value} acc={st.acc}")
        if st.status is Status.SUCCESS:
            return Repair(idx, program[idx], candidate[idx], st)

    raise Unrepairable(tried)


def _search_rewind(program: Program, metrics: Optional[Metrics]) -> Repair:
    """
    Reuse the unmodified run's prefix. Every reached nop/jmp is tried by
    rewinding the trace to just before it and resuming on the flipped
    program; unreached candidates share the unmodified outcome.
    """
    trace = ExecutionTrace(len(program))
    t0 = perf_counter()
    base = run_program(program, trace=trace)
    _record(metrics, None, base, base.steps, t0)

    reached = list(trace.entries)
    st = base.copy()
    wins: Dict[int, ExecutionState] = {}

    for depth in reversed(range(len(reached))):
        idx = reached[depth]
        if not program[idx].is_flippable:
            continue
        trace.rewind(depth, program, st)
        candidate = program.flip(idx)
        t0 = perf_counter()
        run_program(candidate, state=st, trace=trace)
        _record(metrics, idx, st, st.steps - depth, t0)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"candidate {idx} at depth {depth}: {st.status.value} acc={st.acc}")
        if st.status is Status.SUCCESS:
            wins[idx] = st.copy()

    seen = set(reached)
    tried = 0
    for idx in program.candidates():
        tried += 1
        if idx in wins:
            return Repair(idx, program[idx], program[idx].flipped(), wins[idx])
        if idx not in seen and base.status is Status.SUCCESS:
            return Repair(idx, program[idx], program[idx].flipped(), base.copy())

    raise Unrepairable(tried)


STRATEGIES: Dict[str, Callable[[Program, Optional[Metrics]], Repair]] = {
    "baseline": _search_baseline,
    "rewind": _search_rewind,
}


def find_repair(program: Program, *, strategy: str = "baseline", metrics: Optional[Metrics] = None) -> Repair:
    """
    Find the lowest-index nop/jmp flip that makes `program` reach SUCCESS.
    Raises Unrepairable when none does.
    """
    try:
        search = STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown repair strategy: {strategy!r}") from None

    if metrics is not None:
        metrics.sample_rss()
    try:
        fix = search(program, metrics)
    finally:
        if metrics is not None:
            metrics.sample_rss()

    logger.info(f"repaired instruction {fix.index}: {fix.original} -> {fix.replacement}, acc={fix.accumulator}")
    return fix


def repair(program: Program, *, strategy: str = "baseline", metrics: Optional[Metrics] = None) -> int:
    return find_repair(program, strategy=strategy, metrics=metrics).accumulator
