import random

import pytest
from bootcode.core.ir import Instruction, Op, Program
from bootcode.decoders.asm_to_ir import decode_text
from bootcode.orchestrator import diagnose, run_program
from bootcode.state import ExecutionState, ExecutionTrace, Status

SAMPLE = """nop +0
acc +1
jmp +4
acc +3
jmp -3
acc -99
acc +1
jmp -4
acc +6"""


def random_program(rng: random.Random, n: int) -> Program:
    ops = [Op.ACC, Op.JMP, Op.NOP]
    return Program(Instruction(rng.choice(ops), rng.randint(-n, n)) for _ in range(n))


def test_sample_loops_with_acc_5():
    st = diagnose(decode_text(SAMPLE))
    assert st.status is Status.INFINITE_LOOP
    assert st.acc == 5
    assert st.pc == 1
    assert st.steps == 7


def test_single_acc_succeeds():
    st = run_program(Program.from_pairs([(Op.ACC, 5)]))
    assert st.status is Status.SUCCESS
    assert st.acc == 5
    assert st.pc == 1


@pytest.mark.parametrize("n", [1, 2, 10])
def test_forward_jumps_succeed(n):
    st = run_program(Program.from_pairs([(Op.JMP, 1)] * n))
    assert st.status is Status.SUCCESS
    assert st.acc == 0
    assert st.pc == n
    assert st.steps == n


def test_jump_back_at_zero_crashes():
    st = run_program(Program.from_pairs([(Op.JMP, -1), (Op.ACC, 1)]))
    assert st.status is Status.CRASHED
    assert st.pc == 0


def test_jump_back_to_executed_loops():
    st = run_program(Program.from_pairs([(Op.NOP, 0), (Op.JMP, -1)]))
    assert st.status is Status.INFINITE_LOOP
    assert st.pc == 0
    assert st.acc == 0


def test_self_jump_loops():
    st = run_program(Program.from_pairs([(Op.ACC, 2), (Op.JMP, 0)]))
    assert st.status is Status.INFINITE_LOOP
    assert st.acc == 2
    assert st.pc == 1


def test_overshoot_is_out_of_bounds():
    st = run_program(Program.from_pairs([(Op.ACC, 1), (Op.JMP, 5), (Op.NOP, 0)]))
    assert st.status is Status.OUT_OF_BOUNDS
    assert st.pc == 6
    assert st.acc == 1


def test_empty_program_succeeds_immediately():
    st = run_program(Program())
    assert st.status is Status.SUCCESS
    assert (st.pc, st.acc, st.steps) == (0, 0, 0)


def test_loop_instruction_not_reexecuted():
    prog = Program.from_pairs([(Op.ACC, 10), (Op.JMP, -1)])
    trace = ExecutionTrace(len(prog))
    st = run_program(prog, trace=trace)
    assert st.status is Status.INFINITE_LOOP
    assert st.acc == 10
    assert trace.entries == [0, 1]


def test_rerun_with_reset_is_idempotent():
    prog = decode_text(SAMPLE)
    trace = ExecutionTrace(len(prog))
    first = run_program(prog, trace=trace)
    entries = list(trace.entries)
    trace.reset()
    second = run_program(prog, trace=trace)
    assert first == second
    assert trace.entries == entries


def test_stale_marks_without_reset_change_outcome():
    prog = Program.from_pairs([(Op.ACC, 1), (Op.ACC, 1)])
    trace = ExecutionTrace(len(prog))
    assert run_program(prog, trace=trace).status is Status.SUCCESS
    st = run_program(prog, trace=trace)
    assert st.status is Status.INFINITE_LOOP
    assert st.acc == 0


def test_terminal_state_is_returned_unchanged():
    prog = Program.from_pairs([(Op.ACC, 1)])
    st = ExecutionState(status=Status.CRASHED, acc=3)
    out = run_program(prog, state=st)
    assert out is st
    assert out.acc == 3
    assert out.status is Status.CRASHED


def test_trace_size_mismatch_rejected():
    with pytest.raises(ValueError):
        run_program(Program.from_pairs([(Op.NOP, 0)]), trace=ExecutionTrace(3))


def test_tracer_events():
    events = []
    run_program(Program.from_pairs([(Op.ACC, 5)]), tracer=lambda tag, data: events.append((tag, data)))
    assert events == [
        ("on_exec", {"pc": 0, "op": "acc", "arg": 5, "acc": 0}),
        ("on_halt", {"pc": 1, "acc": 5, "status": "success", "steps": 1}),
    ]


def test_tracer_sees_each_step_once():
    execs = []

    def tracer(tag, data):
        if tag == "on_exec":
            execs.append(data["pc"])

    st = diagnose(decode_text(SAMPLE), tracer=tracer)
    assert execs == [0, 1, 2, 6, 7, 3, 4]
    assert len(execs) == st.steps


@pytest.mark.parametrize("seed", range(25))
def test_random_programs_terminate_within_bound(seed):
    rng = random.Random(seed)
    prog = random_program(rng, rng.randint(1, 30))
    trace = ExecutionTrace(len(prog))
    st = run_program(prog, trace=trace)
    assert st.status.terminal
    assert st.steps <= len(prog)
    assert len(trace.entries) == len(set(trace.entries)) == st.steps
    assert st == run_program(prog)


def test_negative_start_pc_crashes_without_executing():
    prog = Program.from_pairs([(Op.ACC, 1), (Op.ACC, 2)])
    trace = ExecutionTrace(len(prog))
    st = run_program(prog, state=ExecutionState(pc=-1), trace=trace)
    assert st.status is Status.CRASHED
    assert (st.pc, st.acc, st.steps) == (-1, 0, 0)
    assert trace.entries == []
    assert not trace.seen(1)
