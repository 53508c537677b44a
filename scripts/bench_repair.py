from __future__ import annotations

import argparse
import json
import statistics
from time import perf_counter_ns
from typing import Dict, List, Optional

import psutil

from bootcode.core.ir import Instruction, Op, Program
from bootcode.repair import find_repair


def build_looping_program(blocks: int) -> Program:
    """
    `blocks` x (acc +1, jmp +1) followed by a jmp back to 0.
    Only the final jmp is the corrupted one, so every earlier candidate loops.
    """
    instrs: List[Instruction] = []
    for _ in range(blocks):
        instrs.append(Instruction(Op.ACC, 1))
        instrs.append(Instruction(Op.JMP, 1))
    instrs.append(Instruction(Op.JMP, -len(instrs)))
    return Program(instrs)


def time_case(program: Program, strategy: str, *, runs: int) -> Dict[str, float]:
    expected = find_repair(program, strategy=strategy).accumulator

    times_us: List[float] = []
    for _ in range(runs):
        t0 = perf_counter_ns()
        acc = find_repair(program, strategy=strategy).accumulator
        times_us.append((perf_counter_ns() - t0) / 1000.0)
        if acc != expected:
            raise RuntimeError(f"{strategy}: nondeterministic result {acc} != {expected}")

    return {"acc": expected, "runs": runs, "median_us": statistics.median(times_us)}


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Time baseline vs rewind repair on a generated looping program.")
    ap.add_argument("--runs", type=int, default=10)
    ap.add_argument("--blocks", type=int, default=300, help="acc/jmp pairs in the program")
    ap.add_argument("--out", default="", help="JSON output path (default: stdout)")
    args = ap.parse_args(argv)

    program = build_looping_program(args.blocks)
    cases = {s: time_case(program, s, runs=args.runs) for s in ("baseline", "rewind")}
    if cases["baseline"]["acc"] != cases["rewind"]["acc"]:
        raise SystemExit("baseline and rewind disagree")

    payload = {
        "instructions": len(program),
        "rss_bytes": psutil.Process().memory_info().rss,
        **cases,
    }
    text = json.dumps(payload, indent=2)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
