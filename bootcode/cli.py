from __future__ import annotations

import argparse, json, logging
from typing import Any, Callable, Dict, List, Optional

from bootcode.core.ir import Program
from bootcode.decoders.asm_to_ir import DecodeError, decode_text
from bootcode.metrics import Metrics
from bootcode.orchestrator import diagnose
from bootcode.repair import STRATEGIES, Unrepairable, find_repair

logger = logging.getLogger(__name__)


def _read_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise SystemExit(f"No such file: {path}")
    except OSError as e:
        raise SystemExit(f"Error reading file {path!r}: {e}")


def _load_program(args: argparse.Namespace) -> Program:
    if args.text is not None:
        source = args.text.replace(";", "\n")
    else:
        source = _read_file(args.file)
    try:
        return decode_text(source)
    except DecodeError as e:
        raise SystemExit(f"Invalid program: {e}")


def main(argv: Optional[List[str]] = None) -> None:
    p = argparse.ArgumentParser(
        prog="bootcode",
        description="Run handheld boot code, detect infinite loops and repair the corrupted nop/jmp.",
    )
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--file", help="Path to program text, one instruction per line.")
    src.add_argument("--text", help="Inline program; ';' separates instructions.")
    p.add_argument("--strategy", choices=sorted(STRATEGIES), default="baseline",
                   help="Repair search strategy.")
    p.add_argument("--trace", action="store_true", help="Emit trace events of the diagnostic run.")
    p.add_argument("--json", action="store_true", help="Print JSON of both results.")
    p.add_argument("--metrics", action="store_true", help="Include repair search metrics.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    program = _load_program(args)
    logger.debug(f"loaded {len(program)} instructions")

    trace_log: List[Dict[str, Any]] = []

    def tracer(tag: str, payload: Dict[str, Any]):
        rec: Dict[str, Any] = {"event": tag}
        rec.update(payload or {})
        trace_log.append(rec)

    trace_cb: Optional[Callable[[str, dict], None]] = tracer if args.trace else None
    diag = diagnose(program, tracer=trace_cb)

    metrics = Metrics() if args.metrics else None
    fix = None
    error = None
    try:
        fix = find_repair(program, strategy=args.strategy, metrics=metrics)
    except Unrepairable as e:
        error = str(e)

    if args.json:
        out = {
            "instructions": len(program),
            "diagnostic": {"acc": diag.acc, "status": diag.status.value, "pc": diag.pc, "steps": diag.steps},
            "repair": None if fix is None else {
                "acc": fix.accumulator,
                "index": fix.index,
                "original": str(fix.original),
                "replacement": str(fix.replacement),
                "steps": fix.state.steps,
            },
            "error": error,
            "metrics": metrics.to_row() if metrics else None,
            "trace": trace_log if args.trace else None,
        }
        print(json.dumps(out, indent=2))
    else:
        print(f"Accumulator before termination: {diag.acc} ({diag.status.value} at pc={diag.pc})")
        if fix is not None:
            print(f"Repaired accumulator: {fix.accumulator} "
                  f"(instruction {fix.index}: {fix.original} -> {fix.replacement})")
        if metrics:
            print(f" Metrics: {metrics.to_row()}")
        if args.trace:
            print("\nTrace:")
            for e in trace_log:
                print(e)

    if error is not None:
        raise SystemExit(f"Unable to repair program: {error}")


if __name__ == "__main__":
    main()
