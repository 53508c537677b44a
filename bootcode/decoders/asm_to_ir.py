from __future__ import annotations
import re
from typing import List, Optional

from bootcode.core.ir import Instruction, Op, Program

_MNEMONICS = {op.value: op for op in Op}
_OPERAND = re.compile(r"[+-]?[0-9]+")


class DecodeError(ValueError):
    def __init__(self, message: str, *, line_no: Optional[int] = None, text: Optional[str] = None) -> None:
        where = f"line {line_no}: " if line_no is not None else ""
        super().__init__(f"{where}{message}" + (f" ({text!r})" if text is not None else ""))
        self.line_no = line_no
        self.text = text


def decode_line(line: str, *, line_no: Optional[int] = None) -> Instruction:
    """
    Decode one 'mnemonic signed-int' line, e.g. 'jmp -4' or 'acc +1'.
    """
    parts = line.split()
    if not parts:
        raise DecodeError("empty instruction", line_no=line_no, text=line)
    if len(parts) != 2:
        raise DecodeError("expected '<op> <signed int>'", line_no=line_no, text=line)

    mnem, literal = parts
    op = _MNEMONICS.get(mnem)
    if op is None:
        raise DecodeError(f"unknown instruction {mnem!r}", line_no=line_no, text=line)
    if not _OPERAND.fullmatch(literal):
        raise DecodeError(f"bad operand {literal!r}", line_no=line_no, text=line)
    return Instruction(op, int(literal))


def decode_text(text: str) -> Program:
    """One instruction per line; blank lines are skipped."""
    out: List[Instruction] = []
    for n, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        out.append(decode_line(line, line_no=n))
    return Program(out)
