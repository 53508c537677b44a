from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Tuple


class Op(Enum):
    ACC = "acc"   # accumulate
    JMP = "jmp"   # relative jump
    NOP = "nop"   # operand carried, unused


_FLIP = {Op.NOP: Op.JMP, Op.JMP: Op.NOP}


@dataclass(frozen=True)
class Instruction:
    op: Op
    arg: int

    @property
    def is_flippable(self) -> bool:
        return self.op in _FLIP

    def flipped(self) -> Instruction:
        """nop <-> jmp with the operand unchanged; acc is never a candidate."""
        if not self.is_flippable:
            raise ValueError(f"cannot flip {self}")
        return Instruction(_FLIP[self.op], self.arg)

    def __str__(self) -> str:
        return f"{self.op.value} {self.arg:+d}"


class Program:
    """
    Immutable ordered instruction sequence. Visited marks are kept
    elsewhere (see ExecutionTrace) so a Program can be shared freely.
    """
    __slots__ = ("_instrs",)

    def __init__(self, instrs: Iterable[Instruction] = ()) -> None:
        self._instrs: Tuple[Instruction, ...] = tuple(instrs)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Op, int]]) -> Program:
        return cls(Instruction(op, int(arg)) for op, arg in pairs)

    def __len__(self) -> int:
        return len(self._instrs)

    def __getitem__(self, idx: int) -> Instruction:
        return self._instrs[idx]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instrs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Program):
            return NotImplemented
        return self._instrs == other._instrs

    def __hash__(self) -> int:
        return hash(self._instrs)

    def __repr__(self) -> str:
        return f"Program({list(self._instrs)!r})"

    def candidates(self) -> Iterator[int]:
        """Indices of nop/jmp instructions, ascending."""
        return (i for i, ins in enumerate(self._instrs) if ins.is_flippable)

    def flip(self, idx: int) -> Program:
        instrs = list(self._instrs)
        instrs[idx] = instrs[idx].flipped()
        return Program(instrs)


__all__ = ["Op", "Instruction", "Program"]
