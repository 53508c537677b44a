from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List

from bootcode.core.ir import Op, Program


class Status(Enum):
    RUNNING = "running"
    SUCCESS = "success"
    OUT_OF_BOUNDS = "out_of_bounds"
    CRASHED = "crashed"
    INFINITE_LOOP = "infinite_loop"

    @property
    def terminal(self) -> bool:
        return self is not Status.RUNNING


@dataclass
class ExecutionState:
    pc: int = 0
    acc: int = 0
    status: Status = Status.RUNNING
    steps: int = 0

    def copy(self) -> ExecutionState:
        return replace(self)


@dataclass
class ExecutionTrace:
    """
    Per-run visited marks plus the ordered stack of executed indices.
    Owned by whoever drives the interpreter, never by the Program.
    """
    size: int
    entries: List[int] = field(default_factory=list, init=False)
    visited: bytearray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.visited = bytearray(self.size)

    def __len__(self) -> int:
        return len(self.entries)

    def seen(self, pc: int) -> bool:
        return bool(self.visited[pc])

    def mark(self, pc: int) -> None:
        if self.visited[pc]:
            raise ValueError(f"instruction {pc} already marked in this run")
        self.visited[pc] = 1
        self.entries.append(pc)

    def reset(self) -> None:
        self.visited = bytearray(self.size)
        self.entries.clear()

    def rewind(self, depth: int, program: Program, state: ExecutionState) -> None:
        """
        Pop entries until `depth` remain, undoing acc side effects and
        clearing marks. Leaves `state` running at the oldest popped index.
        """
        if depth < 0 or depth > len(self.entries):
            raise ValueError(f"cannot rewind to depth {depth} (trace has {len(self.entries)})")

        while len(self.entries) > depth:
            pc = self.entries.pop()
            self.visited[pc] = 0
            ins = program[pc]
            if ins.op is Op.ACC:
                state.acc -= ins.arg
            state.pc = pc
            state.steps -= 1
        state.status = Status.RUNNING
