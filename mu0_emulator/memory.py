"""
MU0 Emulator — Unified Code/Data Memory

One flat array of cells, indexed from 0. There is no separate code region:
STO may overwrite the operand of an instruction cell, and the next fetch of
that cell sees the new address. Opcodes are fixed at assembly time; only
operand values change.

Reads and writes are bounds-checked. Python's negative indexing would
otherwise turn address -1 into the last cell.
"""

from typing import Callable, Dict, List, Tuple

from mu0_assembler import Cell, Opcode, Program

WatchCallback = Callable[[int, int, int], None]


class Memory:
    """Mutable copy of a Program's cells.

    Watchpoints: addr -> callbacks(addr, old_value, new_value), fired on
    every write to that address.
    """

    def __init__(self, program: Program):
        self._opcodes: Tuple[Opcode, ...] = tuple(cell.opcode for cell in program)
        self._values: List[int] = [cell.operand for cell in program]
        self._watchpoints: Dict[int, List[WatchCallback]] = {}

    def __len__(self) -> int:
        return len(self._values)

    def contains(self, addr: int) -> bool:
        return 0 <= addr < len(self._values)

    def _check(self, addr: int):
        if not self.contains(addr):
            raise IndexError(f"address {addr} outside memory of {len(self._values)} cells")

    def read(self, addr: int) -> int:
        self._check(addr)
        return self._values[addr]

    def write(self, addr: int, value: int):
        self._check(addr)
        old = self._values[addr]
        self._values[addr] = value
        for callback in self._watchpoints.get(addr, ()):
            callback(addr, old, value)

    def opcode(self, addr: int) -> Opcode:
        self._check(addr)
        return self._opcodes[addr]

    def cell(self, addr: int) -> Cell:
        self._check(addr)
        return Cell(self._opcodes[addr], self._values[addr])

    def snapshot(self) -> Tuple[Cell, ...]:
        return tuple(Cell(op, value) for op, value in zip(self._opcodes, self._values))

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: WatchCallback):
        self._check(addr)
        self._watchpoints.setdefault(addr, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: WatchCallback):
        callbacks = self._watchpoints.get(addr, [])
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self._watchpoints.pop(addr, None)
