"""
MU0 Emulator — Main Emulator Class

Executes an assembled Program on the MU0 machine:
  - ACC  accumulator (the only data register)
  - PC   program counter (index of the next cell to fetch)
  - one flat memory of cells shared by code and data (memory.py)

Execution model, one step:
  1. Check PC is inside memory (else ExecutionFault)
  2. Fetch the cell at PC, advance PC
  3. Execute the opcode against ACC / memory / PC
  4. Record ACC in the trace (pure read, never changes control flow)

Instruction set:
  ADD S  ACC += mem[S]
  SUB S  ACC -= mem[S]
  LDA S  ACC  = mem[S]
  STO S  mem[S] = ACC
  JMP S  PC = S
  JGE S  PC = S if ACC > 0     (strictly greater: ACC == 0 does not branch)
  JNE S  PC = S if ACC != 0
  STP    halt; PC is left pointing at the STP cell
  NOP    nothing (data words reached as code fall through)

Termination reasons for run():
  - HALT:     STP executed
  - TIMEOUT:  step budget exhausted
  - BREAK:    breakpoint address reached
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from mu0_assembler import Cell, Mu0Error, Opcode, Program
from .memory import Memory
from .profiles import get_profile, wrap_word

__all__ = ['Mu0Emulator', 'ExecutionFault', 'StepResult', 'StopReason']

logger = logging.getLogger(__name__)


class ExecutionFault(Mu0Error):
    """Raised when a step would fetch or access memory outside the program."""
    def __init__(self, reason: str, pc: int):
        self.reason = reason
        self.pc = pc
        super().__init__(f"Execution fault at PC={pc}: {reason}")


class StepResult(Enum):
    CONTINUE = 'CONTINUE'
    HALTED = 'HALTED'


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


class _HaltException(Exception):
    pass


class Mu0Emulator:
    """MU0 machine over one assembled Program.

    The Program itself is never modified; the emulator works on a copy in
    self.mem, so two emulators built from one Program start identically.

    Usage:
        emu = Mu0Emulator(assemble(source))
        reason = emu.run()
        print(emu.accumulator, emu.cell(0))
    """

    def __init__(self, program: Program, profile: str = "default"):
        self.program = program
        self.profile_name = profile
        self.profile = get_profile(profile)
        self.word_bits: Optional[int] = self.profile["word_bits"]

        self.mem = Memory(program)
        self.accumulator: int = 0
        self.program_counter: int = 0
        self.halted: bool = False
        self.steps: int = 0

        # Breakpoints: set of cell addresses that stop run() before executing
        self._breakpoints: Set[int] = set()

        self._trace = False
        self.trace_output: List[str] = []

        self._dispatch: Dict[Opcode, Callable[[int], None]] = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Read accessors
    # ══════════════════════════════════════════════

    def cell(self, index: int) -> Cell:
        if not self.mem.contains(index):
            raise IndexError(f"cell {index} outside memory of {len(self.mem)} cells")
        return self.mem.cell(index)

    def cell_count(self) -> int:
        return len(self.mem)

    def snapshot(self) -> Tuple[int, int, Tuple[Cell, ...]]:
        """(accumulator, program_counter, cells) for comparing machine states."""
        return self.accumulator, self.program_counter, self.mem.snapshot()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> StepResult:
        """Execute one instruction.

        Returns HALTED once STP has executed (and on every later call,
        without touching state). On ExecutionFault the machine is left
        exactly as it was before the step.
        """
        if self.halted:
            return StepResult.HALTED

        pc = self.program_counter
        if not self.mem.contains(pc):
            raise ExecutionFault(f"program counter outside memory of {len(self.mem)} cells", pc)

        opcode = self.mem.opcode(pc)
        operand = self.mem.read(pc)
        self.program_counter = pc + 1

        handler = self._dispatch.get(opcode)
        try:
            if handler is None:
                raise ExecutionFault(f"unknown opcode {opcode!r}", pc)
            handler(operand)
        except _HaltException:
            self.program_counter = pc
            self.halted = True
            self.steps += 1
            self._record(pc, opcode, operand)
            logger.info("halted at %d after %d steps, ACC=%d", pc, self.steps, self.accumulator)
            return StepResult.HALTED
        except ExecutionFault:
            self.program_counter = pc
            raise

        self.steps += 1
        self._record(pc, opcode, operand)
        return StepResult.CONTINUE

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Step until STP, a breakpoint, or the step budget runs out.

        max_steps defaults to the profile's budget (None = unlimited).
        A breakpoint on the current PC is ignored for the first step so a
        stopped run can be resumed.
        """
        if max_steps is None:
            max_steps = self.profile["max_steps"]

        executed = 0
        while True:
            if executed and self.program_counter in self._breakpoints:
                logger.debug("breakpoint at %d", self.program_counter)
                return StopReason.BREAK
            if max_steps is not None and executed >= max_steps:
                logger.warning("step budget of %d exhausted at PC=%d", max_steps, self.program_counter)
                return StopReason.TIMEOUT
            if self.step() is StepResult.HALTED:
                return StopReason.HALT
            executed += 1

    def _record(self, pc: int, opcode: Opcode, operand: int):
        logger.debug("%4d: %s %d  ACC=%d", pc, opcode.mnemonic, operand, self.accumulator)
        if self._trace:
            self.trace_output.append(f"{pc:>4}: {opcode.mnemonic} {operand:<6} ACC={self.accumulator}")

    # ══════════════════════════════════════════════
    # Instruction execution
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> Dict[Opcode, Callable[[int], None]]:
        return {
            Opcode.NOP: self._op_nop,
            Opcode.ADD: self._op_add,
            Opcode.SUB: self._op_sub,
            Opcode.LDA: self._op_lda,
            Opcode.STO: self._op_sto,
            Opcode.JMP: self._op_jmp,
            Opcode.JGE: self._op_jge,
            Opcode.JNE: self._op_jne,
            Opcode.STP: self._op_stp,
        }

    def _load(self, addr: int) -> int:
        if not self.mem.contains(addr):
            raise ExecutionFault(f"read from address {addr} outside memory", self.program_counter - 1)
        return self.mem.read(addr)

    def _set_acc(self, value: int):
        self.accumulator = wrap_word(value, self.word_bits)

    def _op_nop(self, operand):
        pass

    def _op_add(self, operand):
        self._set_acc(self.accumulator + self._load(operand))

    def _op_sub(self, operand):
        self._set_acc(self.accumulator - self._load(operand))

    def _op_lda(self, operand):
        self._set_acc(self._load(operand))

    def _op_sto(self, operand):
        if not self.mem.contains(operand):
            raise ExecutionFault(f"write to address {operand} outside memory", self.program_counter - 1)
        self.mem.write(operand, self.accumulator)

    def _op_jmp(self, operand):
        self.program_counter = operand

    def _op_jge(self, operand):
        if self.accumulator > 0:
            self.program_counter = operand

    def _op_jne(self, operand):
        if self.accumulator != 0:
            self.program_counter = operand

    def _op_stp(self, operand):
        raise _HaltException("STP")

    # ══════════════════════════════════════════════
    # Breakpoint / trace API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    @property
    def breakpoints(self) -> Set[int]:
        return set(self._breakpoints)

    def enable_trace(self, enabled: bool = True):
        self._trace = enabled
        if enabled:
            self.trace_output = []

    # ══════════════════════════════════════════════
    # Display
    # ══════════════════════════════════════════════

    def format_state(self) -> str:
        """Text view of the machine: ACC, PC, then every cell.

        Cell rows read 'marker label index : mnemonic : value', with '!'
        marking the cell PC points at.
        """
        lines = [f"ACC: {self.accumulator}",
                 f"PC:  {self.program_counter}" + ("  (halted)" if self.halted else ""),
                 "Memory (loc : Mnemonic : value)"]
        for index, cell in enumerate(self.mem.snapshot()):
            marker = "!" if index == self.program_counter else " "
            label = self.program.label_at(index) or ""
            lines.append(f"{marker} {label:<8} {index:>3} : {cell.opcode.mnemonic} : {cell.operand}")
        return "\n".join(lines)
