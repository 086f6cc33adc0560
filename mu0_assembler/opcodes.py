"""
MU0 opcode set.

The machine has nine operations. Each enum value is the mnemonic used in
source text and in listings, so every opcode has a display name by
construction.

  NOP  — no operation (data cells and empty tokens carry this)
  ADD  — ACC += mem[S]
  SUB  — ACC -= mem[S]
  LDA  — ACC  = mem[S]
  STO  — mem[S] = ACC
  JMP  — PC = S
  JGE  — PC = S if ACC > 0
  JNE  — PC = S if ACC != 0
  STP  — halt
"""

from __future__ import annotations
import enum
from typing import Dict, FrozenSet


class Opcode(enum.Enum):
    NOP = "NOP"
    ADD = "ADD"
    SUB = "SUB"
    LDA = "LDA"
    STO = "STO"
    JMP = "JMP"
    JGE = "JGE"
    JNE = "JNE"
    STP = "STP"

    @property
    def mnemonic(self) -> str:
        return self.value

    @property
    def takes_operand(self) -> bool:
        return self in OPERAND_OPCODES


# Data-declaration marker. Not an opcode: DEFW cells assemble to NOP.
DEFW = "DEFW"

OPERAND_OPCODES: FrozenSet[Opcode] = frozenset({
    Opcode.ADD, Opcode.SUB, Opcode.LDA, Opcode.STO,
    Opcode.JMP, Opcode.JGE, Opcode.JNE,
})

# Mnemonics recognised in source text. NOP is deliberately absent:
# the word "NOP" in a source file is read as a label.
SOURCE_OPCODES: Dict[str, Opcode] = {
    op.value: op for op in Opcode if op is not Opcode.NOP
}
