"""
MU0 Assembler
=============
Assembler for the MU0 single-accumulator teaching machine: one accumulator,
one program counter, one flat memory shared by code and data.

Architecture:
    ┌────────────┐    ┌──────────┐    ┌───────────┐    ┌────────────┐
    │ MU0 Source │───>│  Lexer   │───>│ Assembler │───>│  Program   │
    │ (.s)       │    │ (tokens) │    │ (labels)  │    │ (cells)    │
    └────────────┘    └──────────┘    └───────────┘    └────────────┘

    - opcodes.py:   closed opcode set; enum values are the mnemonics
    - lexer.py:     whitespace word scanner, attaches labels to instructions
    - assembler.py: label -> cell index resolution, decimal literals, listing

The Program is executed by the mu0_emulator package.
"""

__version__ = "0.1.0"

from .opcodes import Opcode, DEFW, OPERAND_OPCODES, SOURCE_OPCODES
from .lexer import Lexer, Token, TokenKind, SourceSpan, Mu0Error, ParseError, tokenize, format_token
from .assembler import Assembler, Cell, Program, assemble, parse_decimal
