"""
MU0 Assembler.

Turns the token stream from the lexer into a Program: a fixed-length image
of memory cells, one per token, in token order.

Input:  MU0 source text (or a token list)
Output: Program (tuple of Cells + symbol table)

Because cells are laid out in token order, a label's address is simply the
index of the token it is attached to. Code and data share that one address
space.

Operand resolution, per token:
  1. STP and empty tokens  -> 0
  2. operand equals a label -> index of the FIRST token carrying that label
  3. otherwise              -> unsigned decimal literal (ASCII 0-9 only)
  Anything that is neither a known label nor a decimal is a ParseError.

Data words (DEFW) assemble to a NOP cell whose operand is the value, so a
data word reached as code simply falls through.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .lexer import Lexer, ParseError, Token, TokenKind
from .opcodes import Opcode

__all__ = ['Assembler', 'Cell', 'Program', 'ParseError', 'assemble', 'parse_decimal']

logger = logging.getLogger(__name__)

DIGITS = frozenset("0123456789")


@dataclass(frozen=True)
class Cell:
    """One memory cell: an operation + address, or NOP + data value."""
    opcode: Opcode
    operand: int


@dataclass(frozen=True)
class Program:
    """Assembled memory image. Never mutated; the emulator copies it."""
    cells: Tuple[Cell, ...]
    tokens: Tuple[Token, ...] = ()
    # read-only view derived from tokens; not part of hash() or ==
    symbols: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}),
                                       compare=False, hash=False)

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, index: int) -> Cell:
        return self.cells[index]

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def label_at(self, address: int) -> Optional[str]:
        """Label written on the cell at `address`, if any."""
        if 0 <= address < len(self.tokens):
            return self.tokens[address].label
        return None

    def address_of(self, label: str) -> Optional[int]:
        return self.symbols.get(label)


def parse_decimal(text: str, line: int = 0, col: int = 0) -> int:
    """Parse an unsigned decimal literal. Only ASCII digits are accepted."""
    if not text:
        raise ParseError("empty numeric literal", text, line, col)
    if not all(ch in DIGITS for ch in text):
        raise ParseError("undefined label or bad numeric literal", text, line, col)
    return int(text)


def _build_symbols(tokens: Iterable[Token]) -> Dict[str, int]:
    symbols: Dict[str, int] = {}
    for index, tok in enumerate(tokens):
        if tok.label is None:
            continue
        if tok.label in symbols:
            logger.debug("duplicate label %r at %d, keeping %d", tok.label, index, symbols[tok.label])
            continue
        symbols[tok.label] = index
    return symbols


def _resolve(tok: Token, symbols: Mapping[str, int]) -> int:
    if tok.kind is TokenKind.EMPTY or tok.opcode is Opcode.STP:
        return 0
    address = symbols.get(tok.operand)
    if address is not None:
        return address
    return parse_decimal(tok.operand, tok.line, tok.col)


class Assembler:
    """MU0 assembler.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self):
        self.tokens: List[Token] = []
        self.symbols: Dict[str, int] = {}
        self.program: Optional[Program] = None

    def assemble(self, source: str) -> Program:
        """Lex and assemble source text."""
        return self.assemble_tokens(Lexer(source).tokenize())

    def assemble_tokens(self, tokens: Iterable[Token]) -> Program:
        """Assemble an already-lexed token list. Cell i comes from token i.

        On ParseError the assembler keeps the result of its last successful
        assembly.
        """
        tokens = list(tokens)
        symbols = _build_symbols(tokens)
        cells = tuple(Cell(tok.opcode, _resolve(tok, symbols)) for tok in tokens)
        program = Program(cells, tuple(tokens), MappingProxyType(dict(symbols)))
        self.tokens, self.symbols, self.program = tokens, symbols, program
        logger.debug("assembled %d cells, %d labels", len(cells), len(symbols))
        return program

    def get_listing(self) -> str:
        """Return a listing showing address, label, cell contents and source."""
        if self.program is None:
            return ""
        lines = [f"{'ADDR':>4}  {'LABEL':<10}  {'OP':<3}  {'VALUE':>6}  SOURCE",
                 "-" * 48]
        for index, (tok, cell) in enumerate(zip(self.tokens, self.program.cells)):
            if tok.kind is TokenKind.DATA:
                source = f"DEFW {tok.operand}"
            elif tok.kind is TokenKind.EMPTY:
                source = ""
            elif tok.opcode is Opcode.STP:
                source = "STP"
            else:
                source = f"{tok.opcode.mnemonic} {tok.operand}"
            lines.append(f"{index:>4}  {tok.label or '':<10}  {cell.opcode.mnemonic:<3}  "
                         f"{cell.operand:>6}  {source}".rstrip())
        return "\n".join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> Program:
    """Assemble source text, return the Program."""
    return Assembler().assemble(source)
